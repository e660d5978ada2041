"""
Contains one checker per rule type. A checker combines the building blocks in `rules` to the complete semantics of
its type. Optional fields without a value are skipped without any message.
"""
import datetime
from typing import Optional

from ..options import ValidateOptions
from ..rule import InternalRule
from ..types import RuleType, Value, Values
from ..utils.query_object import MISSING, has_field, is_sequence
from . import rules


def _applies(rule: InternalRule, source: Values) -> bool:
    return rule.required or has_field(source, rule.field)


def _skip(rule: InternalRule, value: Value, source: Values, type_name: Optional[str] = None) -> bool:
    """True if the checker has nothing to do: the field is missing (or empty) and not required"""
    if not _applies(rule, source):
        return True
    return rules.is_empty_value(value, type_name) and not rule.required


def string(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """Checks a string including its length, pattern and (optionally) whitespace"""
    if _skip(rule, value, source, RuleType.STRING.value):
        return
    rules.required(rule, value, source, errors, options, RuleType.STRING.value)
    if not rules.is_empty_value(value, RuleType.STRING.value):
        rules.type_(rule, value, source, errors, options)
        rules.range_(rule, value, source, errors, options)
        rules.pattern(rule, value, source, errors, options)
        if rule.whitespace:
            rules.whitespace(rule, value, source, errors, options)


def number(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """Checks a number and its range. The empty string counts as missing."""
    if value == "":
        value = None
    _typed_range(rule, value, source, errors, options)


def _type_only(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    if _skip(rule, value, source):
        return
    rules.required(rule, value, source, errors, options)
    if value is not None and value is not MISSING:
        rules.type_(rule, value, source, errors, options)


def boolean(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """Checks a boolean"""
    _type_only(rule, value, source, errors, options)


def method(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """Checks a callable"""
    _type_only(rule, value, source, errors, options)


def regexp(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """Checks a compiled pattern or a string which compiles to a regular expression"""
    _type_only(rule, value, source, errors, options)


def object_(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """Checks a mapping (or dataclass instance). Its content is validated by nested rules."""
    _type_only(rule, value, source, errors, options)


def _typed_range(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    if _skip(rule, value, source):
        return
    rules.required(rule, value, source, errors, options)
    if value is not None and value is not MISSING:
        rules.type_(rule, value, source, errors, options)
        rules.range_(rule, value, source, errors, options)


def integer(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """Checks a number with integral value and its range"""
    _typed_range(rule, value, source, errors, options)


def float_(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """Checks a number with fractional part and its range"""
    _typed_range(rule, value, source, errors, options)


def array(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """Checks a list (or tuple) and its length. An empty list counts as missing for required rules."""
    if not _applies(rule, source) or ((value is None or value is MISSING) and not rule.required):
        return
    rules.required(rule, value, source, errors, options, RuleType.ARRAY.value)
    if value is not None and value is not MISSING:
        rules.type_(rule, value, source, errors, options)
        rules.range_(rule, value, source, errors, options)


def enum(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """Checks the membership of the value in `rule.enum`"""
    if _skip(rule, value, source):
        return
    rules.required(rule, value, source, errors, options)
    if not rules.is_empty_value(value):
        rules.enum(rule, value, source, errors, options)


def pattern(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """Checks the value against `rule.pattern`"""
    if _skip(rule, value, source, RuleType.STRING.value):
        return
    rules.required(rule, value, source, errors, options)
    if not rules.is_empty_value(value, RuleType.STRING.value):
        rules.pattern(rule, value, source, errors, options)


def to_datetime(value: Value) -> Optional[datetime.datetime]:
    """
    Converts a date, datetime, ISO 8601 string or POSIX timestamp into a datetime. Returns None if this is not
    possible.
    """
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.datetime.fromisoformat(value)
        except ValueError:
            return None
    if rules.is_number(value):
        try:
            return datetime.datetime.fromtimestamp(float(value), tz=datetime.timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    return None


def date(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """
    Checks a date. Strings are parsed as ISO 8601, numbers are interpreted as POSIX timestamps. `min` and `max` are
    compared with the POSIX timestamp of the date.
    """
    if _skip(rule, value, source, RuleType.DATE.value):
        return
    rules.required(rule, value, source, errors, options)
    if rules.is_empty_value(value, RuleType.DATE.value):
        return
    date_value = to_datetime(value)
    if date_value is None:
        errors.append(options.resolved_messages.resolve("types.date", rule.display_name, RuleType.DATE.value))
        return
    rules.range_(rule, date_value.timestamp(), source, errors, options)


def typed_string(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """Checks the string formats `email`, `url` and `hex`"""
    type_name = rule.type_name
    if _skip(rule, value, source, type_name):
        return
    rules.required(rule, value, source, errors, options, type_name)
    if not rules.is_empty_value(value, type_name):
        rules.type_(rule, value, source, errors, options)


def any_(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """Accepts any value but still honours `required`"""
    if _skip(rule, value, source):
        return
    rules.required(rule, value, source, errors, options)


def required(rule: InternalRule, value: Value, source: Values, errors: list[str], options: ValidateOptions) -> None:
    """
    Used for rules which only define `required`. The emptiness check depends on the runtime type of the value.
    """
    if is_sequence(value):
        type_name: Optional[str] = RuleType.ARRAY.value
    elif isinstance(value, str):
        type_name = RuleType.STRING.value
    else:
        type_name = None
    rules.required(rule, value, source, errors, options, type_name)
