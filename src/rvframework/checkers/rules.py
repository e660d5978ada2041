"""
Contains the building blocks of the type checkers. Every function takes a rule, the value, the source, the list of
error messages and the validate options, and appends a message for every violation it finds. None of them raises on
bad data.
"""
import decimal
import math
import re
from typing import Any, Callable, Mapping, Optional

from ..options import ValidateOptions
from ..rule import InternalRule
from ..types import RuleType, Value, Values
from ..utils.query_object import MISSING, has_field, is_record, is_sequence

STRING_LIKE_TYPES = frozenset(("string", "url", "hex", "email", "date", "pattern"))

# quoted local parts are allowed
_EMAIL = re.compile(
    r'(([^<>()\[\]\\.,;:\s@"]+(\.[^<>()\[\]\\.,;:\s@"]+)*)|(".+"))'
    r"@((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}])"
    r"|(([a-zA-Z\-0-9\u00a0-\ud7ff\uf900-\ufdcf\ufdf0-\uffef]+\.)+"
    r"[a-zA-Z\u00a0-\ud7ff\uf900-\ufdcf\ufdf0-\uffef]{2,}))"
)
_URL = re.compile(
    r"(?:(?:[a-z]+:)?//)"
    r"(?:\S+(?::\S*)?@)?"
    r"(?:localhost"
    r"|(?:(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]\d|\d)(?:\.(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]\d|\d)){3})"
    r"|\[[0-9a-f:]+]"
    r"|(?:(?:[a-z\u00a1-\uffff0-9]-*)*[a-z\u00a1-\uffff0-9]+)"
    r"(?:\.(?:[a-z\u00a1-\uffff0-9]-*)*[a-z\u00a1-\uffff0-9]+)*"
    r"(?:\.(?:[a-z\u00a1-\uffff]{2,}))?)"
    r"(?::\d{2,5})?"
    r"(?:[/?#][^\s\"]*)?",
    re.IGNORECASE,
)
_HEX = re.compile(r"#?([a-f0-9]{6}|[a-f0-9]{3})", re.IGNORECASE)

_MAX_EMAIL_LENGTH = 320
_MAX_URL_LENGTH = 2048


def is_empty_value(value: Value, type_name: Optional[str] = None) -> bool:
    """
    A value is empty if it is missing or None. Arrays are empty if they have no elements, string-like types if the
    value is the empty string.
    """
    if value is None or value is MISSING:
        return True
    if type_name == RuleType.ARRAY.value and is_sequence(value) and len(value) == 0:
        return True
    if type_name in STRING_LIKE_TYPES and isinstance(value, str) and value == "":
        return True
    return False


def is_number(value: Value) -> bool:
    """True for ints, floats and decimals which are not NaN. Booleans are not numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float, decimal.Decimal)):
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    if isinstance(value, decimal.Decimal) and value.is_nan():
        return False
    return True


def is_integer(value: Value) -> bool:
    """True for numbers with an integral value, e.g. `3` or `3.0`"""
    if not is_number(value):
        return False
    if isinstance(value, int):
        return True
    return math.isfinite(value) and int(value) == value


def _is_float(value: Value) -> bool:
    return is_number(value) and not is_integer(value)


def _is_regexp(value: Value) -> bool:
    if isinstance(value, re.Pattern):
        return True
    if not isinstance(value, str):
        return False
    try:
        re.compile(value)
    except (re.error, OverflowError, RecursionError):
        return False
    return True


def _is_email(value: Value) -> bool:
    return isinstance(value, str) and len(value) <= _MAX_EMAIL_LENGTH and _EMAIL.fullmatch(value) is not None


def _is_url(value: Value) -> bool:
    return isinstance(value, str) and len(value) <= _MAX_URL_LENGTH and _URL.fullmatch(value) is not None


def _is_hex(value: Value) -> bool:
    return isinstance(value, str) and _HEX.fullmatch(value) is not None


TYPE_PREDICATES: Mapping[str, Callable[[Value], bool]] = {
    RuleType.STRING.value: lambda value: isinstance(value, str),
    RuleType.NUMBER.value: is_number,
    RuleType.BOOLEAN.value: lambda value: isinstance(value, bool),
    RuleType.METHOD.value: callable,
    RuleType.REGEXP.value: _is_regexp,
    RuleType.INTEGER.value: is_integer,
    RuleType.FLOAT.value: _is_float,
    RuleType.ARRAY.value: is_sequence,
    RuleType.OBJECT.value: is_record,
    RuleType.EMAIL.value: _is_email,
    RuleType.URL.value: _is_url,
    RuleType.HEX.value: _is_hex,
}


def _field_present(rule: InternalRule, source: Values) -> bool:
    return has_field(source, rule.field)


# pylint: disable=too-many-arguments
def required(
    rule: InternalRule,
    value: Value,
    source: Values,
    errors: list[str],
    options: ValidateOptions,
    type_name: Optional[str] = None,
) -> None:
    """
    Appends the "required" message if the rule is required and the field is missing or empty.
    """
    if rule.required and (not _field_present(rule, source) or is_empty_value(value, type_name or rule.type_name)):
        errors.append(options.resolved_messages.resolve("required", rule.display_name))


def whitespace(
    rule: InternalRule,
    value: Value,
    source: Values,  # pylint: disable=unused-argument
    errors: list[str],
    options: ValidateOptions,
) -> None:
    """
    Appends the "whitespace" message if the value consists of whitespace only (or is empty).
    """
    if isinstance(value, str) and (value == "" or value.isspace()):
        errors.append(options.resolved_messages.resolve("whitespace", rule.display_name))


def type_(
    rule: InternalRule,
    value: Value,
    source: Values,
    errors: list[str],
    options: ValidateOptions,
) -> None:
    """
    Appends the type mismatch message if the value doesn't match the rule type.
    A required rule without value reports "required" instead.
    """
    if rule.required and (value is MISSING or value is None):
        required(rule, value, source, errors, options)
        return
    type_name = rule.type_name or RuleType.STRING.value
    predicate = TYPE_PREDICATES.get(type_name)
    if predicate is not None and not predicate(value):
        errors.append(options.resolved_messages.resolve(f"types.{type_name}", rule.display_name, type_name))


def _measure(value: Value) -> tuple[Optional[str], Any]:
    if is_number(value):
        return "number", value
    if isinstance(value, str):
        return "string", len(value)
    if is_sequence(value):
        return "array", len(value)
    return None, None


def range_(
    rule: InternalRule,
    value: Value,
    source: Values,  # pylint: disable=unused-argument
    errors: list[str],
    options: ValidateOptions,
) -> None:
    """
    Checks `len`, `min` and `max`. Strings and arrays are measured by their length, numbers by their value.
    If `len` is set the bounds are ignored. If both bounds are set a single "range" message is reported
    (unless `options.combine_range` is disabled).
    """
    key, measured = _measure(value)
    if key is None:
        return
    messages = options.resolved_messages
    name = rule.display_name
    if rule.len is not None:
        if measured != rule.len:
            errors.append(messages.resolve(f"{key}.len", name, rule.len))
        return
    below = rule.min is not None and measured < rule.min
    above = rule.max is not None and measured > rule.max
    if not (below or above):
        return
    if rule.min is not None and rule.max is not None and options.combine_range:
        errors.append(messages.resolve(f"{key}.range", name, rule.min, rule.max))
    elif below:
        errors.append(messages.resolve(f"{key}.min", name, rule.min))
    else:
        errors.append(messages.resolve(f"{key}.max", name, rule.max))


def _same_kind(left: Any, right: Any) -> bool:
    if is_number(left) and is_number(right):
        return True
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right)
    return isinstance(left, type(right)) or isinstance(right, type(left))


def enum(
    rule: InternalRule,
    value: Value,
    source: Values,  # pylint: disable=unused-argument
    errors: list[str],
    options: ValidateOptions,
) -> None:
    """
    Appends the "enum" message if the value is not a member of `rule.enum`. Membership is strict: `True` doesn't
    match `1` and `None` only matches if it is listed. Subclasses match their base type, e.g. a `str` enum member
    matches the equal plain string.
    """
    members = rule.enum or ()
    if value is MISSING:
        value = None
    if not any(member is value or (_same_kind(member, value) and member == value) for member in members):
        errors.append(
            options.resolved_messages.resolve("enum", rule.display_name, ", ".join(str(member) for member in members))
        )


def pattern(
    rule: InternalRule,
    value: Value,
    source: Values,  # pylint: disable=unused-argument
    errors: list[str],
    options: ValidateOptions,
) -> None:
    """
    Appends the "pattern.mismatch" message if the string representation of the value doesn't contain a match of
    `rule.pattern`.
    """
    if rule.pattern is None:
        return
    compiled = rule.pattern if isinstance(rule.pattern, re.Pattern) else re.compile(rule.pattern)
    if compiled.search(str(value)) is None:
        errors.append(
            options.resolved_messages.resolve("pattern.mismatch", rule.display_name, value, compiled.pattern)
        )
