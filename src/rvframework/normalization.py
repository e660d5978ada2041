"""
Contains the rule normalizer. It turns what users write into a schema (mappings, `RuleItem`s, plain functions or
lists of those) into canonical `RuleItem` tuples, and binds rules to the fields of the validated data.
"""
import dataclasses
import logging
import re
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from frozendict import frozendict
from typeguard import TypeCheckError, check_type

from .checkers import REQUIRED_CHECKER
from .errors import ConfigurationError, UnknownRuleTypeError
from .rule import InternalRule, NormalizedRules, RuleItem
from .types import MessageTemplate, Rule, RuleType
from .utils.query_object import field_keys

logger = logging.getLogger(__name__)

_ATTRIBUTE_TYPES: Mapping[str, Any] = {
    "type": Union[RuleType, str, None],
    "required": bool,
    "pattern": Union[str, re.Pattern, None],
    "min": Union[int, float, None],
    "max": Union[int, float, None],
    "len": Union[int, float, None],
    "enum": Optional[Sequence[Any]],
    "whitespace": bool,
    "fields": Optional[Mapping[Any, Any]],
    "default_field": Any,
    "transform": Optional[Callable[..., Any]],
    "message": Optional[MessageTemplate],
    "validator": Optional[Callable[..., Any]],
    "async_validator": Optional[Callable[..., Any]],
    "options": Any,
    "localized_field": Optional[str],
}
_RULE_ITEM_ATTRIBUTES = frozenset(rule_field.name for rule_field in dataclasses.fields(RuleItem))


def _check_attribute(name: str, value: Any) -> None:
    try:
        check_type(value, _ATTRIBUTE_TYPES[name])
    except TypeCheckError as error:
        raise ConfigurationError(f"Invalid rule attribute '{name}': {error}") from error


def _compile_pattern(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except (re.error, OverflowError, RecursionError) as error:
        raise ConfigurationError(f"Invalid rule attribute 'pattern' {pattern!r}: {error}") from error


def to_rule_item(raw: Any) -> RuleItem:
    """
    Converts a single rule into a `RuleItem`. `raw` may be a `RuleItem`, a mapping with the attribute names of
    `RuleItem` as keys, or a function which is used as `validator`. String patterns are compiled, an invalid pattern
    raises a `ConfigurationError`.
    """
    if isinstance(raw, RuleItem):
        attributes = {name: getattr(raw, name) for name in _RULE_ITEM_ATTRIBUTES}
    elif isinstance(raw, Mapping):
        unknown = set(raw) - _RULE_ITEM_ATTRIBUTES
        if unknown:
            raise ConfigurationError(f"Unknown rule attribute(s) {sorted(str(key) for key in unknown)}")
        attributes = dict(raw)
    elif callable(raw):
        return RuleItem(validator=raw)
    else:
        raise ConfigurationError(f"A rule must be a mapping, a RuleItem or a function, got {type(raw)}")
    for name, value in attributes.items():
        _check_attribute(name, value)
    if isinstance(attributes.get("pattern"), str):
        attributes["pattern"] = _compile_pattern(attributes["pattern"])
        # a compiled pattern alone would select the "pattern" checker
        if attributes.get("type") is None:
            attributes["type"] = RuleType.STRING.value
    if attributes.get("enum") is not None:
        attributes["enum"] = tuple(attributes["enum"])
    if attributes.get("fields") is not None:
        attributes["fields"] = normalize_descriptor(attributes["fields"], allow_empty=True)
    if attributes.get("default_field") is not None:
        attributes["default_field"] = to_rule_items(attributes["default_field"])
    return RuleItem(**attributes)


def to_rule_items(raw: Rule) -> tuple[RuleItem, ...]:
    """
    Converts a rule or a list of rules into a tuple of `RuleItem`s
    """
    if isinstance(raw, (list, tuple)):
        return tuple(to_rule_item(item) for item in raw)
    return (to_rule_item(raw),)


def normalize_descriptor(descriptor: Mapping[Any, Rule], allow_empty: bool = False) -> NormalizedRules:
    """
    Converts a whole schema into an immutable mapping of field names onto tuples of `RuleItem`s.
    Integer keys (list indices in nested schemas) are converted to strings.
    """
    if descriptor is None or not isinstance(descriptor, Mapping):
        raise ConfigurationError(f"Rules must be a mapping of field names onto rules, got {type(descriptor)}")
    if not descriptor and not allow_empty:
        raise ConfigurationError("Cannot configure a schema with no rules")
    return frozendict({str(name): to_rule_items(rule) for name, rule in descriptor.items()})


def _is_required_only(rule: RuleItem) -> bool:
    return rule.type is None and rule == RuleItem(required=rule.required, message=rule.message)


def resolve_type(rule: RuleItem, registry: Mapping[str, Any], field: Optional[str] = None) -> str:
    """
    Returns the name of the checker for `rule`: the rule type, "pattern" for untyped rules with a compiled pattern,
    "required" for rules which only define `required` and "string" otherwise.
    Raises an `UnknownRuleTypeError` if there is no checker for the rule type and the rule has no custom validator.
    """
    type_name = rule.type_name
    if type_name is None:
        if isinstance(rule.pattern, re.Pattern):
            type_name = RuleType.PATTERN.value
        elif _is_required_only(rule):
            return REQUIRED_CHECKER
        else:
            type_name = RuleType.STRING.value
    if type_name not in registry and not rule.has_custom_validator:
        raise UnknownRuleTypeError(type_name, field)
    return type_name


def check_rule_types(rules: NormalizedRules, registry: Mapping[str, Any], prefix: str = "") -> None:
    """
    Checks (recursively) that every rule of the schema references a known type.
    """
    for name, items in rules.items():
        path = f"{prefix}.{name}" if prefix else name
        for item in items:
            resolve_type(item, registry, path)
            if item.fields is not None:
                check_rule_types(item.fields, registry, path)
            if item.default_field is not None:
                check_rule_types({"*": item.default_field}, registry, path)


def internalize(
    rule: RuleItem, field: str, parent: Optional[InternalRule], registry: Mapping[str, Any]
) -> InternalRule:
    """
    Binds `rule` to `field`. If the rule belongs to a nested schema, `parent` is the rule of the enclosing field and
    the paths are prefixed with the parent's path.
    """
    full_fields = (*parent.full_fields, field) if parent is not None else (field,)
    checker_type = resolve_type(rule, registry, ".".join(full_fields))
    attributes = {name: getattr(rule, name) for name in _RULE_ITEM_ATTRIBUTES}
    if checker_type != REQUIRED_CHECKER:
        attributes["type"] = checker_type
    return InternalRule(
        **attributes,
        field=field,
        full_field=".".join(full_fields),
        full_fields=full_fields,
    )


def select_fields(rules: NormalizedRules, keys: Optional[Sequence[str]], warn: bool = True) -> NormalizedRules:
    """
    Returns the rules of the fields in `keys` (in schema order) or all rules if `keys` is None.
    Keys without rules are ignored.
    """
    if keys is None:
        return rules
    unknown = [key for key in keys if key not in rules]
    if unknown and warn:
        logger.warning("Ignoring key(s) without rules: %s", ", ".join(unknown))
    return frozendict({name: items for name, items in rules.items() if name in keys})


def child_rules(rule: RuleItem, value: Any) -> NormalizedRules:
    """
    Builds the schema of a nested run over `value`: every key (or index) of `value` gets the `default_field` rules,
    explicit `fields` replace them.
    """
    nested: dict[str, tuple[RuleItem, ...]] = {}
    if rule.default_field is not None:
        for key in field_keys(value):
            nested[key] = rule.default_field
    if rule.fields is not None:
        nested.update(rule.fields)
    return frozendict(nested)
