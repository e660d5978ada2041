"""
Contains the message catalog. A catalog maps (nested) message keys like `types.string` or `string.min` onto templates.
A template is either a string with printf-like placeholders or a callable which receives the placeholder values as
positional arguments.
"""
import json
import re
from typing import Any, Mapping, Optional, Union

from frozendict import frozendict

from .errors import ConfigurationError
from .types import MessageTemplate

_PLACEHOLDER = re.compile(r"%[sdj%]")

_TYPE_TEMPLATE = "%s is not a %s"

DEFAULT_MESSAGES: Mapping[str, Any] = {
    "default": "Validation error on field %s",
    "required": "%s is required",
    "enum": "%s must be one of %s",
    "whitespace": "%s cannot be empty",
    "date": {
        "format": "%s date %s is invalid for format %s",
        "parse": "%s date could not be parsed, %s is invalid ",
        "invalid": "%s date %s is invalid",
    },
    "types": {
        type_name: _TYPE_TEMPLATE
        for type_name in (
            "string",
            "method",
            "array",
            "object",
            "number",
            "date",
            "boolean",
            "integer",
            "float",
            "regexp",
            "email",
            "url",
            "hex",
        )
    },
    "string": {
        "len": "%s must be exactly %s characters",
        "min": "%s must be at least %s characters",
        "max": "%s cannot be longer than %s characters",
        "range": "%s must be between %s and %s characters",
    },
    "number": {
        "len": "%s must equal %s",
        "min": "%s cannot be less than %s",
        "max": "%s cannot be greater than %s",
        "range": "%s must be between %s and %s",
    },
    "array": {
        "len": "%s must be exactly %s in length",
        "min": "%s cannot be less than %s in length",
        "max": "%s cannot be greater than %s in length",
        "range": "%s must be between %s and %s in length",
    },
    "pattern": {
        "mismatch": "%s value %s does not match pattern %s",
    },
}


def _json(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return "[Circular]"


def _number(value: Any) -> str:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return "NaN"
    return str(int(number)) if number.is_integer() else str(number)


def format_message(template: Optional[MessageTemplate], *args: Any) -> str:
    """
    Renders a template with positional arguments.
    Callables are invoked with all arguments. In strings `%s` is replaced by `str(arg)`, `%d` by the numeric value,
    `%j` by the JSON representation and `%%` by a literal percent sign. Placeholders without a matching argument are
    kept as they are, surplus arguments are ignored.
    """
    if template is None:
        return ""
    if callable(template):
        return template(*args)
    remaining = iter(args)

    def _replace(match: re.Match) -> str:
        token = match.group(0)
        if token == "%%":
            return "%"
        try:
            arg = next(remaining)
        except StopIteration:
            return token
        if token == "%s":
            return str(arg)
        if token == "%d":
            return _number(arg)
        return _json(arg)

    return _PLACEHOLDER.sub(_replace, str(template))


def _freeze(catalog: Mapping[str, Any]) -> frozendict:
    return frozendict(
        {key: _freeze(value) if isinstance(value, Mapping) else value for key, value in catalog.items()}
    )


def _thaw(catalog: Mapping[str, Any]) -> dict[str, Any]:
    return {key: _thaw(value) if isinstance(value, Mapping) else value for key, value in catalog.items()}


def _merge(base: Mapping[str, Any], overrides: Mapping[str, Any], path: str = "") -> dict[str, Any]:
    merged: dict[str, Any] = dict(base)
    for key, value in overrides.items():
        key_path = f"{path}.{key}" if path else key
        if isinstance(value, Mapping):
            current = base.get(key)
            if current is not None and not isinstance(current, Mapping):
                raise ConfigurationError(f"Message {key_path!r} is a template and can't be overridden by a mapping")
            merged[key] = _merge(current or {}, value, key_path)
        elif value is None:
            continue
        elif isinstance(value, str) or callable(value):
            if isinstance(base.get(key), Mapping):
                raise ConfigurationError(f"Message group {key_path!r} can't be overridden by a single template")
            merged[key] = value
        else:
            raise ConfigurationError(f"Message {key_path!r} must be a string or a callable, got {type(value)}")
    return merged


def _lookup(catalog: Mapping[str, Any], path: str) -> Optional[MessageTemplate]:
    node: Any = catalog
    for key in path.split("."):
        if not isinstance(node, Mapping) or key not in node:
            return None
        node = node[key]
    if isinstance(node, Mapping):
        return None
    return node


class ValidateMessages:
    """
    An immutable message catalog. Overrides never change an existing catalog but return a new one, hence a catalog
    can be shared by concurrent validation runs.
    """

    def __init__(self, catalog: Optional[Mapping[str, Any]] = None):
        self._catalog: frozendict = _freeze(DEFAULT_MESSAGES if catalog is None else catalog)

    @classmethod
    def for_locale(cls, locale: str) -> "ValidateMessages":
        """
        Returns the bundled catalog of the given locale (e.g. "en" or "de").
        """
        # pylint: disable=import-outside-toplevel
        from .locales import LOCALE_MESSAGES

        try:
            return cls(LOCALE_MESSAGES[locale])
        except KeyError as error:
            raise ConfigurationError(
                f"No messages bundled for locale {locale!r}. Available: {', '.join(sorted(LOCALE_MESSAGES))}"
            ) from error

    def with_overrides(self, overrides: Union["ValidateMessages", Mapping[str, Any], None]) -> "ValidateMessages":
        """
        Returns a new catalog in which every leaf of `overrides` replaces the corresponding leaf of this catalog.
        Leaves which are not overridden are kept.
        """
        if overrides is None:
            return self
        if isinstance(overrides, ValidateMessages):
            overrides = overrides._catalog
        if not isinstance(overrides, Mapping):
            raise ConfigurationError(f"Message overrides must be a mapping, got {type(overrides)}")
        return ValidateMessages(_merge(self._catalog, overrides))

    def clone(self) -> "ValidateMessages":
        """Returns an independent copy of this catalog"""
        return ValidateMessages(self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        """Returns the catalog as (mutable) nested dictionaries"""
        return _thaw(self._catalog)

    def get(self, path: str) -> Optional[MessageTemplate]:
        """
        Returns the template at the dotted `path`, falling back to the built-in default catalog.
        """
        template = _lookup(self._catalog, path)
        if template is None:
            template = _lookup(DEFAULT_MESSAGES, path)
        return template

    def resolve(self, path: str, *args: Any) -> str:
        """
        Renders the template at `path` with the positional `args`. If neither this catalog nor the defaults define
        `path`, the `default` template is used.
        """
        template = self.get(path)
        if template is None:
            template = self.get("default")
        return format_message(template, *args)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and _lookup(self._catalog, path) is not None

    def __eq__(self, other):
        return isinstance(other, ValidateMessages) and self._catalog == other._catalog

    def __repr__(self):
        return f"ValidateMessages({self.to_dict()!r})"
