"""
Contains the per call configuration of a validation run
"""
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Mapping, Optional, Union

from typeguard import TypeCheckError, check_type

from .errors import ConfigurationError
from .messages import ValidateMessages


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True)
class ValidateOptions:
    """
    Options of a single validation run.

    * `first`: Complete the run as soon as the first rule of any field fails. Only this error is reported.
    * `first_fields`: Stop executing the rules of a field once one of them failed. `True` applies to all fields,
      a sequence of field names restricts it to these fields.
    * `keys`: Only validate these fields of the schema.
    * `messages`: Partial message catalog merged over the schema's catalog for this run.
    * `suppress_warning`: Don't log warnings, e.g. about unknown `keys`.
    * `suppress_validator_error`: Don't log (and don't collect) custom validators misbehaving.
    * `error`: Factory `(rule, message) -> error` to build application specific error objects.
    * `combine_range`: Report a single "range" message if a value violates a rule with both `min` and `max`.
      If disabled the matching "min" or "max" message is reported instead.
    """

    first: bool = False
    first_fields: Union[bool, tuple[str, ...]] = False
    keys: Optional[tuple[str, ...]] = None
    messages: Union[ValidateMessages, Mapping[str, Any], None] = None
    suppress_warning: bool = False
    suppress_validator_error: bool = False
    error: Optional[Callable[..., Any]] = None
    combine_range: bool = True
    resolved_messages: ValidateMessages = field(default_factory=ValidateMessages, compare=False, repr=False)
    """The complete catalog of the run. It is set by the framework; setting it yourself has no effect."""

    def __post_init__(self):
        # lists are stored as tuples
        if isinstance(self.first_fields, list):
            object.__setattr__(self, "first_fields", tuple(self.first_fields))
        if isinstance(self.keys, list):
            object.__setattr__(self, "keys", tuple(self.keys))
        for option in fields(self):
            if option.name == "resolved_messages":
                continue
            try:
                check_type(getattr(self, option.name), option.type)
            except TypeCheckError as error:
                raise ConfigurationError(f"Invalid validate option '{option.name}': {error}") from error

    @classmethod
    def from_value(cls, options: Union["ValidateOptions", Mapping[str, Any], None]) -> "ValidateOptions":
        """
        Returns the options described by `options` which may be an instance of this class, a mapping with the same
        keys or None (all defaults).
        """
        if options is None:
            return cls()
        if isinstance(options, ValidateOptions):
            return options
        if not isinstance(options, Mapping):
            raise ConfigurationError(f"Validate options must be a mapping or ValidateOptions, got {type(options)}")
        known = {option.name for option in fields(cls)} - {"resolved_messages"}
        unknown = set(options) - known
        if unknown:
            raise ConfigurationError(f"Unknown validate option(s) {sorted(unknown)}")
        return cls(**options)

    def applies_first_fields(self, field_name: str) -> bool:
        """Returns True if the rules of `field_name` have to stop after the first failing rule"""
        if isinstance(self.first_fields, bool):
            return self.first_fields
        return field_name in self.first_fields

    def with_messages(self, messages: ValidateMessages) -> "ValidateOptions":
        """Returns a copy whose `resolved_messages` are `messages`"""
        return replace(self, resolved_messages=messages)

    def for_nested_run(self, nested: Union["ValidateOptions", Mapping[str, Any], None] = None) -> "ValidateOptions":
        """
        Returns the options of a nested run. `keys` only apply on the top level. If the rule defines its own
        `nested` options, these are used but the catalog and the error factory are inherited.
        """
        if nested is None:
            return replace(self, keys=None)
        nested_options = ValidateOptions.from_value(nested)
        return replace(
            nested_options,
            keys=None,
            error=nested_options.error or self.error,
            resolved_messages=self.resolved_messages.with_overrides(nested_options.messages),
        )
