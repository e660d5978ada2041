"""
Contains the error types of the validation framework. Validation errors describe bad data and are collected,
configuration errors describe a broken schema or a misbehaving validator and are raised (or reported) immediately.
"""
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class ValidateError:
    """
    One failed check of one field. A field may collect several of these unless early stop options truncate it.
    """

    message: str
    field: Optional[str] = None
    field_value: Any = None

    def __str__(self):
        return f"{self.field}: {self.message}" if self.field is not None else self.message


class ConfigurationError(Exception):
    """
    Raised if a schema, a rule or the validation options are malformed. This indicates a bug in the schema
    definition and not bad input data.
    """


class UnknownRuleTypeError(ConfigurationError):
    """
    Raised if a rule references a type for which no checker is registered.
    """

    def __init__(self, type_name: str, field: Optional[str] = None):
        self.type_name = type_name
        self.field = field
        location = f" (field '{field}')" if field is not None else ""
        super().__init__(f"Unknown rule type {type_name!r}{location}")


class ValidatorMisuseError(ConfigurationError):
    """
    Describes a custom validator which violated the calling convention, e.g. a synchronous `validator` returning an
    awaitable or a value which is neither a result nor an error. These are reported at the call boundary instead of
    crashing the validation run.
    """

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class ValidationFailed(Exception):
    """
    Raised by `Schema.validate` (if no callback is supplied) when at least one rule failed.
    `errors` is the flat ordered list, `fields` maps every failed field path onto its errors.
    """

    def __init__(self, errors: list[Any], fields: dict[str, list[Any]]):
        self.errors = errors
        self.fields = fields
        super().__init__(f"Validation failed with {len(errors)} error(s)")

    def __str__(self):
        return "\n".join(str(error) for error in self.errors) or super().__str__()
