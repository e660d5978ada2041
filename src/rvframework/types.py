"""
Contains the types used in the validation framework
"""
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Optional, Sequence, TypeAlias, Union

if TYPE_CHECKING:
    from .errors import ValidateError
    from .options import ValidateOptions
    from .rule import InternalRule, RuleItem


class RuleType(str, Enum):
    """
    The fixed set of built-in rule types. Every member has a checker registered in `rvframework.checkers.CHECKERS`.
    """

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    METHOD = "method"
    REGEXP = "regexp"
    INTEGER = "integer"
    FLOAT = "float"
    ARRAY = "array"
    OBJECT = "object"
    ENUM = "enum"
    DATE = "date"
    URL = "url"
    HEX = "hex"
    EMAIL = "email"
    PATTERN = "pattern"
    ANY = "any"


Value: TypeAlias = Any
Values: TypeAlias = Any
"""Any mapping, dataclass instance or attribute-bearing object. Nested runs may also validate lists."""

MessageTemplate: TypeAlias = Union[str, Callable[..., str]]
SyncErrorType: TypeAlias = Union[Exception, str]
ErrorInput: TypeAlias = Union[SyncErrorType, Sequence[SyncErrorType], None]
ValidatorCallback: TypeAlias = Callable[..., None]

SyncValidatorFunction: TypeAlias = Callable[
    ["InternalRule", Value, ValidatorCallback, Values, "ValidateOptions"],
    Union[bool, SyncErrorType, Sequence[SyncErrorType], None],
]
AsyncValidatorFunction: TypeAlias = Callable[
    ["InternalRule", Value, ValidatorCallback, Values, "ValidateOptions"], Optional[Awaitable[None]]
]
CheckerFunction: TypeAlias = Callable[["InternalRule", Value, Values, list[str], "ValidateOptions"], None]
TransformFunction: TypeAlias = Callable[[Value], Value]

Rule: TypeAlias = Union["RuleItem", Mapping[str, Any], Callable[..., Any], Sequence[Any]]
Rules: TypeAlias = Mapping[str, Rule]
ValidateFieldsError: TypeAlias = dict[str, list["ValidateError"]]
ValidateCallback: TypeAlias = Callable[[Optional[list[Any]], Any], None]
