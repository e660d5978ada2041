"""
Contains the rule descriptors. A `RuleItem` is what users write into a schema, an `InternalRule` is the same rule
enriched with the information about where in the data it is applied. Internal rules only live for one validation run.
"""
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from frozendict import frozendict

from .types import AsyncValidatorFunction, MessageTemplate, RuleType, SyncValidatorFunction, TransformFunction


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True)
class RuleItem:
    """
    A single validation instruction for a field. All attributes are optional; a rule without `type` checks for a
    string.
    """

    type: Union[RuleType, str, None] = None
    required: bool = False
    pattern: Union[str, re.Pattern, None] = None
    min: Union[int, float, None] = None
    max: Union[int, float, None] = None
    len: Union[int, float, None] = None
    enum: Optional[tuple[Any, ...]] = None
    whitespace: bool = False
    fields: Optional[frozendict] = None
    """Maps the keys (or indices) of an object (or array) value onto their rules"""
    default_field: Any = None
    """Rule(s) applied to every key (or element) of an object (or array) value which is not covered by `fields`"""
    transform: Optional[TransformFunction] = None
    message: Optional[MessageTemplate] = None
    validator: Optional[SyncValidatorFunction] = None
    async_validator: Optional[AsyncValidatorFunction] = None
    options: Any = None
    """Validate options of the nested run (only used together with `fields` or `default_field`)"""
    localized_field: Optional[str] = None

    @property
    def type_name(self) -> Optional[str]:
        """The rule type as plain string"""
        if isinstance(self.type, RuleType):
            return self.type.value
        return self.type

    @property
    def has_custom_validator(self) -> bool:
        """True if the rule uses a custom validator instead of a type checker"""
        return self.validator is not None or self.async_validator is not None

    @property
    def is_deep(self) -> bool:
        """True if the rule describes the content of an object or array"""
        return self.type_name in (RuleType.OBJECT.value, RuleType.ARRAY.value) and (
            self.fields is not None or self.default_field is not None
        )


@dataclass(frozen=True)
class InternalRule(RuleItem):
    """
    A rule bound to a field of the validated data.
    `field` is the key in the (possibly nested) source, `full_field` the dotted path from the root, e.g.
    `address.city` or `tags.0`, and `full_fields` the segments of this path.
    """

    field: str = ""
    full_field: str = ""
    full_fields: tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        """The field name used in messages"""
        return self.localized_field or self.full_field or self.field


NormalizedRules = Mapping[str, tuple[RuleItem, ...]]
