"""
Contains the table which maps rule types onto their checkers
"""
from typing import Iterator, Mapping, Optional, Union

from ..errors import ConfigurationError
from ..types import CheckerFunction, RuleType
from . import validators

REQUIRED_CHECKER = "required"
"""Name of the internal checker used for rules which only define `required`"""


class CheckerRegistry(Mapping[str, CheckerFunction]):
    """
    Maps rule type names onto checker functions. Besides the built-in rule types, applications may register their
    own types or replace built-in checkers.
    """

    def __init__(self, checkers: Optional[Mapping[str, CheckerFunction]] = None):
        self._checkers: dict[str, CheckerFunction] = dict(checkers or {})

    def register(self, type_name: Union[RuleType, str], checker: CheckerFunction) -> None:
        """
        Registers `checker` for `type_name`. An existing checker of this type gets replaced.
        """
        if not callable(checker):
            raise ConfigurationError(f"Cannot register a checker for type {type_name!r}, it is not callable")
        name = type_name.value if isinstance(type_name, RuleType) else type_name
        if not isinstance(name, str) or name == "":
            raise ConfigurationError(f"Rule type names must be non-empty strings, got {type_name!r}")
        self._checkers[name] = checker

    def unregister(self, type_name: Union[RuleType, str]) -> None:
        """
        Removes the checker of `type_name`. Built-in types can't be removed but only be replaced.
        """
        name = type_name.value if isinstance(type_name, RuleType) else type_name
        if name in BUILTIN_CHECKERS:
            raise ConfigurationError(f"The checker of the built-in type {name!r} can't be removed")
        self._checkers.pop(name, None)

    def copy(self) -> "CheckerRegistry":
        """Returns an independent copy of this registry"""
        return CheckerRegistry(self._checkers)

    def __getitem__(self, type_name: str) -> CheckerFunction:
        return self._checkers[type_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._checkers)

    def __len__(self) -> int:
        return len(self._checkers)

    def __repr__(self):
        return f"CheckerRegistry({sorted(self._checkers)})"


BUILTIN_CHECKERS: Mapping[str, CheckerFunction] = {
    RuleType.STRING.value: validators.string,
    RuleType.NUMBER.value: validators.number,
    RuleType.BOOLEAN.value: validators.boolean,
    RuleType.METHOD.value: validators.method,
    RuleType.REGEXP.value: validators.regexp,
    RuleType.INTEGER.value: validators.integer,
    RuleType.FLOAT.value: validators.float_,
    RuleType.ARRAY.value: validators.array,
    RuleType.OBJECT.value: validators.object_,
    RuleType.ENUM.value: validators.enum,
    RuleType.DATE.value: validators.date,
    RuleType.URL.value: validators.typed_string,
    RuleType.HEX.value: validators.typed_string,
    RuleType.EMAIL.value: validators.typed_string,
    RuleType.PATTERN.value: validators.pattern,
    RuleType.ANY.value: validators.any_,
    REQUIRED_CHECKER: validators.required,
}

CHECKERS = CheckerRegistry(BUILTIN_CHECKERS)
"""The process wide checker table used by all schemas"""
