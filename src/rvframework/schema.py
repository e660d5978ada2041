"""
Contains the `Schema` which is the entry point of the framework. A schema maps field names onto rules and validates
data sets against them.
"""
import logging
from typing import Any, ClassVar, Mapping, Optional, Union

from .analysis import ValidationResult
from .checkers import CHECKERS, CheckerRegistry
from .errors import ValidationFailed
from .execution import ValidationManager
from .messages import ValidateMessages
from .normalization import check_rule_types, normalize_descriptor
from .options import ValidateOptions
from .rule import NormalizedRules
from .types import CheckerFunction, RuleType, Rules, ValidateCallback, Values

logger = logging.getLogger(__name__)

OptionsInput = Union[ValidateOptions, Mapping[str, Any], None]


class Schema:
    """
    A validation schema. Create it with a mapping of field names onto rules, e.g.:
    ```
    schema = Schema(
        {
            "name": {"type": "string", "required": True, "min": 2},
            "age": [{"type": "integer"}, {"type": "number", "min": 18}],
            "address": {"type": "object", "fields": {"city": {"required": True}}},
        }
    )
    data = await schema.validate({"name": "Jo", "age": 42, "address": {"city": "Köln"}})
    ```
    """

    checkers: ClassVar[CheckerRegistry] = CHECKERS
    """The table of type checkers shared by all schemas"""
    _global_messages: ClassVar[ValidateMessages] = ValidateMessages()

    def __init__(self, descriptor: Rules):
        self.rules: NormalizedRules = {}
        self._messages: Optional[ValidateMessages] = None
        self.define(descriptor)

    def define(self, descriptor: Rules) -> None:
        """
        Replaces the rules of this schema. Raises a `ConfigurationError` if the descriptor is malformed or references
        an unknown rule type.
        """
        rules = normalize_descriptor(descriptor)
        check_rule_types(rules, self.checkers)
        self.rules = rules

    def messages(self, overrides: Union[ValidateMessages, Mapping[str, Any], None] = None) -> ValidateMessages:
        """
        Returns the message catalog of this schema. If `overrides` are given, they are merged over the global
        catalog and the result becomes the catalog of this schema.
        """
        if overrides is not None:
            self._messages = Schema._global_messages.with_overrides(overrides)
        return self._messages if self._messages is not None else Schema._global_messages

    @staticmethod
    def set_global_messages(overrides: Union[ValidateMessages, Mapping[str, Any]]) -> None:
        """Merges `overrides` over the default catalog and uses the result for all schemas without own messages"""
        Schema._global_messages = ValidateMessages().with_overrides(overrides)

    @staticmethod
    def reset_global_messages() -> None:
        """Restores the default catalog for all schemas without own messages"""
        Schema._global_messages = ValidateMessages()

    @classmethod
    def register(cls, type_name: Union[RuleType, str], checker: CheckerFunction) -> None:
        """
        Registers a checker for `type_name` which can be used by all schemas. Use it to add own rule types or to
        replace a built-in checker. The checker is called as `checker(rule, value, source, errors, options)` and
        appends its messages to `errors`.
        """
        cls.checkers.register(type_name, checker)

    @classmethod
    def unregister(cls, type_name: Union[RuleType, str]) -> None:
        """Removes a checker registered with `register`"""
        cls.checkers.unregister(type_name)

    def _run_options(self, options: OptionsInput) -> ValidateOptions:
        run_options = ValidateOptions.from_value(options)
        return run_options.with_messages(self.messages().with_overrides(run_options.messages))

    async def run(self, source: Values, options: OptionsInput = None) -> tuple[Values, ValidationResult]:
        """
        Validates `source` and returns the (transformed) source together with the complete `ValidationResult`.
        Unlike `validate` this never raises `ValidationFailed`.
        """
        run_options = self._run_options(options)
        manager = ValidationManager(self.rules, run_options, registry=self.checkers)
        resolved_source, result = await manager.validate(source)
        if result.errors is not None:
            logger.debug("Validation failed for field(s) %s", ", ".join(result.failed_fields))
        return resolved_source, result

    async def validate(
        self,
        source: Values,
        options: OptionsInput = None,
        callback: Optional[ValidateCallback] = None,
    ) -> Values:
        """
        Validates `source` against the rules of this schema and returns the source (including transformed values).

        Without `callback` a `ValidationFailed` exception carrying `errors` (flat list) and `fields` (errors per field
        path) is raised if any rule failed.
        With `callback` the outcome is reported as `callback(errors, fields)` or `callback(None, source)` on success,
        and no `ValidationFailed` is raised.
        """
        resolved_source, result = await self.run(source, options)
        if callback is not None:
            if result.errors is None:
                callback(None, resolved_source)
            else:
                callback(result.errors, result.fields)
            return resolved_source
        if result.errors is not None:
            raise ValidationFailed(result.errors, result.fields)
        return resolved_source


async def validate(
    schema: Union[Schema, Rules],
    source: Values,
    options: OptionsInput = None,
    callback: Optional[ValidateCallback] = None,
) -> Values:
    """
    Validates `source` against `schema` which may be a `Schema` or a mapping of field names onto rules.
    See `Schema.validate`.
    """
    if not isinstance(schema, Schema):
        schema = Schema(schema)
    return await schema.validate(source, options, callback)
