"""
This package enables you to validate form-like data declaratively. A schema maps field names onto rules; a rule may
check the type, the range, a pattern or the membership in a set of values, or run your own (async) validator.
Nested objects and arrays are validated with nested rules.
"""

from .analysis import ValidationResult
from .checkers import CHECKERS, CheckerRegistry
from .errors import ConfigurationError, UnknownRuleTypeError, ValidateError, ValidationFailed, ValidatorMisuseError
from .execution import ValidationManager
from .messages import DEFAULT_MESSAGES, ValidateMessages, format_message
from .options import ValidateOptions
from .rule import InternalRule, RuleItem
from .schema import Schema, validate
from .types import RuleType
