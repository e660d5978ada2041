"""
Contains the built-in type checkers and the table mapping rule types onto them
"""
from .registry import BUILTIN_CHECKERS, CHECKERS, REQUIRED_CHECKER, CheckerRegistry
from .rules import is_empty_value
