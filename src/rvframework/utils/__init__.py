"""
Contains utility functions to access the validated data
"""
from .query_object import MISSING, field_keys, field_value, has_field, with_field
