"""
Contains utility functions to access the fields of the validated data. The data may be a mapping, a list (in nested
runs) or any object with attributes (e.g. a dataclass instance).
"""
import dataclasses
from typing import Any, Iterator, Mapping, Optional, Sequence


class _Missing:
    """Marks a field which is not present in the data"""

    _instance: Optional["_Missing"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "MISSING"


MISSING: Any = _Missing()


def is_sequence(value: Any) -> bool:
    """True for lists and tuples, strings and bytes are not considered a sequence of values"""
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def is_record(value: Any) -> bool:
    """True for mappings and dataclass instances"""
    return isinstance(value, Mapping) or (dataclasses.is_dataclass(value) and not isinstance(value, type))


def _index(obj: Sequence, key: str) -> Optional[int]:
    try:
        index = int(key)
    except ValueError:
        return None
    return index if 0 <= index < len(obj) else None


def has_field(obj: Any, key: str) -> bool:
    """
    Returns True if `obj` contains `key`. For sequences `key` is the (string) index.
    """
    if isinstance(obj, Mapping):
        return key in obj
    if is_sequence(obj):
        return _index(obj, key) is not None
    if obj is None:
        return False
    return hasattr(obj, key)


def field_value(obj: Any, key: str) -> Any:
    """
    Returns the value of `key` in `obj` or `MISSING` if `obj` doesn't contain it.
    """
    if isinstance(obj, Mapping):
        return obj.get(key, MISSING)
    if is_sequence(obj):
        index = _index(obj, key)
        return MISSING if index is None else obj[index]
    if obj is None:
        return MISSING
    return getattr(obj, key, MISSING)


def field_keys(obj: Any) -> Iterator[str]:
    """
    Yields the keys of a mapping, the (string) indices of a sequence or the field names of a dataclass instance.
    """
    if isinstance(obj, Mapping):
        yield from (str(key) for key in obj.keys())
    elif is_sequence(obj):
        yield from (str(index) for index in range(len(obj)))
    elif dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        yield from (data_field.name for data_field in dataclasses.fields(obj))


def with_field(obj: Any, key: str, value: Any) -> Any:
    """
    Returns a shallow copy of `obj` in which `key` is set to `value`. Objects which can't be copied this way
    (neither mapping, list nor dataclass instance) are returned unchanged.
    """
    if isinstance(obj, Mapping):
        copied = dict(obj)
        copied[key] = value
        return copied
    if is_sequence(obj):
        index = _index(obj, key)
        if index is None:
            return obj
        copied_list = list(obj)
        copied_list[index] = value
        return tuple(copied_list) if isinstance(obj, tuple) else copied_list
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        try:
            return dataclasses.replace(obj, **{key: value})
        except TypeError:
            return obj
    return obj

