"""
Safe nested lookups over decoded JSON documents.

API responses are treated as untyped trees: a missing key or a value of the
wrong shape anywhere along a path is an ordinary outcome, reported with the
``MISSING`` sentinel instead of an exception.
"""

from collections.abc import Mapping
from typing import Any, Iterable, Sequence


class _Missing:
    """Sentinel type for a path that does not resolve"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def get_nested(value: Any, keys: Sequence[Any]) -> Any:
    """
    Follow ``keys`` into ``value`` one step at a time.

    Mappings are indexed by key, lists and tuples by integer position.
    Strings, bytes and every other type are leaves.

    Args:
        value: Decoded document (dicts, lists, scalars)
        keys: Ordered keys to follow

    Returns:
        The value reached, ``value`` itself for an empty key list, or
        ``MISSING`` as soon as a step cannot be taken.

    Example:
        >>> get_nested({"a": {"b": [10, 20]}}, ["a", "b", 1])
        20
        >>> get_nested({"a": None}, ["a", "b"])
        MISSING
    """
    current = value
    for key in keys:
        if isinstance(current, Mapping):
            try:
                if key not in current:
                    return MISSING
            except TypeError:
                # unhashable key
                return MISSING
            current = current[key]
        elif isinstance(current, (list, tuple)):
            if isinstance(key, bool) or not isinstance(key, int):
                return MISSING
            if not -len(current) <= key < len(current):
                return MISSING
            current = current[key]
        else:
            return MISSING
    return current


def is_present(value: Any) -> bool:
    """True for anything except ``MISSING``, ``None`` and the empty string"""
    return value is not MISSING and value is not None and value != ""


def first_present(value: Any, paths: Iterable[Sequence[Any]]) -> Any:
    """
    Try each candidate path in order and return the first usable value.

    Args:
        value: Decoded document
        paths: Candidate key paths, most preferred first

    Returns:
        The first value that ``is_present``, else ``MISSING``
    """
    for path in paths:
        found = get_nested(value, path)
        if is_present(found):
            return found
    return MISSING
