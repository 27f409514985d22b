"""
Value comparison for drift detection.

Security groups and tags are unordered both in the EC2 API and in
Terraform, so string lists compare as multisets and string maps compare
by key. Everything else is compared structurally, and values of different
types are never equal.
"""

from dataclasses import fields, is_dataclass
from typing import Any, Mapping

from ..types import AttributeValue


def _is_string_list(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)


def _is_string_map(value: Any) -> bool:
    return isinstance(value, Mapping) and all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    )


def string_lists_equal(a: Any, b: Any) -> bool:
    """Same elements with the same multiplicity, in any order."""
    return len(a) == len(b) and sorted(a) == sorted(b)


def string_maps_equal(a: Mapping[str, str], b: Mapping[str, str]) -> bool:
    if len(a) != len(b):
        return False
    return all(k in b and b[k] == v for k, v in a.items())


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality that also requires matching types."""
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if is_dataclass(a) or is_dataclass(b):
        if type(a) is not type(b):
            return False
        return all(deep_equal(getattr(a, f.name), getattr(b, f.name)) for f in fields(a))
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(deep_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(deep_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, (list, tuple, Mapping)) or isinstance(b, (list, tuple, Mapping)):
        return False
    return a == b


def values_equal(a: AttributeValue, b: AttributeValue) -> bool:
    """
    Compare two extracted attribute values.

    Rules, first match wins:
        1. both None: equal
        2. one None: not equal
        3. both string lists: equal as multisets
        4. both string maps: equal keys and values
        5. otherwise: deep_equal

    A list on one side and a map on the other falls through to rule 5 and
    is reported as drift.
    """
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    if _is_string_list(a) and _is_string_list(b):
        return string_lists_equal(a, b)
    if _is_string_map(a) and _is_string_map(b):
        return string_maps_equal(a, b)
    return deep_equal(a, b)
