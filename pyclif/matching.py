"""Structural patterns: partial-subset matching and specificity.

A pattern is either a mapping or a class:

- `{"ns": "io", "op": "read"}` matches any mapping having *at least* those
  keys with equal values, nested mappings being compared the same way;
- `ValueError` matches instances of `ValueError`.

Raised errors are matched through their normalized failure fields (see
`Fail.from_error`), so `{"ns": "failure"}` matches every error and
`{"ns": "io", "path": "a"}` matches `Fail({"ns": "io", "path": "a"})`.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, TypeAlias

from .models import Fail

__all__ = ["Pattern", "freeze", "is_pattern", "matches", "specificity"]

Pattern: TypeAlias = Mapping[str, Any] | type


def is_pattern(value: object) -> bool:
    """Tell if `value` can be registered as a pattern."""
    return isinstance(value, (Mapping, type))


def freeze(pattern: Pattern) -> Pattern:
    """Return a private read-only copy of `pattern`."""
    if isinstance(pattern, type):
        return pattern
    return MappingProxyType({key: freeze(value) if isinstance(value, Mapping) else copy.deepcopy(value) for key, value in pattern.items()})


def _as_mapping(candidate: object) -> Mapping[str, Any] | None:
    if isinstance(candidate, Mapping):
        return candidate
    if isinstance(candidate, BaseException):
        return Fail.from_error(candidate).fields
    return None


def _subset(pattern: Mapping[str, Any], candidate: Mapping[str, Any]) -> bool:
    for key, expected in pattern.items():
        if key not in candidate:
            return False
        actual = candidate[key]
        if isinstance(expected, Mapping):
            if not isinstance(actual, Mapping) or not _subset(expected, actual):
                return False
        elif actual != expected:
            return False
    return True


def matches(pattern: Pattern, candidate: object) -> bool:
    """Tell if `candidate` is matched by `pattern`.

    Args:
        pattern: A mapping (subset containment) or a class (isinstance)
        candidate: An intent, a raised error or any value

    Returns:
        True when every key of the pattern is found in the candidate with an equal value
    """
    if isinstance(pattern, type):
        return isinstance(candidate, pattern)
    if not pattern:
        return True
    view = _as_mapping(candidate)
    return view is not None and _subset(pattern, view)


def _leaves_and_depth(pattern: Mapping[str, Any]) -> tuple[int, int]:
    leaves = 0
    depth = 1 if pattern else 0
    for value in pattern.values():
        if isinstance(value, Mapping) and value:
            sub_leaves, sub_depth = _leaves_and_depth(value)
            leaves += sub_leaves
            depth = max(depth, sub_depth + 1)
        else:
            leaves += 1
    return leaves, depth


def specificity(pattern: Pattern) -> tuple[int, int]:
    """Return a sort key, higher means more specific.

    Mappings rank by (number of leaf keys, nesting depth), classes rank
    below any non-empty mapping, deeper subclasses first.
    """
    if isinstance(pattern, type):
        return (0, len(pattern.__mro__))
    return _leaves_and_depth(pattern)
