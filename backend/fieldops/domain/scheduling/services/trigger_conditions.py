"""
Trigger Condition Predicates

Automation triggers carry a JSON predicate that is evaluated against the
context of a domain event. The grammar:

* ``{}`` or ``None``: always true
* leaf: ``{"field": "<dotted.path>", "op": "<op>", "value": <v>}``
* composites: ``{"all": [...]}``, ``{"any": [...]}``, ``{"not": {...}}``
* shorthand: a mapping without reserved keys, one equality check per key,
  e.g. ``{"new_status": "completed"}``
"""

import operator
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

COMPOSITE_KEYS = frozenset({"all", "any", "not"})
LEAF_KEYS = frozenset({"field", "op", "value"})
RESERVED_KEYS = COMPOSITE_KEYS | LEAF_KEYS

_MISSING = object()


class InvalidConditionError(ValueError):
    """Raised when a condition predicate does not follow the grammar."""


def _ordered(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def compare(actual: Any, expected: Any) -> bool:
        if actual is _MISSING or actual is None:
            return False
        try:
            return bool(op(actual, expected))
        except TypeError:
            return False

    return compare


def _contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, str):
        return isinstance(expected, str) and expected in actual
    if isinstance(actual, list | tuple | set | frozenset | dict):
        return expected in actual
    return False


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": lambda actual, expected: actual is not _MISSING and actual == expected,
    "ne": lambda actual, expected: actual is _MISSING or actual != expected,
    "in": lambda actual, expected: actual is not _MISSING and actual in expected,
    "not_in": lambda actual, expected: actual is _MISSING or actual not in expected,
    "gt": _ordered(operator.gt),
    "gte": _ordered(operator.ge),
    "lt": _ordered(operator.lt),
    "lte": _ordered(operator.le),
    "contains": lambda actual, expected: actual is not _MISSING and _contains(actual, expected),
    "exists": lambda actual, expected: (actual is not _MISSING) == bool(expected),
}


def resolve_path(context: Mapping[str, Any], path: str) -> Any:
    """Follow a dotted path through nested mappings; ``_MISSING`` when absent."""
    current: Any = context
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return _MISSING
    if isinstance(current, Enum):
        return current.value
    return current


def validate_conditions(conditions: Any) -> None:
    """
    Check a predicate against the grammar.

    Raises:
        InvalidConditionError: If the predicate is malformed
    """
    if conditions is None:
        return
    if not isinstance(conditions, Mapping):
        raise InvalidConditionError("conditions must be an object")
    if not conditions:
        return

    keys = set(conditions)
    reserved = keys & RESERVED_KEYS

    if not reserved:
        # Shorthand equality map
        for key in keys:
            if not isinstance(key, str) or not key:
                raise InvalidConditionError("shorthand condition keys must be field paths")
        return

    if reserved & COMPOSITE_KEYS:
        if len(keys) != 1:
            raise InvalidConditionError(
                "a composite condition must contain exactly one of all/any/not"
            )
        (key,) = keys
        operand = conditions[key]
        if key == "not":
            if not isinstance(operand, Mapping):
                raise InvalidConditionError("'not' takes a single condition object")
            validate_conditions(operand)
            return
        if not isinstance(operand, list):
            raise InvalidConditionError(f"'{key}' takes a list of conditions")
        for child in operand:
            if not isinstance(child, Mapping):
                raise InvalidConditionError(f"'{key}' entries must be condition objects")
            validate_conditions(child)
        return

    # Leaf
    if keys - LEAF_KEYS:
        raise InvalidConditionError(
            f"unexpected keys in leaf condition: {sorted(keys - LEAF_KEYS)}"
        )
    field = conditions.get("field")
    op = conditions.get("op", "eq")
    if not isinstance(field, str) or not field:
        raise InvalidConditionError("leaf condition requires a 'field' path")
    if op not in OPERATORS:
        raise InvalidConditionError(
            f"unknown operator {op!r}; expected one of {sorted(OPERATORS)}"
        )
    if op != "exists" and "value" not in conditions:
        raise InvalidConditionError(f"operator {op!r} requires a 'value'")
    if op in ("in", "not_in") and not isinstance(conditions["value"], list):
        raise InvalidConditionError(f"operator {op!r} requires a list value")


def evaluate_conditions(conditions: Any, context: Mapping[str, Any]) -> bool:
    """Evaluate a validated predicate against an event context."""
    if not conditions:
        return True

    if "all" in conditions:
        return all(evaluate_conditions(c, context) for c in conditions["all"])
    if "any" in conditions:
        return any(evaluate_conditions(c, context) for c in conditions["any"])
    if "not" in conditions:
        return not evaluate_conditions(conditions["not"], context)

    if "field" in conditions:
        op = conditions.get("op", "eq")
        expected = conditions.get("value", True)
        actual = resolve_path(context, conditions["field"])
        return OPERATORS[op](actual, expected)

    return all(
        OPERATORS["eq"](resolve_path(context, path), expected)
        for path, expected in conditions.items()
    )
