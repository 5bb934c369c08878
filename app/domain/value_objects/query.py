"""Query value objects: field/composite filters, ordering and the executable plan.

A QueryPlan is engine-neutral. The in-memory engine evaluates it directly via
QueryPlan.apply(); other engines may translate it into native primitives and
fall back to apply() for operators they cannot express.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union

from app.domain.enums import CompositeOperator, FilterOperator, SortDirection

_MISSING = object()

# Cross-type ordering, lowest first: null < bool < number < timestamp < string < bytes < array < map.
_TYPE_RANK: tuple[tuple[type, int], ...] = (
    (bool, 1),
    (int, 2),
    (float, 2),
    (datetime, 3),
    (str, 4),
    (bytes, 5),
    (list, 6),
    (dict, 7),
)


def resolve_field(doc: dict[str, Any], field_path: str) -> Any:
    """Return the value at a dotted field path, or the _MISSING sentinel.

    ``__name__`` addresses the document identifier.
    """
    if field_path == "__name__":
        return doc.get("_id", _MISSING)
    current: Any = doc
    for part in field_path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _type_rank(value: Any) -> int:
    if value is None:
        return 0
    for typ, rank in _TYPE_RANK:
        if isinstance(value, typ):
            return rank
    return 8


def values_equal(left: Any, right: Any) -> bool:
    """Equality that keeps typed-value kinds apart (``True`` is not ``1``).

    Integers and doubles compare numerically; arrays and maps compare element-wise.
    """
    if _type_rank(left) != _type_rank(right):
        return False
    if isinstance(left, list):
        return len(left) == len(right) and all(values_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, dict):
        return left.keys() == right.keys() and all(values_equal(left[k], right[k]) for k in left)
    try:
        return bool(left == right)
    except TypeError:
        return False


def _compare(left: Any, right: Any, op: FilterOperator) -> bool:
    # Range filters only match values of the same kind.
    if _type_rank(left) != _type_rank(right):
        return False
    try:
        if op == FilterOperator.LESS_THAN:
            return left < right
        if op == FilterOperator.LESS_THAN_OR_EQUAL:
            return left <= right
        if op == FilterOperator.GREATER_THAN:
            return left > right
        if op == FilterOperator.GREATER_THAN_OR_EQUAL:
            return left >= right
    except TypeError:
        return False
    raise ValueError(f"Not a comparison operator: {op}")


def sort_key(value: Any) -> tuple[int, Any]:
    """Total-order key across mixed value types (missing sorts first)."""
    if value is _MISSING:
        return (-1, 0)
    if value is None:
        return (0, 0)
    for typ, rank in _TYPE_RANK:
        if isinstance(value, typ):
            if rank >= 6:
                return (rank, repr(value))
            if isinstance(value, datetime):
                # Naive and aware datetimes cannot be compared directly.
                return (rank, value.isoformat())
            return (rank, value)
    return (8, repr(value))


@dataclass(frozen=True)
class FieldFilter:
    """Single-field predicate: ``field_path <op> value``."""

    field_path: str
    op: FilterOperator
    value: Any

    def matches(self, doc: dict[str, Any]) -> bool:
        actual = resolve_field(doc, self.field_path)
        if actual is _MISSING:
            return False
        op = self.op
        if op == FilterOperator.EQUAL:
            return values_equal(actual, self.value)
        if op == FilterOperator.NOT_EQUAL:
            return not values_equal(actual, self.value)
        if op == FilterOperator.ARRAY_CONTAINS:
            return isinstance(actual, list) and any(values_equal(item, self.value) for item in actual)
        if op == FilterOperator.IN:
            return any(values_equal(actual, candidate) for candidate in self.value)
        if op == FilterOperator.NOT_IN:
            return not any(values_equal(actual, candidate) for candidate in self.value)
        if op == FilterOperator.MATCHES:
            return isinstance(actual, str) and re.search(
                self.value, actual, re.IGNORECASE
            ) is not None
        return _compare(actual, self.value, op)


@dataclass(frozen=True)
class CompositeFilter:
    """Conjunction or disjunction of nested filters."""

    op: CompositeOperator
    filters: tuple["Filter", ...]

    def matches(self, doc: dict[str, Any]) -> bool:
        if self.op == CompositeOperator.AND:
            return all(f.matches(doc) for f in self.filters)
        return any(f.matches(doc) for f in self.filters)


Filter = Union[FieldFilter, CompositeFilter]


@dataclass(frozen=True)
class OrderBy:
    field_path: str
    direction: SortDirection = SortDirection.ASCENDING


@dataclass(frozen=True)
class QueryPlan:
    """Executable query against one collection: filter, then order, then limit."""

    collection: str
    where: Filter | None = None
    order_by: tuple[OrderBy, ...] = field(default_factory=tuple)
    limit: int | None = None

    def uses_operator(self, op: FilterOperator) -> bool:
        """Return True if any field filter in the tree uses op."""

        def _walk(f: Filter | None) -> bool:
            if f is None:
                return False
            if isinstance(f, FieldFilter):
                return f.op == op
            return any(_walk(child) for child in f.filters)

        return _walk(self.where)

    def apply(self, docs: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
        """Evaluate the plan over records (each with ``_id``) and return matches."""
        results = [d for d in docs if self.where is None or self.where.matches(d)]
        # Stable sorts applied last-key-first give a lexicographic multi-key order.
        for order in reversed(self.order_by):
            results.sort(
                key=lambda d, path=order.field_path: sort_key(resolve_field(d, path)),
                reverse=order.direction == SortDirection.DESCENDING,
            )
        if self.limit is not None and self.limit > 0:
            results = results[: self.limit]
        return results
