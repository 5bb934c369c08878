"""Structured query translation.

Converts a Firestore-style ``structuredQuery`` body (or the simpler tuple
form used by the task data API) into an engine-neutral QueryPlan.
"""

import re
from collections.abc import Iterable
from typing import Any

from app.application.services.identifier_validator import validate_collection_name
from app.domain.enums import CompositeOperator, FilterOperator, SortDirection
from app.domain.exceptions import InvalidQueryException
from app.domain.value_objects.query import (
    CompositeFilter,
    FieldFilter,
    Filter,
    OrderBy,
    QueryPlan,
)
from app.shared.utils.typed_values import decode_value

# Shorthand operators accepted by context.data queries inside tasks.
SIMPLE_OPERATORS: dict[str, FilterOperator] = {
    "==": FilterOperator.EQUAL,
    "!=": FilterOperator.NOT_EQUAL,
    "<": FilterOperator.LESS_THAN,
    "<=": FilterOperator.LESS_THAN_OR_EQUAL,
    ">": FilterOperator.GREATER_THAN,
    ">=": FilterOperator.GREATER_THAN_OR_EQUAL,
    "in": FilterOperator.IN,
    "not-in": FilterOperator.NOT_IN,
    "array-contains": FilterOperator.ARRAY_CONTAINS,
    "contains": FilterOperator.MATCHES,
    "matches": FilterOperator.MATCHES,
}


def _field_filter(field_path: Any, op_name: Any, value: Any) -> FieldFilter:
    """Build a validated FieldFilter. Raises ValueError on any problem."""
    if not isinstance(field_path, str) or not field_path:
        raise ValueError("Field filter requires a field path")
    if op_name not in FilterOperator.values():
        raise ValueError(f"Unsupported filter operator: {op_name}")
    op = FilterOperator(op_name)
    if op in (FilterOperator.IN, FilterOperator.NOT_IN) and not isinstance(value, list):
        raise ValueError(f"{op.value} requires an array value")
    if op == FilterOperator.MATCHES:
        if not isinstance(value, str):
            raise ValueError("MATCHES requires a string pattern")
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"Invalid MATCHES pattern: {e}") from e
    return FieldFilter(field_path=field_path, op=op, value=value)


def _as_object(value: Any, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be an object")
    return value


def _decode_filter_value(value: Any) -> Any:
    try:
        return decode_value(value)
    except (TypeError, ValueError, AttributeError) as e:
        raise ValueError(f"Invalid filter value: {e}") from e


def translate_filter(where: dict[str, Any]) -> Filter:
    """Translate a ``where`` clause, recursing into composite filters.

    Raises:
        ValueError: Unsupported operator or malformed clause.
    """
    if not isinstance(where, dict):
        raise ValueError("Filter must be an object")
    if "fieldFilter" in where:
        ff = _as_object(where["fieldFilter"], "fieldFilter")
        field_path = _as_object(ff.get("field"), "fieldFilter.field").get("fieldPath")
        return _field_filter(field_path, ff.get("op"), _decode_filter_value(ff.get("value")))
    if "compositeFilter" in where:
        cf = _as_object(where["compositeFilter"], "compositeFilter")
        op_name = cf.get("op")
        if op_name not in (CompositeOperator.AND.value, CompositeOperator.OR.value):
            raise ValueError(f"Unsupported composite operator: {op_name}")
        children = cf.get("filters") or []
        if not isinstance(children, list):
            raise ValueError("compositeFilter.filters must be an array")
        if not children:
            raise ValueError("Composite filter requires at least one filter")
        return CompositeFilter(
            op=CompositeOperator(op_name),
            filters=tuple(translate_filter(child) for child in children),
        )
    raise ValueError("Filter must contain 'fieldFilter' or 'compositeFilter'")


def _translate_order_by(order_by: Any) -> tuple[OrderBy, ...]:
    if not order_by:
        return ()
    clauses = order_by if isinstance(order_by, list) else [order_by]
    orders: list[OrderBy] = []
    for clause in clauses:
        if not isinstance(clause, dict) or not isinstance(clause.get("field"), dict):
            raise InvalidQueryException("Invalid orderBy clause: expected {\"field\": {\"fieldPath\": ...}}")
        field_path = clause["field"].get("fieldPath")
        if not isinstance(field_path, str) or not field_path:
            raise InvalidQueryException("Invalid orderBy clause: missing field.fieldPath")
        direction = clause.get("direction") or SortDirection.ASCENDING.value
        if direction not in (SortDirection.ASCENDING.value, SortDirection.DESCENDING.value):
            raise InvalidQueryException(f"Invalid orderBy clause: unknown direction {direction}")
        orders.append(OrderBy(field_path, SortDirection(direction)))
    return tuple(orders)


def _translate_limit(limit: Any) -> int | None:
    if limit is None:
        return None
    if isinstance(limit, dict):
        limit = limit.get("value")
    try:
        value = int(limit)
    except (TypeError, ValueError) as e:
        raise InvalidQueryException(f"Invalid limit: {limit!r}") from e
    return value if value > 0 else None


def translate_structured_query(body: dict[str, Any] | None) -> QueryPlan:
    """Translate a runQuery request body into a QueryPlan.

    Args:
        body: Request body, expected shape ``{"structuredQuery": {...}}``.

    Returns:
        QueryPlan for exactly one collection.

    Raises:
        InvalidQueryException: Missing envelope/from/collectionId, bad where, orderBy or limit.
        InvalidCollectionNameException: If the collection id is not a valid name.
    """
    query = body.get("structuredQuery") if isinstance(body, dict) else None
    if not isinstance(query, dict):
        raise InvalidQueryException(
            "Missing structuredQuery in request body",
            'Send a body of the form {"structuredQuery": {"from": [{"collectionId": "..."}]}}.',
        )
    source = query.get("from")
    if not source:
        raise InvalidQueryException("Missing 'from' clause in structuredQuery")
    if isinstance(source, list):
        if len(source) != 1:
            raise InvalidQueryException("Query 'from' clause must name exactly one collection")
        source = source[0]
    if not isinstance(source, dict):
        raise InvalidQueryException("Invalid 'from' clause: expected {\"collectionId\": ...}")
    collection = source.get("collectionId")
    if not isinstance(collection, str) or not collection:
        raise InvalidQueryException("Missing 'collectionId' in 'from' clause")
    validate_collection_name(collection)

    where: Filter | None = None
    if query.get("where"):
        try:
            where = translate_filter(query["where"])
        except ValueError as e:
            raise InvalidQueryException(f"Invalid where clause: {e}") from e

    return QueryPlan(
        collection=collection,
        where=where,
        order_by=_translate_order_by(query.get("orderBy")),
        limit=_translate_limit(query.get("limit")),
    )


def build_query_plan(
    collection: str,
    where: Iterable[tuple[str, str, Any]] | None = None,
    order_by: Iterable[tuple[str, str]] | str | None = None,
    limit: int | None = None,
) -> QueryPlan:
    """Build a QueryPlan from shorthand tuples, ANDing all conditions.

    ``where`` items are ``(field, op, value)`` with ops from SIMPLE_OPERATORS;
    ``order_by`` is a field name or ``(field, "asc" | "desc")`` pairs.

    Raises:
        InvalidQueryException: Unknown operator or bad value.
    """
    validate_collection_name(collection)
    filters: list[Filter] = []
    for field_path, op, value in where or ():
        mapped = SIMPLE_OPERATORS.get(op)
        if mapped is None:
            raise InvalidQueryException(f"Invalid where clause: Unsupported filter operator: {op}")
        try:
            filters.append(_field_filter(field_path, mapped.value, value))
        except ValueError as e:
            raise InvalidQueryException(f"Invalid where clause: {e}") from e

    combined: Filter | None = None
    if len(filters) == 1:
        combined = filters[0]
    elif filters:
        combined = CompositeFilter(CompositeOperator.AND, tuple(filters))

    if isinstance(order_by, str):
        order_by = [(order_by, "asc")]
    orders = tuple(
        OrderBy(
            field_path,
            SortDirection.DESCENDING
            if direction.lower() in ("desc", "descending")
            else SortDirection.ASCENDING,
        )
        for field_path, direction in order_by or ()
    )
    return QueryPlan(collection=collection, where=combined, order_by=orders, limit=limit)
