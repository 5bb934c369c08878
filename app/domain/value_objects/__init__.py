"""Domain value objects and shared value types."""

from app.domain.value_objects.index import IndexDeclaration, generate_index_name
from app.domain.value_objects.query import (
    CompositeFilter,
    FieldFilter,
    Filter,
    OrderBy,
    QueryPlan,
)

__all__ = [
    "IndexDeclaration",
    "generate_index_name",
    "CompositeFilter",
    "FieldFilter",
    "Filter",
    "OrderBy",
    "QueryPlan",
]
