"""Domain layer: entities, value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.entities import ProjectEntity, TaskDefinition, Trigger
from app.domain.enums import (
    CompositeOperator,
    ExecutionErrorKind,
    ExecutionStatus,
    FilterOperator,
    SortDirection,
    TriggerType,
)
from app.domain.exceptions import (
    DocbaseException,
    OwnershipViolationException,
    PermissionDeniedException,
    ProjectNotFoundException,
    ResourceNotFoundException,
    ValidationException,
)
from app.domain.value_objects import QueryPlan

__all__ = [
    # Entities
    "ProjectEntity",
    "TaskDefinition",
    "Trigger",
    # Enums
    "CompositeOperator",
    "ExecutionErrorKind",
    "ExecutionStatus",
    "FilterOperator",
    "SortDirection",
    "TriggerType",
    # Exceptions
    "DocbaseException",
    "OwnershipViolationException",
    "PermissionDeniedException",
    "ProjectNotFoundException",
    "ResourceNotFoundException",
    "ValidationException",
    # Value objects
    "QueryPlan",
]
