"""Domain enumerations for the docbase application.

Enums represent fixed sets of domain values (trigger types, query operators,
task execution states).
"""

from enum import Enum


class TriggerType(str, Enum):
    """Activation condition attached to a task."""

    CRON = "cron"
    ON_CREATE = "onCreate"
    ON_UPDATE = "onUpdate"
    ON_DELETE = "onDelete"
    ON_WRITE = "onWrite"
    HTTP = "http"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid trigger type values as strings."""
        return [t.value for t in cls]

    @property
    def is_database_trigger(self) -> bool:
        return self in (
            TriggerType.ON_CREATE,
            TriggerType.ON_UPDATE,
            TriggerType.ON_DELETE,
            TriggerType.ON_WRITE,
        )


class FilterOperator(str, Enum):
    """Field filter operators accepted in structured queries."""

    EQUAL = "EQUAL"
    NOT_EQUAL = "NOT_EQUAL"
    LESS_THAN = "LESS_THAN"
    LESS_THAN_OR_EQUAL = "LESS_THAN_OR_EQUAL"
    GREATER_THAN = "GREATER_THAN"
    GREATER_THAN_OR_EQUAL = "GREATER_THAN_OR_EQUAL"
    ARRAY_CONTAINS = "ARRAY_CONTAINS"
    IN = "IN"
    NOT_IN = "NOT_IN"
    MATCHES = "MATCHES"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid operator values as strings."""
        return [op.value for op in cls]


class CompositeOperator(str, Enum):
    """Boolean combinators for composite filters."""

    AND = "AND"
    OR = "OR"


class SortDirection(str, Enum):
    """Ordering direction for orderBy clauses."""

    ASCENDING = "ASCENDING"
    DESCENDING = "DESCENDING"


class ExecutionStatus(str, Enum):
    """Lifecycle of a single task invocation.

    Pending -> Compiling -> Running -> one of Succeeded, Failed, TimedOut.
    A compilation error moves straight from Compiling to Failed.
    """

    PENDING = "pending"
    COMPILING = "compiling"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class ExecutionErrorKind(str, Enum):
    """Why an invocation failed. All kinds surface as the same HTTP 500."""

    COMPILATION_ERROR = "CompilationError"
    RUNTIME_ERROR = "RuntimeError"
    EXECUTION_TIMEOUT = "ExecutionTimeout"
