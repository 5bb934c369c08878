"""DTOs for task invocation results."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.domain.enums import ExecutionErrorKind, ExecutionStatus


@dataclass(frozen=True)
class ConsoleEntry:
    """One line written through context.console during an invocation."""

    level: str
    message: str


@dataclass
class ExecutionResult:
    """Outcome of a single invocation.

    ``result`` is None both when the handler returned None and when it failed;
    use ``status`` to tell them apart.
    """

    task_name: str
    status: ExecutionStatus
    executed_at: datetime
    result: Any = None
    error_kind: ExecutionErrorKind | None = None
    error_message: str | None = None
    logs: list[ConsoleEntry] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == ExecutionStatus.SUCCEEDED
