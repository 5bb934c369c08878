"""Application DTOs (no storage engine dependency)."""

from app.application.dtos.execution import ConsoleEntry, ExecutionResult
from app.application.dtos.principal import Principal

__all__ = [
    "ConsoleEntry",
    "ExecutionResult",
    "Principal",
]
