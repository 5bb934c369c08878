"""Infrastructure services: task execution engine, task capabilities, cron scheduler."""

from app.infrastructure.services.builtin_tasks import builtin_tasks
from app.infrastructure.services.task_execution_engine import (
    NestedTaskError,
    TaskCompilationError,
    TaskExecutionEngine,
    compile_handler,
)
from app.infrastructure.services.task_scheduler import TaskScheduler
from app.infrastructure.services.task_services import DateTimeService, TaskServiceProvider

__all__ = [
    "DateTimeService",
    "NestedTaskError",
    "TaskCompilationError",
    "TaskExecutionEngine",
    "TaskScheduler",
    "TaskServiceProvider",
    "builtin_tasks",
    "compile_handler",
]
