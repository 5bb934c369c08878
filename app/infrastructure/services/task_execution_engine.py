"""Task execution engine: compile stored source, run it under a deadline, classify the outcome.

Per invocation: pending -> compiling -> running -> succeeded | failed | timed_out.

Source text is a Python module that defines ``handler(params, context)``,
either ``async def`` or a plain function. Compilation and module-level code
run in a worker thread under the invocation deadline. Async handlers run on
the event loop; plain ones run in a worker thread. A sync handler cannot be stopped
once started: on timeout the caller gets the failure immediately, the
thread keeps running, and its context is closed so it can no longer reach
data, tasks or services.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.application.dtos.execution import ExecutionResult
from app.application.dtos.principal import Principal
from app.domain.entities.task import TaskDefinition
from app.domain.enums import ExecutionErrorKind, ExecutionStatus
from app.domain.exceptions import TaskExecutionException
from app.infrastructure.services.task_context import (
    InvocationLifetime,
    TaskConsole,
    TaskContext,
    TaskDataAPI,
    TaskInvoker,
)
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.telemetry import get_tracer
from app.shared.telemetry.tracing import add_span_attributes, set_span_error
from app.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from app.application.services.task_registry import TaskRegistry
    from app.application.use_cases.documents import DocumentService
    from app.infrastructure.services.task_services import TaskServiceProvider

logger = get_logger(__name__)
tracer = get_tracer(__name__)

HANDLER_NAME = "handler"


class TaskCompilationError(Exception):
    """Source text could not be turned into a handler."""


class NestedTaskError(RuntimeError):
    """Raised inside a handler when a task it called through context.tasks fails."""


def compile_handler(source: str, task_name: str) -> Callable[..., Any]:
    """Compile task source and return its ``handler``.

    Module-level statements run here, once per invocation.

    Raises:
        TaskCompilationError: Syntax error, failing module code, or no callable handler.
    """
    try:
        code = compile(source, f"<task {task_name}>", "exec")
    except SyntaxError as e:
        raise TaskCompilationError(f"Syntax error at line {e.lineno}: {e.msg}") from e
    namespace: dict[str, Any] = {"__name__": f"task_{task_name}"}
    try:
        exec(code, namespace)  # noqa: S102
    except Exception as e:
        raise TaskCompilationError(f"Module initialization failed: {e}") from e
    handler = namespace.get(HANDLER_NAME)
    if not callable(handler):
        raise TaskCompilationError(
            "Task must define a handler function:\n\n"
            "async def handler(params, context):\n"
            "    context.console.log('running')\n"
            "    return {'success': True}"
        )
    return handler


async def _compile_and_call(task: TaskDefinition, params: dict[str, Any], context: TaskContext) -> Any:
    handler = await asyncio.to_thread(compile_handler, task.implementation_code, task.id)
    logger.debug("Task %s: %s", task.id, ExecutionStatus.RUNNING.value)
    if inspect.iscoroutinefunction(handler):
        result = await handler(params, context)
    else:
        result = await asyncio.to_thread(handler, params, context)
    if inspect.isawaitable(result):
        result = await result
    return result


def _format_seconds(seconds: float) -> str:
    return f"{seconds:g}s"


class TaskExecutionEngine:
    """Runs task definitions with a capability context and a wall-clock deadline."""

    def __init__(
        self,
        registry: "TaskRegistry",
        documents: "DocumentService",
        services: "TaskServiceProvider",
        timeout_seconds: float = 30.0,
        max_call_depth: int = 5,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.registry = registry
        self.documents = documents
        self.services = services
        self.timeout_seconds = timeout_seconds
        self.max_call_depth = max_call_depth
        self._clock = clock

    def _build_context(
        self,
        task: TaskDefinition,
        principal: Principal,
        project: str,
        depth: int,
        deadline: float,
        lifetime: InvocationLifetime,
    ) -> TaskContext:
        async def run_nested(name: str, params: dict[str, Any]) -> Any:
            return await self.run_nested(principal, project, name, params, depth + 1, deadline)

        return TaskContext(
            console=TaskConsole(task.id, lifetime),
            data=TaskDataAPI(self.documents, principal, project, lifetime),
            tasks=TaskInvoker(run_nested, lifetime),
            services=self.services.build(task.required_services),
            principal=principal,
            project=project,
            lifetime=lifetime,
        )

    async def execute(
        self,
        task: TaskDefinition,
        params: dict[str, Any] | None,
        principal: Principal,
        project: str,
        *,
        depth: int = 0,
        timeout: float | None = None,
    ) -> ExecutionResult:
        """Run one invocation in its own trace span. Task failures are returned, never raised.

        Args:
            task: Definition to run.
            params: Caller-supplied data object (empty when None).
            principal: Caller; data access runs as this principal.
            project: Namespace the task runs in.
            depth: Nesting level (0 for a top-level call).
            timeout: Deadline in seconds, capped at the engine's ceiling.
        """
        with tracer.start_as_current_span(
            "task.execute",
            attributes={"task.id": task.id, "task.project": project, "task.depth": depth},
        ):
            result = await self._execute(task, params, principal, project, depth, timeout)
            add_span_attributes(task_status=result.status.value)
            if not result.succeeded:
                set_span_error(result.error_message or result.status.value)
            return result

    async def _execute(
        self,
        task: TaskDefinition,
        params: dict[str, Any] | None,
        principal: Principal,
        project: str,
        depth: int,
        timeout: float | None,
    ) -> ExecutionResult:
        loop = asyncio.get_running_loop()
        budget = self.timeout_seconds if timeout is None else min(timeout, self.timeout_seconds)
        deadline = loop.time() + budget
        lifetime = InvocationLifetime()
        context = self._build_context(task, principal, project, depth, deadline, lifetime)
        console = context.console

        def finish(status: ExecutionStatus, **kwargs: Any) -> ExecutionResult:
            context.close()
            return ExecutionResult(
                task_name=task.id,
                status=status,
                executed_at=self._clock(),
                logs=list(console.entries),
                **kwargs,
            )

        logger.debug("Task %s (depth %s): %s", task.id, depth, ExecutionStatus.COMPILING.value)
        try:
            result = await asyncio.wait_for(
                _compile_and_call(task, dict(params or {}), context),
                timeout=max(deadline - loop.time(), 0),
            )
        except TaskCompilationError as e:
            logger.warning("Task %s failed to compile: %s", task.id, e)
            return finish(
                ExecutionStatus.FAILED,
                error_kind=ExecutionErrorKind.COMPILATION_ERROR,
                error_message=str(e),
            )
        except TimeoutError as e:
            if loop.time() < deadline:
                # Raised by the handler itself, not by the deadline.
                message = str(e) or type(e).__name__
                logger.warning("Task %s raised: %s", task.id, message)
                return finish(
                    ExecutionStatus.FAILED,
                    error_kind=ExecutionErrorKind.RUNTIME_ERROR,
                    error_message=message,
                )
            logger.warning("Task %s timed out after %s", task.id, _format_seconds(budget))
            return finish(
                ExecutionStatus.TIMED_OUT,
                error_kind=ExecutionErrorKind.EXECUTION_TIMEOUT,
                error_message=f"Task execution timeout after {_format_seconds(budget)}",
            )
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.warning("Task %s raised %s: %s", task.id, type(e).__name__, message)
            return finish(
                ExecutionStatus.FAILED,
                error_kind=ExecutionErrorKind.RUNTIME_ERROR,
                error_message=message,
            )

        logger.info("Task %s executed successfully", task.id)
        return finish(ExecutionStatus.SUCCEEDED, result=result)

    async def invoke(
        self,
        principal: Principal,
        project: str,
        task_name: str,
        params: dict[str, Any] | None = None,
    ) -> ExecutionResult:
        """Look up a task (project, then global) and run it.

        Raises:
            ResourceNotFoundException: Unknown task.
            TaskExecutionException: The invocation failed (any kind).
        """
        task = await self.registry.get(project, task_name)
        result = await self.execute(task, params, principal, project)
        if not result.succeeded:
            raise TaskExecutionException(
                task_name,
                result.error_kind.value if result.error_kind else ExecutionErrorKind.RUNTIME_ERROR.value,
                result.error_message or "",
            )
        return result

    async def run_nested(
        self,
        principal: Principal,
        project: str,
        task_name: str,
        params: dict[str, Any],
        depth: int,
        parent_deadline: float,
    ) -> Any:
        """Run a task called from another task's context and return its result.

        The nested call gets the engine ceiling or the parent's remaining
        time, whichever is smaller.

        Raises:
            NestedTaskError: Depth exceeded, unknown task, or the nested task failed.
        """
        if depth > self.max_call_depth:
            raise NestedTaskError(f"Maximum task call depth ({self.max_call_depth}) exceeded")
        task = await self.registry.find(project, task_name)
        if task is None:
            raise NestedTaskError(f"Task '{task_name}' not found")
        remaining = parent_deadline - asyncio.get_running_loop().time()
        result = await self.execute(
            task, params, principal, project, depth=depth, timeout=max(remaining, 0)
        )
        if not result.succeeded:
            raise NestedTaskError(f"Task '{task_name}' failed: {result.error_message}")
        return result.result
