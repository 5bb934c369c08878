"""Task API: registry CRUD and invocation (``tasks/{id}:do``).

Global (built-in) tasks are listed and callable from every project but cannot
be changed through the API.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from app.api.v1.dependencies import CurrentPrincipal, get_task_engine, get_task_registry
from app.application.services.task_registry import TaskRegistry
from app.core.limiter import limit_invocations, limit_writes
from app.infrastructure.services.task_execution_engine import TaskExecutionEngine
from app.schemas.task import (
    TaskCreateRequest,
    TaskDeleteResponse,
    TaskInvokeRequest,
    TaskInvokeResponse,
    TaskListResponse,
    TaskUpdateRequest,
)

router = APIRouter()


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    project: str,
    principal: CurrentPrincipal,
    registry: Annotated[TaskRegistry, Depends(get_task_registry)],
):
    """List global tasks followed by the project's tasks, without their source."""
    await registry.authorize(principal, project, "access")
    global_tasks, project_tasks = await registry.list(project)
    tasks = [t.to_summary() for t in global_tasks] + [t.to_summary() for t in project_tasks]
    return TaskListResponse(
        tasks=tasks,
        count=len(tasks),
        globalCount=len(global_tasks),
        projectCount=len(project_tasks),
    )


@router.post("", status_code=201)
@limit_writes
async def create_task(
    request: Request,
    project: str,
    body: TaskCreateRequest,
    principal: CurrentPrincipal,
    registry: Annotated[TaskRegistry, Depends(get_task_registry)],
) -> dict[str, Any]:
    """Register a project task owned by the caller."""
    await registry.authorize(principal, project, "create")
    task = await registry.register(project, body.model_dump(exclude_unset=True), principal.user_id)
    return task.to_summary()


# Registered before /{task_id} so the ":do" suffix is not read as part of an id.
@router.post("/{task_id}:do", response_model=TaskInvokeResponse)
@limit_invocations
async def invoke_task(
    request: Request,
    project: str,
    task_id: str,
    principal: CurrentPrincipal,
    registry: Annotated[TaskRegistry, Depends(get_task_registry)],
    engine: Annotated[TaskExecutionEngine, Depends(get_task_engine)],
    body: TaskInvokeRequest | None = None,
):
    """Run a task with ``body.data`` as params. Failures return 500 with details."""
    await registry.authorize(principal, project, "call")
    params = body.data if body is not None else {}
    result = await engine.invoke(principal, project, task_id, params)
    return TaskInvokeResponse(
        result=result.result,
        taskName=result.task_name,
        executedAt=result.executed_at,
    )


@router.get("/{task_id}")
async def get_task(
    project: str,
    task_id: str,
    principal: CurrentPrincipal,
    registry: Annotated[TaskRegistry, Depends(get_task_registry)],
) -> dict[str, Any]:
    """Return a task (project scope first, then global) including its source."""
    await registry.authorize(principal, project, "access")
    task = await registry.get(project, task_id)
    return task.to_dict()


@router.put("/{task_id}")
@limit_writes
async def update_task(
    request: Request,
    project: str,
    task_id: str,
    body: TaskUpdateRequest,
    principal: CurrentPrincipal,
    registry: Annotated[TaskRegistry, Depends(get_task_registry)],
) -> dict[str, Any]:
    """Partially update a project task."""
    await registry.authorize(principal, project, "update")
    task = await registry.update(project, task_id, body.model_dump(exclude_unset=True))
    return task.to_dict()


@router.delete("/{task_id}", response_model=TaskDeleteResponse)
@limit_writes
async def delete_task(
    request: Request,
    project: str,
    task_id: str,
    principal: CurrentPrincipal,
    registry: Annotated[TaskRegistry, Depends(get_task_registry)],
):
    await registry.authorize(principal, project, "delete")
    await registry.delete(project, task_id)
    return TaskDeleteResponse(taskName=task_id)
