"""Task registry: global built-in tasks plus project-scoped user tasks.

Two independent namespaces. Global tasks are registered in process at startup
and are read-only through the API; project tasks live in each project's
``_tasks`` collection. Listing merges both.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.application.dtos.principal import Principal
from app.application.services.cron import CronExpression
from app.application.services.identifier_validator import validate_task_id
from app.core.constants import TASKS_COLLECTION
from app.domain.entities.task import TaskDefinition
from app.domain.exceptions import (
    MissingRequiredFieldsException,
    PermissionDeniedException,
    ResourceNotFoundException,
    TaskAlreadyExistsException,
    ValidationException,
)
from app.infrastructure.exceptions import DocumentExistsError
from app.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from app.application.services.project_service import ProjectService
    from app.infrastructure.storage.protocol import DocumentStoreProtocol

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["id", "description", "implementationCode"]
UPDATABLE_FIELDS = ("description", "implementationCode", "requiredServices", "schedule", "enabled")


def _validate_required_services(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(s, str) for s in value):
        raise ValidationException(
            "requiredServices must be an array of service names", field="requiredServices"
        )
    return list(value)


def _validate_schedule(value: Any) -> str | None:
    if value is None:
        return None
    try:
        CronExpression.parse(value)
    except ValueError as e:
        raise ValidationException(f"Invalid schedule: {e}", field="schedule") from e
    return value


def _task_not_found(task_id: str, suggestion: str) -> ResourceNotFoundException:
    return ResourceNotFoundException("task", task_id, suggestion=suggestion)


class TaskRegistry:
    """Stores, validates and looks up task definitions."""

    def __init__(
        self,
        store: "DocumentStoreProtocol",
        projects: "ProjectService",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._projects = projects
        self._clock = clock
        self._global: dict[str, TaskDefinition] = {}

    # ---- global scope ----

    def register_global(self, task: TaskDefinition) -> None:
        """Add or replace a built-in task."""
        validate_task_id(task.id)
        task.is_user_task = False
        self._global[task.id] = task
        logger.debug("Registered global task %s", task.id)

    def get_global(self, task_id: str) -> TaskDefinition | None:
        return self._global.get(task_id)

    def list_global(self) -> list[TaskDefinition]:
        return list(self._global.values())

    # ---- project scope ----

    async def authorize(self, principal: Principal, project: str, action: str) -> None:
        """Resolve the project and require the caller to belong to it.

        Raises:
            ProjectNotFoundException: Unknown project.
            PermissionDeniedException: Caller's token is for another project.
        """
        await self._projects.resolve(project)
        if not principal.belongs_to(project):
            logger.info(
                "Task access denied: %s (project %s) tried to %s tasks in %s",
                principal.user_id,
                principal.project_name,
                action,
                project,
            )
            raise PermissionDeniedException(
                suggestion=f"You can only {action} tasks in your own project '{principal.project_name}'."
            )

    async def get_project_task(self, project: str, task_id: str) -> TaskDefinition | None:
        record = await self._store.get(project, TASKS_COLLECTION, task_id)
        return TaskDefinition.from_record(record) if record else None

    async def list(self, project: str) -> tuple[list[TaskDefinition], list[TaskDefinition]]:
        """Return (global tasks, project tasks)."""
        records = await self._store.find(project, TASKS_COLLECTION)
        project_tasks = [TaskDefinition.from_record(r) for r in records]
        logger.debug("Found %s global + %s project tasks", len(self._global), len(project_tasks))
        return self.list_global(), project_tasks

    async def find(self, project: str, task_id: str) -> TaskDefinition | None:
        """Look up by id in the project first, then the global scope."""
        task = await self.get_project_task(project, task_id)
        return task if task is not None else self.get_global(task_id)

    async def get(self, project: str, task_id: str) -> TaskDefinition:
        task = await self.find(project, task_id)
        if task is None:
            raise _task_not_found(task_id, f"The task '{task_id}' does not exist.")
        return task

    async def register(self, project: str, body: dict[str, Any], created_by: str) -> TaskDefinition:
        """Validate and store a new project task.

        Raises:
            MissingRequiredFieldsException: id, description or implementationCode missing.
            InvalidTaskIdException: id is not letters/digits/underscores.
            ValidationException: Bad requiredServices or schedule.
            TaskAlreadyExistsException: id already used in this project.
        """
        if any(not body.get(name) for name in REQUIRED_FIELDS):
            raise MissingRequiredFieldsException(REQUIRED_FIELDS)
        task_id = validate_task_id(body["id"])
        now = self._clock()
        task = TaskDefinition(
            id=task_id,
            description=body["description"],
            implementation_code=body["implementationCode"],
            required_services=_validate_required_services(body.get("requiredServices")),
            schedule=_validate_schedule(body.get("schedule")),
            enabled=body.get("enabled") is not False,
            is_user_task=True,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        try:
            await self._store.insert(project, TASKS_COLLECTION, task_id, task.to_record())
        except DocumentExistsError as e:
            raise TaskAlreadyExistsException(task_id) from e
        logger.info("Created user task %s in project %s", task_id, project)
        return task

    async def update(self, project: str, task_id: str, changes: dict[str, Any]) -> TaskDefinition:
        """Apply a partial update. An explicit ``schedule: None`` clears the schedule.

        Raises:
            ResourceNotFoundException: No such task in the project (global tasks included).
        """
        task = await self.get_project_task(project, task_id)
        if task is None:
            raise _task_not_found(task_id, f"Task '{task_id}' does not exist in your project.")
        if "description" in changes and changes["description"] is not None:
            task.description = changes["description"]
        if "implementationCode" in changes and changes["implementationCode"] is not None:
            task.implementation_code = changes["implementationCode"]
        if "requiredServices" in changes:
            task.required_services = _validate_required_services(changes["requiredServices"])
        if "schedule" in changes:
            task.schedule = _validate_schedule(changes["schedule"])
        if "enabled" in changes and changes["enabled"] is not None:
            task.enabled = bool(changes["enabled"])
        task.updated_at = self._clock()
        await self._store.put(project, TASKS_COLLECTION, task_id, task.to_record())
        logger.info(
            "Updated user task %s in project %s (%s)",
            task_id,
            project,
            ", ".join(k for k in UPDATABLE_FIELDS if k in changes) or "no fields",
        )
        return task

    async def delete(self, project: str, task_id: str) -> None:
        if not await self._store.delete(project, TASKS_COLLECTION, task_id):
            raise _task_not_found(task_id, f"Task '{task_id}' does not exist in your project.")
        logger.info("Deleted user task %s from project %s", task_id, project)
