"""Trigger CRUD for a project's ``_triggers`` collection."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.application.dtos.principal import Principal
from app.application.services.identifier_validator import is_generated_id, is_valid_custom_id
from app.application.services.trigger_validator import validate_trigger_config
from app.core.constants import TRIGGERS_COLLECTION
from app.domain.entities.trigger import GLOBAL_TASK_PREFIX, Trigger
from app.domain.enums import CompositeOperator, FilterOperator, TriggerType
from app.domain.exceptions import (
    IdGenerationFailedException,
    InvalidTriggerException,
    PermissionDeniedException,
    ResourceNotFoundException,
    ValidationException,
)
from app.domain.value_objects.query import CompositeFilter, FieldFilter, QueryPlan
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_cuid

if TYPE_CHECKING:
    from app.application.services.project_service import ProjectService
    from app.application.services.task_registry import TaskRegistry
    from app.infrastructure.storage.protocol import DocumentStoreProtocol

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = ("taskId", "triggerType", "config", "taskParams", "enabled", "description")


def _trigger_not_found(trigger_id: str) -> ResourceNotFoundException:
    return ResourceNotFoundException("trigger", trigger_id)


class TriggerService:
    """Create, replace, patch, list and delete triggers bound to tasks."""

    def __init__(
        self,
        store: "DocumentStoreProtocol",
        projects: "ProjectService",
        tasks: "TaskRegistry",
        id_generation_max_attempts: int = 5,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._projects = projects
        self._tasks = tasks
        self._max_attempts = id_generation_max_attempts
        self._clock = clock

    async def authorize(self, principal: Principal, project: str) -> None:
        await self._projects.resolve(project)
        if not principal.belongs_to(project):
            raise PermissionDeniedException(
                suggestion=f"You can only manage triggers in your own project '{principal.project_name}'."
            )

    async def _ensure_task_exists(self, project: str, task_id: str) -> None:
        if task_id.startswith(GLOBAL_TASK_PREFIX):
            found = self._tasks.get_global(task_id[len(GLOBAL_TASK_PREFIX):]) is not None
        else:
            found = await self._tasks.get_project_task(project, task_id) is not None
        if not found:
            raise ResourceNotFoundException("task", task_id)

    @staticmethod
    def _validate_body(body: dict[str, Any]) -> None:
        for name in ("taskId", "triggerType", "config"):
            if not body.get(name):
                raise InvalidTriggerException(f"{name} is required")
        if not isinstance(body["taskId"], str):
            raise InvalidTriggerException("taskId must be a string")
        result = validate_trigger_config(body["triggerType"], body["config"])
        if not result.valid:
            raise InvalidTriggerException(result.error or "Invalid trigger configuration")

    async def list(self, project: str) -> list[Trigger]:
        records = await self._store.find(project, TRIGGERS_COLLECTION)
        return [Trigger.from_record(r) for r in records]

    async def list_enabled_cron(self, project: str) -> list[Trigger]:
        """Enabled cron triggers of a project."""
        plan = QueryPlan(
            collection=TRIGGERS_COLLECTION,
            where=CompositeFilter(
                CompositeOperator.AND,
                (
                    FieldFilter("triggerType", FilterOperator.EQUAL, TriggerType.CRON.value),
                    FieldFilter("enabled", FilterOperator.NOT_EQUAL, False),
                ),
            ),
        )
        records = await self._store.find(project, TRIGGERS_COLLECTION, plan)
        return [Trigger.from_record(r) for r in records]

    async def get(self, project: str, trigger_id: str) -> Trigger:
        record = await self._store.get(project, TRIGGERS_COLLECTION, trigger_id)
        if record is None:
            raise _trigger_not_found(trigger_id)
        return Trigger.from_record(record)

    async def create(self, project: str, body: dict[str, Any], user_id: str) -> Trigger:
        """Create a trigger under a generated id.

        Raises:
            InvalidTriggerException: Missing taskId/triggerType/config or invalid config.
            ResourceNotFoundException: Target task does not exist.
            IdGenerationFailedException: No free id within the attempt budget.
        """
        self._validate_body(body)
        await self._ensure_task_exists(project, body["taskId"])
        for _ in range(self._max_attempts):
            trigger_id = generate_cuid()
            if await self._store.get(project, TRIGGERS_COLLECTION, trigger_id) is None:
                break
        else:
            logger.error("Failed to generate unique trigger ID after %s attempts", self._max_attempts)
            raise IdGenerationFailedException(self._max_attempts)

        now = self._clock()
        trigger = Trigger(
            id=trigger_id,
            task_id=body["taskId"],
            trigger_type=body["triggerType"],
            config=dict(body["config"]),
            task_params=dict(body.get("taskParams") or {}),
            enabled=body.get("enabled") is not False,
            description=body.get("description"),
            created_by=user_id,
            created_at=now,
            updated_at=now,
        )
        await self._store.insert(project, TRIGGERS_COLLECTION, trigger_id, trigger.to_record())
        logger.info("Created trigger %s for task %s in %s", trigger_id, trigger.task_id, project)
        return trigger

    async def put(
        self, project: str, trigger_id: str, body: dict[str, Any], user_id: str
    ) -> tuple[Trigger, bool]:
        """Create or replace a trigger with a caller-chosen id.

        ``createdAt`` and ``createdBy`` of an existing trigger are kept.

        Returns:
            (trigger, created)
        """
        if not (is_generated_id(trigger_id) or is_valid_custom_id(trigger_id)):
            raise ValidationException(
                "Invalid trigger ID",
                field="triggerId",
                suggestion="Trigger ID must be URL-safe, up to 255 characters, and contain only "
                "letters, numbers, hyphens, and underscores.",
            )
        self._validate_body(body)
        await self._ensure_task_exists(project, body["taskId"])
        existing = await self._store.get(project, TRIGGERS_COLLECTION, trigger_id)
        now = self._clock()
        trigger = Trigger(
            id=trigger_id,
            task_id=body["taskId"],
            trigger_type=body["triggerType"],
            config=dict(body["config"]),
            task_params=dict(body.get("taskParams") or {}),
            enabled=body.get("enabled") is not False,
            description=body.get("description"),
            created_by=(existing or {}).get("createdBy") or user_id,
            created_at=(existing or {}).get("createdAt") or now,
            updated_at=now,
        )
        await self._store.put(project, TRIGGERS_COLLECTION, trigger_id, trigger.to_record())
        logger.info(
            "%s trigger %s for task %s in %s",
            "Replaced" if existing else "Created",
            trigger_id,
            trigger.task_id,
            project,
        )
        return trigger, existing is None

    async def patch(self, project: str, trigger_id: str, changes: dict[str, Any]) -> Trigger:
        """Apply a partial update; re-validates config when type or config change."""
        trigger = await self.get(project, trigger_id)
        updates = {k: v for k, v in changes.items() if k in PATCHABLE_FIELDS and v is not None}
        if "triggerType" in updates or "config" in updates:
            result = validate_trigger_config(
                updates.get("triggerType", trigger.trigger_type),
                updates.get("config", trigger.config),
            )
            if not result.valid:
                raise InvalidTriggerException(result.error or "Invalid trigger configuration")
        if "taskId" in updates:
            await self._ensure_task_exists(project, updates["taskId"])

        trigger.task_id = updates.get("taskId", trigger.task_id)
        trigger.trigger_type = updates.get("triggerType", trigger.trigger_type)
        trigger.config = dict(updates.get("config", trigger.config))
        trigger.task_params = dict(updates.get("taskParams", trigger.task_params))
        trigger.enabled = bool(updates.get("enabled", trigger.enabled))
        trigger.description = updates.get("description", trigger.description)
        trigger.updated_at = self._clock()
        await self._store.put(project, TRIGGERS_COLLECTION, trigger_id, trigger.to_record())
        logger.info("Updated trigger %s in %s", trigger_id, project)
        return trigger

    async def delete(self, project: str, trigger_id: str) -> None:
        if not await self._store.delete(project, TRIGGERS_COLLECTION, trigger_id):
            raise _trigger_not_found(trigger_id)
        logger.info("Deleted trigger %s from %s", trigger_id, project)
