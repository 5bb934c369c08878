"""Trigger entity: a declared activation condition for a task."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

GLOBAL_TASK_PREFIX = "global/"


@dataclass
class Trigger:
    """Cron, database-change or HTTP trigger bound to a task id.

    A task id prefixed with ``global/`` refers to a built-in task.
    """

    id: str
    task_id: str
    trigger_type: str
    config: dict[str, Any]
    task_params: dict[str, Any] = field(default_factory=dict)
    enabled: bool = True
    description: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def targets_global_task(self) -> bool:
        return self.task_id.startswith(GLOBAL_TASK_PREFIX)

    @property
    def task_name(self) -> str:
        """Task id without the ``global/`` prefix."""
        if self.targets_global_task:
            return self.task_id[len(GLOBAL_TASK_PREFIX):]
        return self.task_id

    def to_record(self) -> dict[str, Any]:
        return {
            "taskId": self.task_id,
            "triggerType": self.trigger_type,
            "config": self.config,
            "taskParams": self.task_params,
            "enabled": self.enabled,
            "description": self.description,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Trigger":
        return cls(
            id=record["_id"],
            task_id=record["taskId"],
            trigger_type=record["triggerType"],
            config=dict(record.get("config") or {}),
            task_params=dict(record.get("taskParams") or {}),
            enabled=record.get("enabled", True),
            description=record.get("description"),
            created_by=record.get("createdBy"),
            created_at=record.get("createdAt"),
            updated_at=record.get("updatedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, **self.to_record()}
