"""Task definition entity.

A task is stored source text plus the capabilities it needs. Global tasks are
built in and read-only through the API; project tasks are user-defined.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class TaskDefinition:
    """Stored unit of user-supplied executable logic."""

    id: str
    description: str
    implementation_code: str
    required_services: list[str] = field(default_factory=list)
    schedule: str | None = None
    enabled: bool = True
    is_user_task: bool = True
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_record(self) -> dict[str, Any]:
        """Return the storage record (camelCase, without the id)."""
        return {
            "description": self.description,
            "implementationCode": self.implementation_code,
            "requiredServices": list(self.required_services),
            "schedule": self.schedule,
            "enabled": self.enabled,
            "isUserTask": self.is_user_task,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "TaskDefinition":
        """Build from a storage record that carries its id in ``_id``."""
        return cls(
            id=record["_id"],
            description=record.get("description", ""),
            implementation_code=record.get("implementationCode", ""),
            required_services=list(record.get("requiredServices") or []),
            schedule=record.get("schedule"),
            enabled=record.get("enabled", True),
            is_user_task=record.get("isUserTask", True),
            created_by=record.get("createdBy"),
            created_at=record.get("createdAt"),
            updated_at=record.get("updatedAt"),
        )

    def to_summary(self) -> dict[str, Any]:
        """Listing view: everything except the implementation source."""
        data = self.to_dict()
        data.pop("implementationCode")
        return data

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, **self.to_record()}
