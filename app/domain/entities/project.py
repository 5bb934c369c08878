"""Project (tenant) entity.

The sanitized name doubles as the storage namespace and is immutable; only
the API key may change after creation.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass
class ProjectEntity:
    """A tenant namespace with an owner and an API key."""

    name: str
    display_name: str
    owner_id: str
    api_key: str
    description: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_id == user_id

    def to_record(self) -> dict[str, Any]:
        return {
            "displayName": self.display_name,
            "description": self.description,
            "ownerId": self.owner_id,
            "apiKey": self.api_key,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ProjectEntity":
        return cls(
            name=record["_id"],
            display_name=record.get("displayName", record["_id"]),
            owner_id=record.get("ownerId", ""),
            api_key=record.get("apiKey", ""),
            description=record.get("description", ""),
            created_at=record.get("createdAt"),
            updated_at=record.get("updatedAt"),
        )

    def public_fields(self) -> dict[str, Any]:
        """Fields safe to return to clients (never the API key)."""
        return {
            "name": self.display_name,
            "description": self.description,
            "ownerId": self.owner_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
