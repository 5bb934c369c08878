"""Trigger API schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class TriggerWriteRequest(BaseModel):
    """Create, replace or patch body. Required fields are enforced per operation."""

    model_config = ConfigDict(extra="ignore")

    taskId: Any = None
    triggerType: Any = None
    config: Any = None
    taskParams: Any = None
    enabled: Any = None
    description: Any = None


class TriggerListResponse(BaseModel):
    triggers: list[dict[str, Any]]
    total: int


class TriggerDeleteResponse(BaseModel):
    success: bool = True
