"""Task API schemas.

Request fields are loosely typed: required fields and value types are
checked by the task registry so that errors carry suggestions.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TaskCreateRequest(BaseModel):
    """Request body for registering a project task."""

    model_config = ConfigDict(extra="ignore")

    id: Any = None
    description: Any = None
    implementationCode: Any = None
    requiredServices: Any = None
    schedule: Any = None
    enabled: Any = None


class TaskUpdateRequest(BaseModel):
    """Partial update; only fields present in the body are changed."""

    model_config = ConfigDict(extra="ignore")

    description: Any = None
    implementationCode: Any = None
    requiredServices: Any = None
    schedule: Any = None
    enabled: Any = None


class TaskInvokeRequest(BaseModel):
    """Body of ``tasks/{id}:do``; ``data`` becomes the handler's params."""

    model_config = ConfigDict(extra="ignore")

    data: dict[str, Any] = Field(default_factory=dict)


class TaskListResponse(BaseModel):
    tasks: list[dict[str, Any]]
    count: int
    globalCount: int
    projectCount: int


class TaskInvokeResponse(BaseModel):
    success: bool = True
    result: Any = None
    taskName: str
    executedAt: datetime


class TaskDeleteResponse(BaseModel):
    message: str = "Task deleted successfully"
    taskName: str
