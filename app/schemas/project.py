"""Project API schemas."""

from typing import Any

from pydantic import BaseModel, Field

API_KEY_WARNING = "IMPORTANT: Store this API key securely! It cannot be retrieved again."


class ProjectCreateRequest(BaseModel):
    """Request body for creating a project. ``name`` is sanitized into the project id."""

    name: str | None = Field(default=None, max_length=255)
    description: str = Field(default="", max_length=1000)


class ProjectDocument(BaseModel):
    """Project in document form: ``projects/<id>`` plus typed public fields."""

    name: str
    fields: dict[str, Any]


class ProjectKeyResponse(BaseModel):
    """Returned on creation and key regeneration; the only time the key is shown."""

    project: ProjectDocument
    apiKey: str
    warning: str = API_KEY_WARNING
    note: str


class ProjectListResponse(BaseModel):
    projects: list[ProjectDocument]
    count: int
