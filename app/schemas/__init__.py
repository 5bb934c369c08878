"""Pydantic request/response schemas for the API."""

from app.schemas.document import (
    CollectionMetadataRequest,
    DocumentWriteRequest,
    RunQueryRequest,
)
from app.schemas.health import HealthResponse
from app.schemas.project import ProjectCreateRequest, ProjectKeyResponse, ProjectListResponse
from app.schemas.task import TaskCreateRequest, TaskInvokeRequest, TaskUpdateRequest
from app.schemas.trigger import TriggerWriteRequest

__all__ = [
    "CollectionMetadataRequest",
    "DocumentWriteRequest",
    "HealthResponse",
    "ProjectCreateRequest",
    "ProjectKeyResponse",
    "ProjectListResponse",
    "RunQueryRequest",
    "TaskCreateRequest",
    "TaskInvokeRequest",
    "TaskUpdateRequest",
    "TriggerWriteRequest",
]
