"""Project API: create projects, list the caller's projects, rotate API keys."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.v1.dependencies import CurrentPrincipal, get_project_service
from app.application.services.project_service import ProjectService
from app.core.limiter import limit_create_project, limit_writes
from app.domain.entities.project import ProjectEntity
from app.schemas.project import (
    ProjectCreateRequest,
    ProjectDocument,
    ProjectKeyResponse,
    ProjectListResponse,
)
from app.shared.utils.typed_values import encode_fields

router = APIRouter()


def _project_document(project: ProjectEntity) -> ProjectDocument:
    return ProjectDocument(
        name=f"projects/{project.name}",
        fields=encode_fields(project.public_fields()),
    )


@router.post("", response_model=ProjectKeyResponse, status_code=201)
@limit_create_project
async def create_project(
    request: Request,
    body: ProjectCreateRequest,
    principal: CurrentPrincipal,
    projects: Annotated[ProjectService, Depends(get_project_service)],
):
    """Create a project owned by the caller. The API key is only shown here."""
    project = await projects.create(body.name or "", principal.user_id, body.description)
    return ProjectKeyResponse(
        project=_project_document(project),
        apiKey=project.api_key,
        note=f"Database name will be: {project.name}",
    )


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    principal: CurrentPrincipal,
    projects: Annotated[ProjectService, Depends(get_project_service)],
):
    """List projects owned by the caller (never includes API keys)."""
    owned = await projects.list_owned(principal.user_id)
    return ProjectListResponse(
        projects=[_project_document(p) for p in owned],
        count=len(owned),
    )


@router.post("/{project}:regenerateKey", response_model=ProjectKeyResponse)
@limit_writes
async def regenerate_api_key(
    request: Request,
    project: str,
    principal: CurrentPrincipal,
    projects: Annotated[ProjectService, Depends(get_project_service)],
):
    """Issue a new API key for a project the caller owns."""
    updated = await projects.regenerate_api_key(project, principal.user_id)
    return ProjectKeyResponse(
        project=_project_document(updated),
        apiKey=updated.api_key,
        note="Previous API key has been invalidated.",
    )
