"""Presentation-layer dependency injection.

Services are built once per application by the composition root
(app.core.container) and read from ``request.app.state.container``; routes
depend only on these functions, never on infrastructure directly.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.application.dtos.principal import Principal
from app.application.services.project_service import ProjectService
from app.application.services.task_registry import TaskRegistry
from app.application.services.trigger_service import TriggerService
from app.application.use_cases.documents import DocumentService
from app.core.container import ServiceContainer
from app.infrastructure.security.jwt import principal_from_token
from app.infrastructure.services.task_execution_engine import TaskExecutionEngine
from app.shared.context import set_current_user
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

_http_bearer = HTTPBearer(auto_error=False)


def get_container(request: Request) -> ServiceContainer:
    """Application-wide service container (built in create_app)."""
    return request.app.state.container


def get_project_service(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ProjectService:
    return container.projects


def get_document_service(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> DocumentService:
    return container.documents


def get_task_registry(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> TaskRegistry:
    return container.tasks


def get_task_engine(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> TaskExecutionEngine:
    return container.engine


def get_trigger_service(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> TriggerService:
    return container.triggers


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
) -> Principal:
    """Return the caller from the bearer token.

    Raises:
        HTTPException: 401 when no token is sent, 403 when it does not verify.
    """
    if not credentials:
        raise HTTPException(status_code=401, detail="Access token required")
    try:
        principal = principal_from_token(credentials.credentials)
    except ValueError as e:
        logger.info("Rejected bearer token: %s", e)
        raise HTTPException(status_code=403, detail="Invalid or expired token") from e
    set_current_user(principal.user_id)
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
