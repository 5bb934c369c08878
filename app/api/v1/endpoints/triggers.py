"""Trigger API: CRUD for cron, database-change and HTTP triggers of a project."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, Response

from app.api.v1.dependencies import CurrentPrincipal, get_trigger_service
from app.application.services.trigger_service import TriggerService
from app.core.limiter import limit_writes
from app.schemas.trigger import TriggerDeleteResponse, TriggerListResponse, TriggerWriteRequest

router = APIRouter()


@router.get("", response_model=TriggerListResponse)
async def list_triggers(
    project: str,
    principal: CurrentPrincipal,
    triggers: Annotated[TriggerService, Depends(get_trigger_service)],
):
    await triggers.authorize(principal, project)
    items = await triggers.list(project)
    return TriggerListResponse(triggers=[t.to_dict() for t in items], total=len(items))


@router.post("", status_code=201)
@limit_writes
async def create_trigger(
    request: Request,
    project: str,
    body: TriggerWriteRequest,
    principal: CurrentPrincipal,
    triggers: Annotated[TriggerService, Depends(get_trigger_service)],
) -> dict[str, Any]:
    """Create a trigger under a generated id."""
    await triggers.authorize(principal, project)
    trigger = await triggers.create(project, body.model_dump(exclude_unset=True), principal.user_id)
    return trigger.to_dict()


@router.get("/{trigger_id}")
async def get_trigger(
    project: str,
    trigger_id: str,
    principal: CurrentPrincipal,
    triggers: Annotated[TriggerService, Depends(get_trigger_service)],
) -> dict[str, Any]:
    await triggers.authorize(principal, project)
    trigger = await triggers.get(project, trigger_id)
    return trigger.to_dict()


@router.put("/{trigger_id}")
@limit_writes
async def put_trigger(
    request: Request,
    response: Response,
    project: str,
    trigger_id: str,
    body: TriggerWriteRequest,
    principal: CurrentPrincipal,
    triggers: Annotated[TriggerService, Depends(get_trigger_service)],
) -> dict[str, Any]:
    """Create or replace a trigger; 201 when created, 200 when replaced."""
    await triggers.authorize(principal, project)
    trigger, created = await triggers.put(
        project, trigger_id, body.model_dump(exclude_unset=True), principal.user_id
    )
    response.status_code = 201 if created else 200
    return trigger.to_dict()


@router.patch("/{trigger_id}")
@limit_writes
async def patch_trigger(
    request: Request,
    project: str,
    trigger_id: str,
    body: TriggerWriteRequest,
    principal: CurrentPrincipal,
    triggers: Annotated[TriggerService, Depends(get_trigger_service)],
) -> dict[str, Any]:
    await triggers.authorize(principal, project)
    trigger = await triggers.patch(project, trigger_id, body.model_dump(exclude_unset=True))
    return trigger.to_dict()


@router.delete("/{trigger_id}", response_model=TriggerDeleteResponse)
@limit_writes
async def delete_trigger(
    request: Request,
    project: str,
    trigger_id: str,
    principal: CurrentPrincipal,
    triggers: Annotated[TriggerService, Depends(get_trigger_service)],
):
    await triggers.authorize(principal, project)
    await triggers.delete(project, trigger_id)
    return TriggerDeleteResponse()
