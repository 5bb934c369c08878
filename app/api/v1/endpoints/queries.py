"""Structured query endpoint (``documents:runQuery``)."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from app.api.v1.dependencies import CurrentPrincipal, get_document_service
from app.api.v1.endpoints.documents import render
from app.application.use_cases.documents import DocumentService
from app.schemas.document import RunQueryRequest
from app.shared.utils.datetime import utc_now
from app.shared.utils.typed_values import encode_value

router = APIRouter()


@router.post("/documents:runQuery")
async def run_query(
    project: str,
    principal: CurrentPrincipal,
    documents: Annotated[DocumentService, Depends(get_document_service)],
    body: RunQueryRequest | None = None,
) -> list[dict[str, Any]]:
    """Run a structuredQuery against one collection; returns ``[{document, readTime}]``."""
    payload = body.model_dump(exclude_unset=True) if body is not None else None
    collection, records = await documents.run_query(principal, project, payload)
    read_time = encode_value(utc_now())["timestampValue"]
    return [
        {"document": render(project, collection, record), "readTime": read_time}
        for record in records
    ]
