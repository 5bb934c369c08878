"""Document API: Firestore-style CRUD and collection security metadata.

Routes are relative to ``/projects/{project}/databases/(default)/documents``.
Bodies and responses use typed-value documents; decoding and encoding happen
here, the service works on native values.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from app.api.v1.dependencies import CurrentPrincipal, get_document_service
from app.application.use_cases.documents import DocumentService
from app.core.constants import DATABASE_ID
from app.core.limiter import limit_writes
from app.schemas.document import (
    CollectionMetadataRequest,
    CollectionMetadataResponse,
    CollectionMetadataUpdateResponse,
    DocumentDeleteResponse,
    DocumentWriteRequest,
)
from app.shared.utils.typed_values import decode_fields, encode_document

router = APIRouter()

DOCUMENTS_ROOT = f"projects/{{project}}/databases/{DATABASE_ID}/documents"


def collection_path(project: str, collection: str) -> str:
    """Resource name of a collection, used as the parent of its documents."""
    return f"{DOCUMENTS_ROOT.format(project=project)}/{collection}"


def render(project: str, collection: str, record: dict[str, Any]) -> dict[str, Any]:
    return encode_document(record, parent=collection_path(project, collection))


@router.post("/{collection}", status_code=201)
@limit_writes
async def create_document(
    request: Request,
    project: str,
    collection: str,
    body: DocumentWriteRequest,
    principal: CurrentPrincipal,
    documents: Annotated[DocumentService, Depends(get_document_service)],
) -> dict[str, Any]:
    """Create a document with a generated id, owned by the caller."""
    record = await documents.create(principal, project, collection, decode_fields(body.fields))
    return render(project, collection, record)


@router.get("/{collection}")
async def list_documents(
    project: str,
    collection: str,
    principal: CurrentPrincipal,
    documents: Annotated[DocumentService, Depends(get_document_service)],
) -> dict[str, Any]:
    """Return every document in the collection."""
    records = await documents.list(principal, project, collection)
    return {"documents": [render(project, collection, r) for r in records]}


# Registered before /{collection}/{document_id} so "_security" is not read as a document id.
@router.get("/{collection}/_security", response_model=CollectionMetadataResponse)
async def get_collection_metadata(
    project: str,
    collection: str,
    principal: CurrentPrincipal,
    documents: Annotated[DocumentService, Depends(get_document_service)],
):
    """Return the collection's rules and index declarations."""
    return await documents.get_metadata(principal, project, collection)


@router.put("/{collection}/_security", response_model=CollectionMetadataUpdateResponse)
@limit_writes
async def update_collection_metadata(
    request: Request,
    project: str,
    collection: str,
    body: CollectionMetadataRequest,
    principal: CurrentPrincipal,
    documents: Annotated[DocumentService, Depends(get_document_service)],
):
    """Replace rules and/or indexes; declared indexes are applied right away."""
    result = await documents.update_metadata(
        principal, project, collection, rules=body.rules, indexes=body.indexes
    )
    return CollectionMetadataUpdateResponse(**result)


@router.get("/{collection}/{document_id}")
async def get_document(
    project: str,
    collection: str,
    document_id: str,
    principal: CurrentPrincipal,
    documents: Annotated[DocumentService, Depends(get_document_service)],
) -> dict[str, Any]:
    record = await documents.get(principal, project, collection, document_id)
    return render(project, collection, record)


@router.put("/{collection}/{document_id}")
@limit_writes
async def set_document(
    request: Request,
    project: str,
    collection: str,
    document_id: str,
    body: DocumentWriteRequest,
    principal: CurrentPrincipal,
    documents: Annotated[DocumentService, Depends(get_document_service)],
) -> dict[str, Any]:
    """Create or fully replace a document under a caller-chosen id."""
    record, _ = await documents.set(
        principal, project, collection, document_id, decode_fields(body.fields)
    )
    return render(project, collection, record)


@router.patch("/{collection}/{document_id}")
@limit_writes
async def update_document(
    request: Request,
    project: str,
    collection: str,
    document_id: str,
    body: DocumentWriteRequest,
    principal: CurrentPrincipal,
    documents: Annotated[DocumentService, Depends(get_document_service)],
) -> dict[str, Any]:
    """Merge the given fields into an existing document."""
    record = await documents.update(
        principal, project, collection, document_id, decode_fields(body.fields)
    )
    return render(project, collection, record)


@router.delete("/{collection}/{document_id}", response_model=DocumentDeleteResponse)
@limit_writes
async def delete_document(
    request: Request,
    project: str,
    collection: str,
    document_id: str,
    principal: CurrentPrincipal,
    documents: Annotated[DocumentService, Depends(get_document_service)],
):
    deleted = await documents.delete(principal, project, collection, document_id)
    return DocumentDeleteResponse(documentId=deleted)
