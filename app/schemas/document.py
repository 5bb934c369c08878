"""Document API schemas.

Document payloads are Firestore REST documents: ``{"fields": {...}}`` with
typed values. Field values are decoded by the service layer, so they are
accepted here as raw JSON.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DocumentWriteRequest(BaseModel):
    """Body for create, set and update."""

    model_config = ConfigDict(extra="ignore")

    fields: dict[str, Any] = Field(default_factory=dict, description="Typed-value map")


class DocumentDeleteResponse(BaseModel):
    message: str = "Document deleted successfully"
    documentId: str


class RunQueryRequest(BaseModel):
    """runQuery body; the structured query is validated by the translator."""

    model_config = ConfigDict(extra="ignore")

    structuredQuery: dict[str, Any] | None = None


class CollectionMetadataRequest(BaseModel):
    """Body for PUT .../_security; rules and indexes are checked by the service."""

    model_config = ConfigDict(extra="ignore")

    rules: Any = None
    indexes: Any = None


class CollectionMetadataResponse(BaseModel):
    rules: list[dict[str, Any]]
    indexes: list[dict[str, Any]]


class CollectionMetadataUpdateResponse(BaseModel):
    message: str = "Collection metadata updated successfully"
    updated: bool
    created: bool
