"""Document use cases: tenant-scoped CRUD, queries and collection metadata."""

from app.application.use_cases.documents.document_operations import DocumentService

__all__ = ["DocumentService"]
