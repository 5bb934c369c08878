"""Document storage engine protocol (DIP). Implementations: InMemoryDocumentStore, FirestoreDocumentStore.

Records are plain dicts. Reads return them with the document id under ``_id``;
writes take the id separately and ignore any ``_id`` key in the data.
"""

from typing import Any, Protocol

from app.domain.value_objects.index import IndexDeclaration
from app.domain.value_objects.query import QueryPlan


class DocumentStoreProtocol(Protocol):
    """Namespaced document storage: namespace (project) -> collection -> document."""

    async def namespace_exists(self, namespace: str) -> bool:
        """Return True if the namespace holds any collection."""
        ...

    async def collection_exists(self, namespace: str, collection: str) -> bool:
        """Return True if the collection holds any document."""
        ...

    async def get(self, namespace: str, collection: str, document_id: str) -> dict[str, Any] | None:
        """Return the record, or None if absent."""
        ...

    async def insert(
        self, namespace: str, collection: str, document_id: str, data: dict[str, Any]
    ) -> None:
        """Create a record. Raises DocumentExistsError if the id is taken."""
        ...

    async def put(
        self, namespace: str, collection: str, document_id: str, data: dict[str, Any]
    ) -> None:
        """Create or fully overwrite a record."""
        ...

    async def delete(self, namespace: str, collection: str, document_id: str) -> bool:
        """Delete a record. Returns True if deleted, False if not found."""
        ...

    async def find(
        self, namespace: str, collection: str, plan: QueryPlan | None = None
    ) -> list[dict[str, Any]]:
        """Return records matching plan (all records when plan is None)."""
        ...

    async def list_index_names(self, namespace: str, collection: str) -> list[str]:
        """Return names of indexes already present on the collection."""
        ...

    async def create_index(self, namespace: str, collection: str, index: IndexDeclaration) -> None:
        """Create an index. May raise on engine errors; callers treat it as best-effort."""
        ...

    async def aclose(self) -> None:
        """Release engine resources (HTTP pools etc.)."""
        ...
