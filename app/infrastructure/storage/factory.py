"""Storage engine factory: creates the in-memory or Firestore engine from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from app.infrastructure.storage.protocol import DocumentStoreProtocol

if TYPE_CHECKING:
    from app.core.config import Settings


class DocumentStoreFactory:
    """Factory for storage engine instances based on configuration."""

    @staticmethod
    def create_document_store(
        settings: "Settings | None" = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> DocumentStoreProtocol:
        """Create storage engine from settings.

        Args:
            settings: Application settings; if None, uses get_settings().
            http_client: Optional shared client for the Firestore engine.

        Returns:
            InMemoryDocumentStore or FirestoreDocumentStore.

        Raises:
            ValueError: Unknown backend or missing/invalid Firestore credentials.
        """
        from app.core.config import get_settings

        s = settings or get_settings()
        backend = s.storage_backend.lower()

        if backend == "memory":
            from app.infrastructure.storage.memory_store import InMemoryDocumentStore

            return InMemoryDocumentStore()
        if backend == "firestore":
            from app.infrastructure.firebase.client import create_firestore_client
            from app.infrastructure.storage.firestore_store import FirestoreDocumentStore

            client = create_firestore_client(s, http_client=http_client)
            if client is None:
                raise ValueError(
                    "Firestore backend requires FIREBASE_SERVICE_ACCOUNT_KEY or "
                    "FIREBASE_SERVICE_ACCOUNT_PATH with a valid service account"
                )
            return FirestoreDocumentStore(client)
        raise ValueError(
            f"Unknown storage backend: {backend}. Supported: 'memory', 'firestore'"
        )
