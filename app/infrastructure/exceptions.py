"""Infrastructure exceptions for storage engine operations.

Storage errors extend DocbaseException so presentation can map them
to HTTP responses consistently without leaking engine-specific shapes.
"""

from app.domain.exceptions import DocbaseException


class StorageException(DocbaseException):
    """Storage engine call failed (network, auth, unexpected response).

    The engine's own error text is kept on ``reason`` for logs only; the
    response body names the operation.
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(
            "Internal storage error",
            "STORAGE_ERROR",
            {"operation": operation},
        )


class DocumentExistsError(Exception):
    """Raised by a storage engine when inserting an id that already exists."""

    def __init__(self, namespace: str, collection: str, document_id: str) -> None:
        self.namespace = namespace
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"Document already exists: {namespace}/{collection}/{document_id}")
