"""Application use cases: one entry point per workflow."""

from app.application.use_cases.documents import DocumentService

__all__ = ["DocumentService"]
