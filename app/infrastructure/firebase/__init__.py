"""Firestore integration over the REST API (google-auth + httpx)."""

from app.infrastructure.firebase._rest_client import FirestoreRESTClient
from app.infrastructure.firebase.client import create_firestore_client

__all__ = [
    "FirestoreRESTClient",
    "create_firestore_client",
]
