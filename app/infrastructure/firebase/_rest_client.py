"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1.
Keeps the deployment small (avoids grpcio / firebase-admin).
All HTTP calls use httpx.AsyncClient so they do not block the event loop.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote

import httpx

from app.shared.utils.typed_values import decode_fields, encode_fields

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"


def _get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


class DocumentConflictError(Exception):
    """Raised when createDocument returns 409 (document ID already exists)."""


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    access_token: str | None = None,
) -> Any:
    """Perform async HTTP request to Firestore REST API. 404 returns None.

    Raises:
        DocumentConflictError: On 409.
        httpx.HTTPStatusError: On any other non-success status.
    """
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    if method == "GET":
        resp = await client.get(url, headers=headers)
    elif method == "PATCH":
        resp = await client.patch(url, headers=headers, json=body)
    elif method == "POST":
        resp = await client.post(url, headers=headers, json=body)
    elif method == "DELETE":
        resp = await client.delete(url, headers=headers)
    else:
        raise ValueError(f"Unsupported method: {method!r}")
    if resp.status_code == 404:
        return None
    if resp.status_code == 409:
        raise DocumentConflictError("Document already exists")
    if resp.status_code not in (200, 204):
        resp.raise_for_status()
    if method == "DELETE":
        return {}
    raw = resp.content
    return json.loads(raw.decode()) if raw else {}


class DocumentSnapshot:
    """Snapshot of a document (id + data)."""

    def __init__(self, id_: str, data: dict):
        self.id = id_
        self._data = data

    def to_dict(self) -> dict:
        return self._data


def _snapshot(doc: dict) -> DocumentSnapshot:
    name = doc.get("name", "")
    doc_id = name.split("/")[-1] if name else ""
    return DocumentSnapshot(doc_id, decode_fields(doc.get("fields")))


class DocumentReference:
    """Reference to a single document; matches firestore API style."""

    def __init__(self, client: "FirestoreRESTClient", path: str):
        self._client = client
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    async def set(self, data: dict[str, Any]) -> None:
        """Create or overwrite the document (PATCH with full replace)."""
        url = f"{_BASE}/{self._path}"
        await self._client.request(url, method="PATCH", body={"fields": encode_fields(data)})

    async def get(self) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        out = await self._client.request(f"{_BASE}/{self._path}")
        if not out:
            return None
        return _snapshot(out)

    async def delete(self) -> None:
        """Delete the document. Idempotent if document is already missing (404)."""
        await self._client.request(f"{_BASE}/{self._path}", method="DELETE")

    async def list_collection_ids(self, page_size: int = 100) -> list[str]:
        """Return ids of subcollections under this document (works for missing parents)."""
        ids: list[str] = []
        body: dict[str, Any] = {"pageSize": page_size}
        while True:
            out = await self._client.request(
                f"{_BASE}/{self._path}:listCollectionIds", method="POST", body=body
            )
            if not out:
                return ids
            ids.extend(out.get("collectionIds", []))
            token = out.get("nextPageToken")
            if not token:
                return ids
            body = {"pageSize": page_size, "pageToken": token}

    def collection(self, collection_id: str) -> "CollectionReference":
        return CollectionReference(self._client, f"{self._path}/{collection_id}")


class CollectionReference:
    """Reference to a collection; matches firestore API style."""

    def __init__(self, client: "FirestoreRESTClient", path: str):
        self._client = client
        self._path = path.rstrip("/")

    @property
    def id(self) -> str:
        return self._path.split("/")[-1]

    def document(self, document_id: str) -> DocumentReference:
        return DocumentReference(self._client, f"{self._path}/{document_id}")

    async def create(self, document_id: str, data: dict[str, Any]) -> None:
        """Create a document with the given ID (DocumentConflictError if it exists)."""
        url = f"{_BASE}/{self._path}?documentId={quote(document_id, safe='')}"
        await self._client.request(url, method="POST", body={"fields": encode_fields(data)})

    async def run_query(self, structured: dict[str, Any] | None = None) -> AsyncIterator[DocumentSnapshot]:
        """Run a structuredQuery scoped to this collection and yield snapshots.

        ``structured`` may hold where/orderBy/limit; ``from`` is filled in here.
        """
        query: dict[str, Any] = dict(structured or {})
        query["from"] = [{"collectionId": self.id}]
        parent = self._path.rsplit("/", 1)[0]
        resp = await self._client.request(
            f"{_BASE}/{parent}:runQuery", method="POST", body={"structuredQuery": query}
        )
        items = resp if isinstance(resp, list) else ([resp] if resp else [])
        for item in items:
            if "document" not in item:
                continue
            yield _snapshot(item["document"])

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """List all documents in the collection."""
        async for snap in self.run_query():
            yield snap


class FirestoreRESTClient:
    """Lightweight Firestore client using REST API (no firebase-admin)."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._database = f"projects/{project_id}/databases/(default)"
        self._prefix = f"{self._database}/documents"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=30.0)
        self._owns_http = http_client is None

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str:
        """Return a valid access token; refreshes in thread pool to avoid blocking."""
        return await asyncio.to_thread(_get_access_token, self._credentials)

    async def request(self, url: str, method: str = "GET", body: dict | None = None) -> Any:
        return await _request_async(
            self._http, url, method=method, body=body, access_token=await self.get_token()
        )

    def document(self, path: str) -> DocumentReference:
        """Reference a document by its path relative to the database root."""
        return DocumentReference(self, f"{self._prefix}/{path}")

    def collection(self, path: str) -> CollectionReference:
        return CollectionReference(self, f"{self._prefix}/{path}")

    async def list_indexes(self, collection_group: str) -> list[dict[str, Any]]:
        """Return composite indexes defined for a collection group (Admin API)."""
        url = f"{_BASE}/{self._database}/collectionGroups/{collection_group}/indexes"
        out = await self.request(url)
        return (out or {}).get("indexes", [])

    async def create_index(self, collection_group: str, fields: list[dict[str, str]]) -> None:
        """Start creating a composite index; returns once the operation is accepted."""
        url = f"{_BASE}/{self._database}/collectionGroups/{collection_group}/indexes"
        await self.request(
            url, method="POST", body={"queryScope": "COLLECTION", "fields": fields}
        )
