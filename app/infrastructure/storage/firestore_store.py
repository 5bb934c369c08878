"""Firestore REST storage engine.

Layout: ``namespaces/{namespace}/{collection}/{id}``. The namespace document
itself is never written; its subcollections are listed with listCollectionIds.
Queries run server-side via runQuery, except plans that use MATCHES, which
Firestore cannot express: those load the collection and filter in process.
"""

import logging
from typing import Any

import httpx

from app.domain.enums import FilterOperator, SortDirection
from app.domain.value_objects.index import IndexDeclaration, generate_index_name
from app.domain.value_objects.query import FieldFilter, Filter, QueryPlan
from app.infrastructure.exceptions import DocumentExistsError, StorageException
from app.infrastructure.firebase._rest_client import (
    CollectionReference,
    DocumentConflictError,
    FirestoreRESTClient,
)
from app.shared.utils.typed_values import encode_value

logger = logging.getLogger(__name__)

ID_FIELD = "_id"
_NAMESPACE_ROOT = "namespaces"


def _encode_filter(f: Filter) -> dict[str, Any]:
    if isinstance(f, FieldFilter):
        return {
            "fieldFilter": {
                "field": {"fieldPath": f.field_path},
                "op": f.op.value,
                "value": encode_value(f.value),
            }
        }
    return {
        "compositeFilter": {
            "op": f.op.value,
            "filters": [_encode_filter(child) for child in f.filters],
        }
    }


def to_structured_query(plan: QueryPlan) -> dict[str, Any]:
    """Encode a plan as a Firestore structuredQuery (without ``from``)."""
    query: dict[str, Any] = {}
    if plan.where is not None:
        query["where"] = _encode_filter(plan.where)
    if plan.order_by:
        query["orderBy"] = [
            {"field": {"fieldPath": o.field_path}, "direction": o.direction.value}
            for o in plan.order_by
        ]
    if plan.limit:
        query["limit"] = plan.limit
    return query


class FirestoreDocumentStore:
    """DocumentStoreProtocol implementation over the Firestore REST API."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client

    def _collection(self, namespace: str, collection: str) -> CollectionReference:
        return self._client.collection(f"{_NAMESPACE_ROOT}/{namespace}/{collection}")

    async def namespace_exists(self, namespace: str) -> bool:
        try:
            ids = await self._client.document(f"{_NAMESPACE_ROOT}/{namespace}").list_collection_ids(
                page_size=1
            )
        except httpx.HTTPError as e:
            raise StorageException("namespace_exists", str(e)) from e
        return bool(ids)

    async def collection_exists(self, namespace: str, collection: str) -> bool:
        try:
            async for _ in self._collection(namespace, collection).run_query({"limit": 1}):
                return True
        except httpx.HTTPError as e:
            raise StorageException("collection_exists", str(e)) from e
        return False

    async def get(self, namespace: str, collection: str, document_id: str) -> dict[str, Any] | None:
        try:
            snap = await self._collection(namespace, collection).document(document_id).get()
        except httpx.HTTPError as e:
            raise StorageException("get", str(e)) from e
        if snap is None:
            return None
        return {ID_FIELD: snap.id, **snap.to_dict()}

    async def insert(
        self, namespace: str, collection: str, document_id: str, data: dict[str, Any]
    ) -> None:
        try:
            await self._collection(namespace, collection).create(document_id, data)
        except DocumentConflictError as e:
            raise DocumentExistsError(namespace, collection, document_id) from e
        except httpx.HTTPError as e:
            raise StorageException("insert", str(e)) from e

    async def put(
        self, namespace: str, collection: str, document_id: str, data: dict[str, Any]
    ) -> None:
        try:
            await self._collection(namespace, collection).document(document_id).set(data)
        except httpx.HTTPError as e:
            raise StorageException("put", str(e)) from e

    async def delete(self, namespace: str, collection: str, document_id: str) -> bool:
        ref = self._collection(namespace, collection).document(document_id)
        try:
            if await ref.get() is None:
                return False
            await ref.delete()
        except httpx.HTTPError as e:
            raise StorageException("delete", str(e)) from e
        return True

    async def find(
        self, namespace: str, collection: str, plan: QueryPlan | None = None
    ) -> list[dict[str, Any]]:
        native = plan is not None and not plan.uses_operator(FilterOperator.MATCHES)
        structured = to_structured_query(plan) if native else None
        try:
            records = [
                {ID_FIELD: snap.id, **snap.to_dict()}
                async for snap in self._collection(namespace, collection).run_query(structured)
            ]
        except httpx.HTTPError as e:
            raise StorageException("find", str(e)) from e
        if plan is not None and not native:
            return plan.apply(records)
        return records

    async def list_index_names(self, namespace: str, collection: str) -> list[str]:
        try:
            indexes = await self._client.list_indexes(collection)
        except httpx.HTTPError as e:
            raise StorageException("list_index_names", str(e)) from e
        names = []
        for index in indexes:
            fields = {
                f["fieldPath"]: -1 if f.get("order") == SortDirection.DESCENDING.value else 1
                for f in index.get("fields", [])
                if f.get("fieldPath") != "__name__"
            }
            if fields:
                names.append(generate_index_name(fields))
        return names

    async def create_index(self, namespace: str, collection: str, index: IndexDeclaration) -> None:
        if len(index.fields) < 2:
            # Firestore maintains single-field indexes automatically.
            logger.debug("Skipping single-field index %s on %s", index.name, collection)
            return
        fields = [
            {
                "fieldPath": name,
                "order": SortDirection.ASCENDING.value if direction == 1 else SortDirection.DESCENDING.value,
            }
            for name, direction in index.fields.items()
        ]
        try:
            await self._client.create_index(collection, fields)
        except DocumentConflictError:
            logger.debug("Index %s already exists on %s", index.name, collection)
        except httpx.HTTPError as e:
            raise StorageException("create_index", str(e)) from e

    async def aclose(self) -> None:
        await self._client.aclose()
