"""In-process document storage engine.

Default engine for development and tests. Mutations never await, so each one
is atomic with respect to the event loop.
"""

import copy
from collections import defaultdict
from typing import Any

from app.domain.value_objects.index import IndexDeclaration
from app.domain.value_objects.query import QueryPlan
from app.infrastructure.exceptions import DocumentExistsError

ID_FIELD = "_id"


class InMemoryDocumentStore:
    """Dict-backed engine: namespace -> collection -> id -> record.

    Records are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self) -> None:
        self._data: defaultdict[str, dict[str, dict[str, dict[str, Any]]]] = defaultdict(dict)
        self._indexes: defaultdict[tuple[str, str], dict[str, dict[str, Any]]] = defaultdict(dict)

    async def namespace_exists(self, namespace: str) -> bool:
        return any(self._data.get(namespace, {}).values())

    async def collection_exists(self, namespace: str, collection: str) -> bool:
        return bool(self._data.get(namespace, {}).get(collection))

    async def get(self, namespace: str, collection: str, document_id: str) -> dict[str, Any] | None:
        record = self._data.get(namespace, {}).get(collection, {}).get(document_id)
        if record is None:
            return None
        return {ID_FIELD: document_id, **copy.deepcopy(record)}

    async def insert(
        self, namespace: str, collection: str, document_id: str, data: dict[str, Any]
    ) -> None:
        docs = self._data[namespace].setdefault(collection, {})
        if document_id in docs:
            raise DocumentExistsError(namespace, collection, document_id)
        docs[document_id] = self._strip(data)

    async def put(
        self, namespace: str, collection: str, document_id: str, data: dict[str, Any]
    ) -> None:
        self._data[namespace].setdefault(collection, {})[document_id] = self._strip(data)

    async def delete(self, namespace: str, collection: str, document_id: str) -> bool:
        docs = self._data.get(namespace, {}).get(collection)
        if not docs or document_id not in docs:
            return False
        del docs[document_id]
        return True

    async def find(
        self, namespace: str, collection: str, plan: QueryPlan | None = None
    ) -> list[dict[str, Any]]:
        docs = self._data.get(namespace, {}).get(collection, {})
        records = [{ID_FIELD: doc_id, **copy.deepcopy(r)} for doc_id, r in docs.items()]
        return plan.apply(records) if plan is not None else records

    async def list_index_names(self, namespace: str, collection: str) -> list[str]:
        return list(self._indexes[(namespace, collection)])

    async def create_index(self, namespace: str, collection: str, index: IndexDeclaration) -> None:
        self._indexes[(namespace, collection)][index.name] = {
            "fields": dict(index.fields),
            "options": dict(index.options),
        }

    async def aclose(self) -> None:
        return None

    @staticmethod
    def _strip(data: dict[str, Any]) -> dict[str, Any]:
        return {k: copy.deepcopy(v) for k, v in data.items() if k != ID_FIELD}
