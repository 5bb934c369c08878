"""Document store façade: tenant-scoped CRUD, queries and collection metadata.

Every mutating operation runs through the ownership check: a document created
by one principal can only be changed or deleted by that principal, except
legacy documents that carry no ``ownerId``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.application.dtos.principal import Principal
from app.application.services.identifier_validator import (
    validate_collection_name,
    validate_document_id,
)
from app.application.services.query_translator import translate_structured_query
from app.domain.exceptions import (
    IdGenerationFailedException,
    OwnershipViolationException,
    PermissionDeniedException,
    ResourceNotFoundException,
    ValidationException,
)
from app.domain.value_objects.query import QueryPlan
from app.infrastructure.exceptions import DocumentExistsError
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_cuid
from app.shared.utils.typed_values import ID_FIELD, encode_fields

if TYPE_CHECKING:
    from app.application.services.collection_security_service import (
        CollectionSecurityService,
    )
    from app.application.services.project_service import ProjectService
    from app.infrastructure.storage.protocol import DocumentStoreProtocol

logger = logging.getLogger(__name__)

OWNER_FIELD = "ownerId"
CREATE_TIME = "createTime"
UPDATE_TIME = "updateTime"
SERVER_MANAGED_FIELDS = frozenset({ID_FIELD, OWNER_FIELD, CREATE_TIME, UPDATE_TIME})


def _client_fields(fields: dict[str, Any] | None) -> dict[str, Any]:
    """Drop server-managed keys from an incoming payload and check it is encodable."""
    cleaned = {k: v for k, v in (fields or {}).items() if k not in SERVER_MANAGED_FIELDS}
    try:
        encode_fields(cleaned)
    except TypeError as e:
        raise ValidationException(f"Unsupported field value: {e}", field="fields") from e
    return cleaned


def _document_not_found(collection: str, document_id: str) -> ResourceNotFoundException:
    return ResourceNotFoundException(
        "document",
        document_id,
        suggestion=f"Check that the document ID '{document_id}' exists in collection '{collection}'.",
    )


class DocumentService:
    """CRUD, list, query and metadata operations scoped to (project, collection)."""

    def __init__(
        self,
        store: "DocumentStoreProtocol",
        projects: "ProjectService",
        security: "CollectionSecurityService",
        public_project_name: str = "public",
        id_generation_max_attempts: int = 5,
        id_factory: Callable[[], str] = generate_cuid,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.projects = projects
        self.security = security
        self.public_project_name = public_project_name
        self.max_attempts = id_generation_max_attempts
        self._new_id = id_factory
        self._clock = clock

    # ---- permission helpers ----

    async def _check_creation_permissions(
        self, principal: Principal, project: str, collection: str
    ) -> None:
        """Reject creating a new database or collection outside the caller's project."""
        if project == self.public_project_name or principal.belongs_to(project):
            return
        suggestion = (
            f"You can only create documents in collections within your project "
            f"'{principal.project_name}'."
        )
        if not await self.store.namespace_exists(project):
            raise PermissionDeniedException(
                f"Cannot create database '{project}' - only databases matching your "
                f"project name '{principal.project_name}' can be created",
                suggestion=suggestion,
            )
        if not await self.store.collection_exists(project, collection):
            raise PermissionDeniedException(
                f"Cannot create collection '{collection}' in database '{project}' - "
                f"collections can only be created in your project database "
                f"'{principal.project_name}'",
                suggestion=suggestion,
            )

    @staticmethod
    def _ensure_owner(
        principal: Principal, operation: str, document_id: str, existing: dict[str, Any]
    ) -> None:
        owner = existing.get(OWNER_FIELD)
        if not owner:
            logger.warning(
                "Document %s has no owner; allowing %s by %s", document_id, operation, principal.user_id
            )
            return
        if owner != principal.user_id:
            logger.info(
                "Ownership check failed: %s on %s (owner %s, caller %s)",
                operation,
                document_id,
                owner,
                principal.user_id,
            )
            raise OwnershipViolationException(operation, document_id, owner, principal.user_id)

    async def _prepare(self, project: str, collection: str, document_id: str | None = None) -> None:
        validate_collection_name(collection)
        if document_id is not None:
            validate_document_id(document_id)
        await self.projects.resolve(project)

    async def _after_write(self, project: str, collection: str) -> None:
        await self.security.apply_indexes(project, collection)

    async def _load(self, project: str, collection: str, document_id: str) -> dict[str, Any]:
        existing = await self.store.get(project, collection, document_id)
        if existing is None:
            raise _document_not_found(collection, document_id)
        return existing

    # ---- operations ----

    async def create(
        self,
        principal: Principal,
        project: str,
        collection: str,
        fields: dict[str, Any] | None,
    ) -> dict[str, Any]:
        """Create a document under a generated id, owned by the caller.

        Returns:
            The stored record including ``_id``.

        Raises:
            InvalidCollectionNameException, ProjectNotFoundException,
            PermissionDeniedException, IdGenerationFailedException.
        """
        await self._prepare(project, collection)
        data = _client_fields(fields)
        await self._check_creation_permissions(principal, project, collection)
        await self.security.ensure_default_metadata(project, collection)

        now = self._clock()
        record = {**data, OWNER_FIELD: principal.user_id, CREATE_TIME: now, UPDATE_TIME: now}
        for _ in range(self.max_attempts):
            document_id = self._new_id()
            if await self.store.get(project, collection, document_id) is not None:
                logger.debug("Generated id %s collided in %s/%s", document_id, project, collection)
                continue
            try:
                await self.store.insert(project, collection, document_id, record)
            except DocumentExistsError:
                logger.debug("Generated id %s was taken concurrently in %s/%s", document_id, project, collection)
                continue
            logger.info(
                "Created document %s in %s/%s for %s", document_id, project, collection, principal.user_id
            )
            await self._after_write(project, collection)
            return {ID_FIELD: document_id, **record}
        logger.error(
            "Failed to generate unique document ID after %s attempts in %s/%s",
            self.max_attempts,
            project,
            collection,
        )
        raise IdGenerationFailedException(self.max_attempts)

    async def get(
        self, principal: Principal, project: str, collection: str, document_id: str
    ) -> dict[str, Any]:
        await self._prepare(project, collection, document_id)
        return await self._load(project, collection, document_id)

    async def list(self, principal: Principal, project: str, collection: str) -> list[dict[str, Any]]:
        """Return every document in the collection (no pagination)."""
        await self._prepare(project, collection)
        return await self.store.find(project, collection)

    async def update(
        self,
        principal: Principal,
        project: str,
        collection: str,
        document_id: str,
        fields: dict[str, Any] | None,
    ) -> dict[str, Any]:
        """Merge fields into an existing document. Owner, id and createTime never change."""
        await self._prepare(project, collection, document_id)
        changes = _client_fields(fields)
        existing = await self._load(project, collection, document_id)
        self._ensure_owner(principal, "update", document_id, existing)

        merged = {k: v for k, v in existing.items() if k != ID_FIELD}
        merged.update(changes)
        merged[UPDATE_TIME] = self._clock()
        await self.store.put(project, collection, document_id, merged)
        logger.info("Updated document %s in %s/%s", document_id, project, collection)
        await self._after_write(project, collection)
        return {ID_FIELD: document_id, **merged}

    async def set(
        self,
        principal: Principal,
        project: str,
        collection: str,
        document_id: str,
        fields: dict[str, Any] | None,
    ) -> tuple[dict[str, Any], bool]:
        """Replace a document's fields, keeping its system fields; create it if absent.

        Returns:
            (record, created)
        """
        await self._prepare(project, collection, document_id)
        data = _client_fields(fields)
        await self._check_creation_permissions(principal, project, collection)
        await self.security.ensure_default_metadata(project, collection)

        now = self._clock()
        existing = await self.store.get(project, collection, document_id)
        if existing is None:
            record = {**data, OWNER_FIELD: principal.user_id, CREATE_TIME: now, UPDATE_TIME: now}
            created = True
        else:
            self._ensure_owner(principal, "update", document_id, existing)
            record = dict(data)
            if existing.get(OWNER_FIELD):
                record[OWNER_FIELD] = existing[OWNER_FIELD]
            record[CREATE_TIME] = existing.get(CREATE_TIME, now)
            record[UPDATE_TIME] = now
            created = False
        await self.store.put(project, collection, document_id, record)
        logger.info(
            "%s document %s in %s/%s",
            "Created" if created else "Replaced",
            document_id,
            project,
            collection,
        )
        await self._after_write(project, collection)
        return {ID_FIELD: document_id, **record}, created

    async def delete(
        self, principal: Principal, project: str, collection: str, document_id: str
    ) -> str:
        """Delete a document the caller owns (or a legacy ownerless one).

        Returns:
            The deleted document id.
        """
        await self._prepare(project, collection, document_id)
        existing = await self._load(project, collection, document_id)
        self._ensure_owner(principal, "delete", document_id, existing)
        if not await self.store.delete(project, collection, document_id):
            raise _document_not_found(collection, document_id)
        logger.info("Deleted document %s from %s/%s", document_id, project, collection)
        return document_id

    async def query(self, principal: Principal, project: str, plan: QueryPlan) -> list[dict[str, Any]]:
        """Execute a translated plan against the project namespace."""
        await self._prepare(project, plan.collection)
        return await self.store.find(project, plan.collection, plan)

    async def run_query(
        self, principal: Principal, project: str, body: dict[str, Any] | None
    ) -> tuple[str, list[dict[str, Any]]]:
        """Translate a runQuery body and execute it.

        Returns:
            (collection, records)
        """
        plan = translate_structured_query(body)
        records = await self.query(principal, project, plan)
        logger.debug("runQuery on %s/%s returned %s documents", project, plan.collection, len(records))
        return plan.collection, records

    # ---- collection metadata ----

    async def get_metadata(self, principal: Principal, project: str, collection: str) -> dict[str, Any]:
        await self._prepare(project, collection)
        return await self.security.get_metadata(project, collection)

    async def update_metadata(
        self,
        principal: Principal,
        project: str,
        collection: str,
        rules: Any = None,
        indexes: Any = None,
    ) -> dict[str, Any]:
        """Upsert rules/indexes. Only members of the project may change them."""
        await self._prepare(project, collection)
        if not principal.belongs_to(project):
            raise PermissionDeniedException(
                f"Cannot change security metadata of collection '{collection}' in project '{project}'",
                suggestion=f"You can only manage collections within your project '{principal.project_name}'.",
            )
        return await self.security.update_metadata(project, collection, rules=rules, indexes=indexes)
