"""Per-collection security metadata: rules and index declarations.

Rules are descriptive (ownership is enforced structurally by the document
façade). Index declarations are applied to the storage engine on every
write, best-effort: failures are logged and never block the write.
"""

import copy
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from app.core.constants import METADATA_COLLECTION
from app.domain.exceptions import ValidationException
from app.domain.value_objects.index import IndexDeclaration
from app.infrastructure.exceptions import DocumentExistsError
from app.infrastructure.storage.protocol import DocumentStoreProtocol
from app.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

RULE_ACTIONS = frozenset({"read", "write", "create", "delete"})

DEFAULT_RULES: list[dict[str, Any]] = [
    {"match": "/documents/{document}", "allow": ["read"], "condition": "true"},
    {
        "match": "/documents/{document}",
        "allow": ["write"],
        "condition": "auth != null && (resource == null || resource.data.ownerId == auth.uid)",
    },
    {
        "match": "/documents/{document}",
        "allow": ["delete"],
        "condition": "auth != null && resource.data.ownerId == auth.uid",
    },
]


def _validate_rules(rules: Any) -> list[dict[str, Any]]:
    if not isinstance(rules, list):
        raise ValidationException("rules must be an array", field="rules")
    validated = []
    for i, rule in enumerate(rules):
        if not isinstance(rule, dict):
            raise ValidationException(f"rules[{i}] must be an object", field="rules")
        allow = rule.get("allow")
        actions = [allow] if isinstance(allow, str) else allow
        if not actions or not isinstance(actions, list) or not set(actions) <= RULE_ACTIONS:
            raise ValidationException(
                f"rules[{i}].allow must be one or more of: read, write, create, delete",
                field="rules",
            )
        if not isinstance(rule.get("match", ""), str) or not isinstance(rule.get("condition", ""), str):
            raise ValidationException(f"rules[{i}] match and condition must be strings", field="rules")
        validated.append(
            {
                "match": rule.get("match", "/documents/{document}"),
                "allow": list(actions),
                "condition": rule.get("condition", "true"),
            }
        )
    return validated


def _validate_indexes(indexes: Any) -> list[IndexDeclaration]:
    if not isinstance(indexes, list):
        raise ValidationException("indexes must be an array", field="indexes")
    try:
        return [IndexDeclaration.from_dict(i) for i in indexes]
    except (TypeError, ValueError) as e:
        raise ValidationException(f"Invalid index declaration: {e}", field="indexes") from e


class CollectionSecurityService:
    """Seeds, reads and updates collection metadata; applies declared indexes."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._clock = clock

    async def get_metadata(self, project: str, collection: str) -> dict[str, Any]:
        """Return ``{rules, indexes}``; empty lists when nothing was ever recorded."""
        record = await self._store.get(project, METADATA_COLLECTION, collection)
        if record is None:
            return {"rules": [], "indexes": []}
        return {"rules": record.get("rules") or [], "indexes": record.get("indexes") or []}

    async def ensure_default_metadata(self, project: str, collection: str) -> bool:
        """Seed default rules once. Never overwrites existing rules.

        Returns:
            True if defaults were written.
        """
        record = await self._store.get(project, METADATA_COLLECTION, collection)
        if record is not None and record.get("rules"):
            return False
        now = self._clock()
        if record is None:
            try:
                await self._store.insert(
                    project,
                    METADATA_COLLECTION,
                    collection,
                    {"rules": copy.deepcopy(DEFAULT_RULES), "indexes": [], "createdAt": now, "updatedAt": now},
                )
            except DocumentExistsError:
                return False
        else:
            updated = {k: v for k, v in record.items() if k != "_id"}
            updated.update(rules=copy.deepcopy(DEFAULT_RULES), updatedAt=now)
            await self._store.put(project, METADATA_COLLECTION, collection, updated)
        logger.info("Seeded default security rules for %s/%s", project, collection)
        return True

    async def update_metadata(
        self,
        project: str,
        collection: str,
        rules: Any = None,
        indexes: Any = None,
    ) -> dict[str, Any]:
        """Upsert rules and/or indexes independently.

        Returns:
            ``{updated, created}`` flags for the response.

        Raises:
            ValidationException: Neither field given, or malformed rules/indexes.
        """
        if rules is None and indexes is None:
            raise ValidationException(
                "Provide 'rules' and/or 'indexes' to update",
                suggestion='Send {"rules": [...]} or {"indexes": [...]}.',
            )
        changes: dict[str, Any] = {}
        if rules is not None:
            changes["rules"] = _validate_rules(rules)
        if indexes is not None:
            changes["indexes"] = [i.to_dict() for i in _validate_indexes(indexes)]

        now = self._clock()
        record = await self._store.get(project, METADATA_COLLECTION, collection)
        created = record is None
        data = {k: v for k, v in (record or {}).items() if k != "_id"}
        data.setdefault("rules", [])
        data.setdefault("indexes", [])
        data.setdefault("createdAt", now)
        data.update(changes, updatedAt=now)
        await self._store.put(project, METADATA_COLLECTION, collection, data)
        logger.info(
            "Collection metadata %s for %s/%s (%s)",
            "created" if created else "updated",
            project,
            collection,
            ", ".join(sorted(changes)),
        )
        if "indexes" in changes:
            await self.apply_indexes(project, collection)
        return {"updated": not created, "created": created}

    async def apply_indexes(self, project: str, collection: str) -> list[str]:
        """Create declared indexes missing from the engine. Never raises.

        Returns:
            Names of indexes created by this call.
        """
        created: list[str] = []
        try:
            metadata = await self.get_metadata(project, collection)
            declared = _validate_indexes(metadata["indexes"])
            if not declared:
                return created
            existing = set(await self._store.list_index_names(project, collection))
        except Exception:
            logger.warning("Could not load index declarations for %s/%s", project, collection, exc_info=True)
            return created
        for index in declared:
            if index.name in existing:
                continue
            try:
                await self._store.create_index(project, collection, index)
            except Exception:
                logger.warning(
                    "Failed to create index %s on %s/%s; continuing",
                    index.name,
                    project,
                    collection,
                    exc_info=True,
                )
                continue
            created.append(index.name)
            logger.info("Created index %s on %s/%s", index.name, project, collection)
        return created
