"""Tests for the document store façade: tenancy, ownership and write semantics."""

from collections.abc import Callable

import pytest

from app.application.dtos.principal import Principal
from app.core.container import ServiceContainer
from app.domain.exceptions import (
    IdGenerationFailedException,
    InvalidCollectionNameException,
    InvalidDocumentIdException,
    OwnershipViolationException,
    PermissionDeniedException,
    ProjectNotFoundException,
    ResourceNotFoundException,
)
from app.application.use_cases.documents import DocumentService
from app.infrastructure.exceptions import DocumentExistsError
from tests.conftest import OTHER_PROJECT, PROJECT


async def test_create_assigns_owner_and_timestamps(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """Created documents get a generated id, the caller as owner and equal timestamps."""
    record = await container.documents.create(principal("alice"), PROJECT, "notes", {"text": "hi"})
    assert record["_id"]
    assert record["ownerId"] == "alice"
    assert record["createTime"] == record["updateTime"]
    stored = await container.documents.get(principal("bob"), PROJECT, "notes", record["_id"])
    assert stored["text"] == "hi"


async def test_client_cannot_set_server_fields(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """ownerId, _id and timestamps in the payload are ignored."""
    record = await container.documents.create(
        principal("alice"), PROJECT, "notes", {"ownerId": "mallory", "_id": "forced", "text": "x"}
    )
    assert record["ownerId"] == "alice"
    assert record["_id"] != "forced"


async def test_create_seeds_default_rules(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """The first write to a collection records default security rules."""
    await container.documents.create(principal("alice"), PROJECT, "notes", {"text": "hi"})
    metadata = await container.security.get_metadata(PROJECT, "notes")
    assert len(metadata["rules"]) == 3
    assert metadata["indexes"] == []


async def test_update_merges_fields(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """PATCH keeps fields absent from the request."""
    alice = principal("alice")
    record = await container.documents.create(alice, PROJECT, "notes", {"a": 1, "b": 2})
    updated = await container.documents.update(alice, PROJECT, "notes", record["_id"], {"b": 3})
    assert updated["a"] == 1
    assert updated["b"] == 3
    assert updated["createTime"] == record["createTime"]
    assert updated["ownerId"] == "alice"


async def test_set_replaces_and_keeps_system_fields(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """PUT replaces user fields but preserves owner and createTime."""
    alice = principal("alice")
    first, created = await container.documents.set(alice, PROJECT, "notes", "n1", {"a": 1, "b": 2})
    assert created is True
    second, created = await container.documents.set(alice, PROJECT, "notes", "n1", {"c": 3})
    assert created is False
    assert "a" not in second
    assert second["c"] == 3
    assert second["ownerId"] == "alice"
    assert second["createTime"] == first["createTime"]


async def test_non_owner_cannot_update_or_delete(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """Ownership is enforced for update, set and delete."""
    record = await container.documents.create(principal("alice"), PROJECT, "notes", {"text": "hi"})
    bob = principal("bob")
    with pytest.raises(OwnershipViolationException) as exc_info:
        await container.documents.update(bob, PROJECT, "notes", record["_id"], {"text": "x"})
    assert exc_info.value.details == {
        "operation": "update",
        "documentId": record["_id"],
        "requiredOwner": "alice",
        "currentUser": "bob",
    }
    with pytest.raises(OwnershipViolationException):
        await container.documents.set(bob, PROJECT, "notes", record["_id"], {"text": "x"})
    with pytest.raises(OwnershipViolationException) as exc_info:
        await container.documents.delete(bob, PROJECT, "notes", record["_id"])
    assert exc_info.value.details["operation"] == "delete"


async def test_legacy_document_without_owner_is_modifiable(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """Documents with no ownerId can be changed by anyone."""
    await container.store.put(PROJECT, "notes", "legacy", {"text": "old"})
    updated = await container.documents.update(principal("bob"), PROJECT, "notes", "legacy", {"text": "new"})
    assert updated["text"] == "new"
    assert "ownerId" not in updated


async def test_delete_missing_document(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """Deleting an absent document is NotFound with a suggestion."""
    with pytest.raises(ResourceNotFoundException) as exc_info:
        await container.documents.delete(principal("alice"), PROJECT, "notes", "nope")
    assert exc_info.value.message == "Document not found"
    assert "nope" in exc_info.value.suggestion


async def test_cannot_create_collection_in_foreign_project(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """A caller from another project cannot create new collections here."""
    await container.documents.create(principal("alice"), PROJECT, "notes", {"text": "hi"})
    mallory = principal("mallory", OTHER_PROJECT)
    with pytest.raises(PermissionDeniedException) as exc_info:
        await container.documents.create(mallory, PROJECT, "secrets", {"x": 1})
    assert exc_info.value.message == (
        f"Cannot create collection 'secrets' in database '{PROJECT}' - collections can only be "
        f"created in your project database '{OTHER_PROJECT}'"
    )


async def test_cannot_create_foreign_database(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """Writing into an empty namespace of another project is denied."""
    mallory = principal("mallory", OTHER_PROJECT)
    with pytest.raises(PermissionDeniedException) as exc_info:
        await container.documents.create(mallory, PROJECT, "notes", {"x": 1})
    assert exc_info.value.message.startswith(f"Cannot create database '{PROJECT}'")


async def test_foreign_caller_may_write_existing_collection(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """Cross-project writes to existing collections are allowed (ownership still applies)."""
    await container.documents.create(principal("alice"), PROJECT, "notes", {"text": "hi"})
    record = await container.documents.create(principal("mallory", OTHER_PROJECT), PROJECT, "notes", {"x": 1})
    assert record["ownerId"] == "mallory"


async def test_public_project_is_open_to_everyone(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """Any caller may create collections in the public project."""
    record = await container.documents.create(principal("mallory", OTHER_PROJECT), "public", "board", {"m": "hi"})
    assert record["ownerId"] == "mallory"


async def test_unknown_project(container: ServiceContainer, principal: Callable[..., Principal]) -> None:
    """Operations on a project that does not exist are NotFound."""
    with pytest.raises(ProjectNotFoundException):
        await container.documents.list(principal("alice"), "ghost", "notes")


async def test_identifiers_validated_before_storage(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """Invalid collection names and document ids are rejected up front."""
    with pytest.raises(InvalidCollectionNameException):
        await container.documents.list(principal("alice"), PROJECT, "BadName")
    with pytest.raises(InvalidDocumentIdException):
        await container.documents.get(principal("alice"), PROJECT, "notes", "bad.id")


async def test_id_generation_exhaustion(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """When every generated id collides the create fails after the attempt budget."""
    await container.store.put(PROJECT, "notes", "fixedid", {"text": "taken"})
    service = DocumentService(
        container.store,
        container.projects,
        container.security,
        id_generation_max_attempts=3,
        id_factory=lambda: "fixedid",
    )
    with pytest.raises(IdGenerationFailedException):
        await service.create(principal("alice"), PROJECT, "notes", {"text": "x"})


async def test_metadata_update_requires_membership(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """Only members of the project may change collection metadata."""
    with pytest.raises(PermissionDeniedException):
        await container.documents.update_metadata(
            principal("mallory", OTHER_PROJECT), PROJECT, "notes", rules=[]
        )


async def test_id_taken_between_check_and_insert_is_retried(
    container: ServiceContainer, principal: Callable[..., Principal], monkeypatch: pytest.MonkeyPatch
) -> None:
    """An insert that loses a race for its id retries with a fresh id."""
    real_insert = container.store.insert
    lost: list[str] = []

    async def racing_insert(namespace, collection, document_id, record):
        if collection == "notes" and not lost:
            lost.append(document_id)
            raise DocumentExistsError(namespace, collection, document_id)
        await real_insert(namespace, collection, document_id, record)

    monkeypatch.setattr(container.store, "insert", racing_insert)
    record = await container.documents.create(principal("alice"), PROJECT, "notes", {"text": "hi"})
    assert lost and record["_id"] != lost[0]
    assert (await container.store.get(PROJECT, "notes", record["_id"]))["text"] == "hi"


async def test_legacy_document_can_be_replaced_and_deleted(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """PUT and DELETE skip the ownership check for documents with no ownerId."""
    await container.store.put(PROJECT, "notes", "legacy", {"text": "old"})
    bob = principal("bob")
    replaced, created = await container.documents.set(bob, PROJECT, "notes", "legacy", {"text": "new"})
    assert created is False
    assert replaced["text"] == "new"
    assert "ownerId" not in replaced
    assert await container.documents.delete(bob, PROJECT, "notes", "legacy") == "legacy"
    assert await container.store.get(PROJECT, "notes", "legacy") is None


async def test_owner_put_cannot_change_owner(
    container: ServiceContainer, principal: Callable[..., Principal]
) -> None:
    """A replacement by the owner keeps ownerId even if the body names someone else."""
    alice = principal("alice")
    await container.documents.set(alice, PROJECT, "notes", "mine", {"a": 1})
    replaced, _ = await container.documents.set(
        alice, PROJECT, "notes", "mine", {"a": 2, "ownerId": "mallory"}
    )
    assert replaced["ownerId"] == "alice"
    assert (await container.store.get(PROJECT, "notes", "mine"))["ownerId"] == "alice"
