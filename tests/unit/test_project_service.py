"""Tests for project creation, name sanitization and API key rotation."""

import re

import pytest

from app.application.services.project_service import ProjectService
from app.domain.exceptions import (
    ProjectNotFoundException,
    ResourceNotFoundException,
    ValidationException,
)
from app.infrastructure.storage.memory_store import InMemoryDocumentStore
from app.shared.utils.sanitization import sanitize_project_name

API_KEY_PATTERN = re.compile(r"^bb_[0-9a-f]{64}$")


@pytest.fixture
def projects() -> ProjectService:
    return ProjectService(InMemoryDocumentStore())


@pytest.mark.parametrize(
    "display_name,expected",
    [
        ("My Cool App!", "my_cool_app"),
        ("  Already_ok  ", "already_ok"),
        ("a--b..c", "a_b_c"),
        ("System Tools", "proj_system_tools"),
        ("x" * 80, "x" * 60),
    ],
)
def test_sanitize_project_name(display_name: str, expected: str) -> None:
    assert sanitize_project_name(display_name) == expected


def test_sanitize_rejects_names_without_valid_characters() -> None:
    with pytest.raises(ValueError, match="Project name contains only invalid characters"):
        sanitize_project_name("!!! ???")


async def test_create_returns_key_and_display_name(projects: ProjectService) -> None:
    """A new project keeps the display name and gets a bb_ API key."""
    project = await projects.create("My Cool App", "alice", "demo")
    assert project.name == "my_cool_app"
    assert project.display_name == "My Cool App"
    assert project.owner_id == "alice"
    assert API_KEY_PATTERN.match(project.api_key)
    assert (await projects.resolve("my_cool_app")).description == "demo"


async def test_colliding_names_get_numeric_suffix(projects: ProjectService) -> None:
    """Later projects with the same sanitized name get _1, _2 ..."""
    first = await projects.create("Shop", "alice")
    second = await projects.create("shop", "bob")
    third = await projects.create("SHOP!", "carol")
    assert [first.name, second.name, third.name] == ["shop", "shop_1", "shop_2"]


async def test_invalid_names(projects: ProjectService) -> None:
    """Empty and fully-invalid names are validation errors."""
    with pytest.raises(ValidationException, match="Project name is required"):
        await projects.create("   ", "alice")
    with pytest.raises(ValidationException, match="Project name contains only invalid characters"):
        await projects.create("@@@", "alice")


async def test_resolve_unknown_project(projects: ProjectService) -> None:
    with pytest.raises(ProjectNotFoundException) as exc_info:
        await projects.resolve("ghost")
    assert exc_info.value.message == "Project 'ghost' not found"


async def test_list_owned(projects: ProjectService) -> None:
    await projects.create("One", "alice")
    await projects.create("Two", "bob")
    await projects.create("Three", "alice")
    owned = await projects.list_owned("alice")
    assert sorted(p.name for p in owned) == ["one", "three"]


async def test_regenerate_api_key(projects: ProjectService) -> None:
    """Only the owner can rotate the key; the old key stops being stored."""
    project = await projects.create("Keys", "alice")
    rotated = await projects.regenerate_api_key("keys", "alice")
    assert rotated.api_key != project.api_key
    assert API_KEY_PATTERN.match(rotated.api_key)
    assert (await projects.resolve("keys")).api_key == rotated.api_key


async def test_regenerate_by_non_owner_is_not_found(projects: ProjectService) -> None:
    await projects.create("Keys", "alice")
    with pytest.raises(ResourceNotFoundException) as exc_info:
        await projects.regenerate_api_key("keys", "mallory")
    assert exc_info.value.message == "Project not found"


async def test_public_fields_hide_api_key(projects: ProjectService) -> None:
    project = await projects.create("Visible", "alice")
    fields = project.public_fields()
    assert "apiKey" not in fields
    assert fields["name"] == "Visible"


async def test_ensure_project_is_idempotent(projects: ProjectService) -> None:
    first = await projects.ensure_project("public", "system")
    second = await projects.ensure_project("public", "someone")
    assert first.api_key == second.api_key
    assert second.owner_id == "system"
