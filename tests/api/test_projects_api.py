"""Project endpoints: create, list and key regeneration."""

import re
from collections.abc import Callable

from httpx import AsyncClient

from app.schemas.project import API_KEY_WARNING
from tests.conftest import PROJECT

API_KEY_PATTERN = re.compile(r"^bb_[0-9a-f]{64}$")


async def test_create_project_returns_key_once(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    response = await client.post(
        "/v1/projects",
        headers=auth_headers("alice"),
        json={"name": "Cool App", "description": "demo"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["project"]["name"] == "projects/cool_app"
    assert data["project"]["fields"]["name"] == {"stringValue": "Cool App"}
    assert data["project"]["fields"]["ownerId"] == {"stringValue": "alice"}
    assert "apiKey" not in data["project"]["fields"]
    assert API_KEY_PATTERN.match(data["apiKey"])
    assert data["warning"] == API_KEY_WARNING
    assert data["note"] == "Database name will be: cool_app"


async def test_create_project_requires_name(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    response = await client.post("/v1/projects", headers=auth_headers("alice"), json={})
    assert response.status_code == 400
    assert response.json()["error"] == "Project name is required"


async def test_list_projects_shows_only_owned(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    response = await client.get("/v1/projects", headers=auth_headers("alice"))
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    assert data["projects"][0]["name"] == f"projects/{PROJECT}"
    assert "apiKey" not in response.text


async def test_regenerate_key(client: AsyncClient, auth_headers: Callable[..., dict[str, str]]) -> None:
    response = await client.post(f"/v1/projects/{PROJECT}:regenerateKey", headers=auth_headers("alice"))
    assert response.status_code == 200
    data = response.json()
    assert API_KEY_PATTERN.match(data["apiKey"])
    assert data["note"] == "Previous API key has been invalidated."


async def test_regenerate_key_by_non_owner_is_404(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    response = await client.post(f"/v1/projects/{PROJECT}:regenerateKey", headers=auth_headers("bob"))
    assert response.status_code == 404
    assert response.json()["error"] == "Project not found"


async def test_project_creation_is_rate_limited(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    headers = auth_headers("alice")
    statuses = [
        (await client.post("/v1/projects", headers=headers, json={"name": f"App {i}"})).status_code
        for i in range(6)
    ]
    assert statuses == [201] * 5 + [429]
