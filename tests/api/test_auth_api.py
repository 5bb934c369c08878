"""Bearer-token boundary: missing, malformed and expired tokens."""

from collections.abc import Callable
from datetime import timedelta

from httpx import AsyncClient

from app.infrastructure.security.jwt import create_principal_token
from tests.conftest import PROJECT

TASKS_URL = f"/v1/projects/{PROJECT}/tasks"


async def test_missing_token_returns_401(client: AsyncClient) -> None:
    response = await client.get(TASKS_URL)
    assert response.status_code == 401
    assert response.json() == {"error": "Access token required"}


async def test_garbage_token_returns_403(client: AsyncClient) -> None:
    response = await client.get(TASKS_URL, headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 403
    assert response.json() == {"error": "Invalid or expired token"}


async def test_expired_token_returns_403(client: AsyncClient) -> None:
    token = create_principal_token("alice", PROJECT, expires_delta=timedelta(minutes=-5))
    response = await client.get(TASKS_URL, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403


async def test_valid_token_is_accepted(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    response = await client.get(TASKS_URL, headers=auth_headers("alice"))
    assert response.status_code == 200


async def test_health_needs_no_token(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
