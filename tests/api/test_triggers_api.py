"""Trigger endpoints."""

from collections.abc import Callable

import pytest
from httpx import AsyncClient

from tests.conftest import OTHER_PROJECT, PROJECT

TRIGGERS_URL = f"/v1/projects/{PROJECT}/triggers"
CRON_BODY = {"taskId": "global/getPage", "triggerType": "cron", "config": {"schedule": "0 * * * *"}}


@pytest.fixture
def headers(auth_headers: Callable[..., dict[str, str]]) -> dict[str, str]:
    return auth_headers("alice")


async def test_create_get_list(client: AsyncClient, headers: dict[str, str]) -> None:
    response = await client.post(
        TRIGGERS_URL, headers=headers, json={**CRON_BODY, "taskParams": {"url": "https://example.com"}}
    )
    assert response.status_code == 201
    created = response.json()
    assert created["taskId"] == "global/getPage"
    assert created["taskParams"] == {"url": "https://example.com"}
    assert created["enabled"] is True

    response = await client.get(f"{TRIGGERS_URL}/{created['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json()["config"] == {"schedule": "0 * * * *"}

    response = await client.get(TRIGGERS_URL, headers=headers)
    assert response.json()["total"] == 1


async def test_create_with_invalid_config(client: AsyncClient, headers: dict[str, str]) -> None:
    response = await client.post(
        TRIGGERS_URL, headers=headers, json={**CRON_BODY, "config": {"schedule": "* *"}}
    )
    assert response.status_code == 400
    assert response.json()["error"].startswith("Cron expression must have 5 or 6 parts")


async def test_create_for_unknown_task(client: AsyncClient, headers: dict[str, str]) -> None:
    response = await client.post(TRIGGERS_URL, headers=headers, json={**CRON_BODY, "taskId": "ghost"})
    assert response.status_code == 404


async def test_put_reports_created_then_ok(client: AsyncClient, headers: dict[str, str]) -> None:
    url = f"{TRIGGERS_URL}/hourly"
    first = await client.put(url, headers=headers, json=CRON_BODY)
    assert first.status_code == 201
    second = await client.put(url, headers=headers, json={**CRON_BODY, "description": "hourly fetch"})
    assert second.status_code == 200
    assert second.json()["description"] == "hourly fetch"
    assert second.json()["createdAt"] == first.json()["createdAt"]


async def test_patch_and_delete(client: AsyncClient, headers: dict[str, str]) -> None:
    url = f"{TRIGGERS_URL}/hourly"
    await client.put(url, headers=headers, json=CRON_BODY)
    response = await client.patch(url, headers=headers, json={"enabled": False})
    assert response.status_code == 200
    assert response.json()["enabled"] is False

    response = await client.delete(url, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert (await client.get(url, headers=headers)).status_code == 404


async def test_other_project_is_denied(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    response = await client.get(TRIGGERS_URL, headers=auth_headers("mallory", OTHER_PROJECT))
    assert response.status_code == 403
