"""Task endpoints: registry CRUD and invocation."""

from collections.abc import Callable

from httpx import AsyncClient

from app.core.container import ServiceContainer
from tests.conftest import OTHER_PROJECT, PROJECT

TASKS_URL = f"/v1/projects/{PROJECT}/tasks"

GREET_SOURCE = (
    "async def handler(params, context):\n"
    "    context.console.log('greeting', params.get('name'))\n"
    "    return {'message': 'Hello ' + params.get('name', 'world')}\n"
)


async def _register(client: AsyncClient, headers: dict[str, str], **overrides) -> dict:
    body = {"id": "greet", "description": "Say hello", "implementationCode": GREET_SOURCE, **overrides}
    response = await client.post(TASKS_URL, headers=headers, json=body)
    assert response.status_code == 201, response.text
    return response.json()


async def test_list_includes_global_tasks(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    headers = auth_headers("alice")
    await _register(client, headers)
    response = await client.get(TASKS_URL, headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["globalCount"] == 2
    assert data["projectCount"] == 1
    assert data["count"] == 3
    assert [t["id"] for t in data["tasks"]][-1] == "greet"
    assert all("implementationCode" not in t for t in data["tasks"])


async def test_create_returns_summary(client: AsyncClient, auth_headers: Callable[..., dict[str, str]]) -> None:
    created = await _register(client, auth_headers("alice"))
    assert created["id"] == "greet"
    assert created["isUserTask"] is True
    assert created["createdBy"] == "alice"
    assert "implementationCode" not in created


async def test_create_validation_errors(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    headers = auth_headers("alice")
    response = await client.post(TASKS_URL, headers=headers, json={"id": "x"})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields"
    response = await client.post(
        TASKS_URL, headers=headers, json={"id": "bad-id", "description": "d", "implementationCode": "x"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid task ID"


async def test_duplicate_is_conflict(client: AsyncClient, auth_headers: Callable[..., dict[str, str]]) -> None:
    headers = auth_headers("alice")
    await _register(client, headers)
    response = await client.post(
        TASKS_URL,
        headers=headers,
        json={"id": "greet", "description": "again", "implementationCode": GREET_SOURCE},
    )
    assert response.status_code == 409


async def test_get_includes_source(client: AsyncClient, auth_headers: Callable[..., dict[str, str]]) -> None:
    headers = auth_headers("alice")
    await _register(client, headers)
    response = await client.get(f"{TASKS_URL}/greet", headers=headers)
    assert response.status_code == 200
    assert response.json()["implementationCode"] == GREET_SOURCE
    assert (await client.get(f"{TASKS_URL}/getPage", headers=headers)).json()["isUserTask"] is False


async def test_invoke(client: AsyncClient, auth_headers: Callable[..., dict[str, str]]) -> None:
    headers = auth_headers("alice")
    await _register(client, headers)
    response = await client.post(f"{TASKS_URL}/greet:do", headers=headers, json={"data": {"name": "Ada"}})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["result"] == {"message": "Hello Ada"}
    assert data["taskName"] == "greet"
    assert data["executedAt"]


async def test_invoke_without_body(client: AsyncClient, auth_headers: Callable[..., dict[str, str]]) -> None:
    headers = auth_headers("alice")
    await _register(client, headers)
    response = await client.post(f"{TASKS_URL}/greet:do", headers=headers)
    assert response.status_code == 200
    assert response.json()["result"] == {"message": "Hello world"}


async def test_invoke_failure_returns_500(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    headers = auth_headers("alice")
    await _register(
        client,
        headers,
        id="broken",
        implementationCode="async def handler(params, context):\n    raise ValueError('kaput')\n",
    )
    response = await client.post(f"{TASKS_URL}/broken:do", headers=headers, json={"data": {}})
    assert response.status_code == 500
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "Task execution failed"
    assert data["details"] == "kaput"
    assert data["taskName"] == "broken"


async def test_invoke_timeout_reports_timeout(
    client: AsyncClient, container: ServiceContainer, auth_headers: Callable[..., dict[str, str]]
) -> None:
    """A task that outlives the deadline fails with a timeout message."""
    container.engine.timeout_seconds = 0.1
    headers = auth_headers("alice")
    await _register(
        client,
        headers,
        id="slow",
        implementationCode="import asyncio\nasync def handler(params, context):\n    await asyncio.sleep(5)\n",
    )
    response = await client.post(f"{TASKS_URL}/slow:do", headers=headers, json={"data": {}})
    assert response.status_code == 500
    data = response.json()
    assert data["success"] is False
    assert "timeout" in data["details"]
    assert data["taskName"] == "slow"


async def test_invoke_unknown_task(client: AsyncClient, auth_headers: Callable[..., dict[str, str]]) -> None:
    response = await client.post(f"{TASKS_URL}/ghost:do", headers=auth_headers("alice"))
    assert response.status_code == 404


async def test_update_and_delete(client: AsyncClient, auth_headers: Callable[..., dict[str, str]]) -> None:
    headers = auth_headers("alice")
    await _register(client, headers)
    response = await client.put(f"{TASKS_URL}/greet", headers=headers, json={"description": "Greets"})
    assert response.status_code == 200
    assert response.json()["description"] == "Greets"
    assert response.json()["implementationCode"] == GREET_SOURCE

    response = await client.delete(f"{TASKS_URL}/greet", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Task deleted successfully", "taskName": "greet"}
    assert (await client.get(f"{TASKS_URL}/greet", headers=headers)).status_code == 404


async def test_global_task_cannot_be_updated(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    response = await client.put(
        f"{TASKS_URL}/getPage", headers=auth_headers("alice"), json={"description": "mine now"}
    )
    assert response.status_code == 404


async def test_other_project_members_are_denied(
    client: AsyncClient, auth_headers: Callable[..., dict[str, str]]
) -> None:
    response = await client.get(TASKS_URL, headers=auth_headers("mallory", OTHER_PROJECT))
    assert response.status_code == 403
    assert response.json()["suggestion"] == f"You can only access tasks in your own project '{OTHER_PROJECT}'."
