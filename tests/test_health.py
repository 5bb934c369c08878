"""Smoke tests for health and app wiring."""

from httpx import AsyncClient


async def test_health_returns_healthy(client: AsyncClient) -> None:
    """GET /health returns 200, status healthy and the app version."""
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == "1.0.0"
    assert "timestamp" in data


async def test_responses_carry_request_id(client: AsyncClient) -> None:
    """A well-formed client X-Request-ID is echoed back."""
    response = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["x-request-id"] == "req-123"


async def test_malformed_request_id_is_replaced(client: AsyncClient) -> None:
    """An unsafe X-Request-ID is replaced with a generated one."""
    response = await client.get("/health", headers={"X-Request-ID": "bad id with spaces!"})
    assert response.headers["x-request-id"] != "bad id with spaces!"
    assert len(response.headers["x-request-id"]) == 32


async def test_security_headers_present(client: AsyncClient) -> None:
    """JSON responses carry the API security headers."""
    response = await client.get("/health")
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"


async def test_unknown_route_returns_json_404(client: AsyncClient) -> None:
    """Unknown paths render the {error} body."""
    response = await client.get("/v1/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}
