"""Pytest configuration and fixtures for docbase.

Environment is set before the app is imported so Settings validates. Each
test gets a fresh ServiceContainer on the in-memory engine; ASGITransport
does not run lifespan events, so fixtures call startup()/shutdown() directly.
"""

import os
from collections.abc import Callable

import pytest
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production-0123456789")
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["TELEMETRY_ENABLED"] = "false"

from app.core.config import get_settings  # noqa: E402

get_settings.cache_clear()

from app.application.dtos.principal import Principal  # noqa: E402
from app.core.container import ServiceContainer  # noqa: E402
from app.core.limiter import limiter  # noqa: E402
from app.infrastructure.security.jwt import create_principal_token  # noqa: E402
from app.main import create_app  # noqa: E402

# Projects created for every test: "Acme App" is owned by alice, "Other App" by mallory.
PROJECT = "acme_app"
OTHER_PROJECT = "other_app"


@pytest.fixture
async def container() -> ServiceContainer:
    """Started service container on a fresh in-memory store."""
    c = ServiceContainer.build(get_settings())
    await c.startup()
    await c.projects.create("Acme App", "alice")
    await c.projects.create("Other App", "mallory")
    yield c
    await c.shutdown()


@pytest.fixture
async def client(container: ServiceContainer) -> AsyncClient:
    """Async HTTP client against an app wired to the test container."""
    limiter.reset()
    app = create_app(container)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def principal() -> Callable[..., Principal]:
    """Factory for callers: principal("alice") acts in PROJECT by default."""

    def _make(user_id: str, project: str = PROJECT) -> Principal:
        return Principal(user_id=user_id, project_id=project, project_name=project)

    return _make


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Factory for bearer headers: auth_headers("alice") for PROJECT by default."""

    def _make(user_id: str, project: str = PROJECT) -> dict[str, str]:
        token = create_principal_token(user_id, project)
        return {"Authorization": f"Bearer {token}"}

    return _make
