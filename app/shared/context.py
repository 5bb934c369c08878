"""Request context management using contextvars.

Provides async-safe storage for request-scoped data (request id, current
user) so log records can be correlated without passing them around.

Usage:
    set_request_id("abc123")
    set_current_user("user_1")
    request_id = get_request_id()
"""

from contextvars import ContextVar

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)


def set_request_id(request_id: str | None) -> None:
    _request_id.set(request_id)


def get_request_id() -> str | None:
    return _request_id.get()


def set_current_user(user_id: str | None) -> None:
    """Record the authenticated user for the current request (set by the auth dependency)."""
    _current_user_id.set(user_id)


def get_current_user_id() -> str | None:
    return _current_user_id.get()
