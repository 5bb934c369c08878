"""Security response headers for a JSON-only API.

Raw ASGI function middleware; headers already set by a route are kept.
"""

from typing import Callable

API_SECURITY_HEADERS = (
    ("x-content-type-options", "nosniff"),
    ("x-frame-options", "DENY"),
    ("referrer-policy", "no-referrer"),
    ("content-security-policy", "default-src 'none'; frame-ancestors 'none'"),
    ("cache-control", "no-store"),
)


def SecurityHeadersMiddleware(app: Callable) -> Callable:
    """Add API_SECURITY_HEADERS to every HTTP response that lacks them."""
    encoded = [(name.encode(), value.encode()) for name, value in API_SECURITY_HEADERS]

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return

        async def send_with_headers(message: dict) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                present = {name.lower() for name, _ in headers}
                headers.extend(h for h in encoded if h[0] not in present)
                message["headers"] = headers
            await send(message)

        await app(scope, receive, send_with_headers)

    return asgi_app
