"""Tests for services injected into task contexts and the messaging senders."""

import json
from datetime import UTC, datetime

import httpx
import pytest

from app.infrastructure.external.messaging import (
    PostmarkEmailSender,
    TwilioSmsSender,
    UnconfiguredService,
)
from app.infrastructure.services.task_services import DateTimeService, TaskServiceProvider


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def test_twilio_sender_posts_form() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"sid": "SM123", "status": "queued"})

    async with _client(handler) as client:
        sender = TwilioSmsSender("AC1", "token", "+15550000", http_client=client)
        assert await sender.send("+256700000000", "hello") == {"sid": "SM123", "status": "queued"}
    request = seen[0]
    assert request.url.path == "/2010-04-01/Accounts/AC1/Messages.json"
    assert b"Body=hello" in request.content
    assert request.headers["Authorization"].startswith("Basic ")


async def test_twilio_sender_requires_phone_and_message() -> None:
    sender = TwilioSmsSender("AC1", "token", "+15550000", http_client=_client(lambda r: httpx.Response(500)))
    with pytest.raises(ValueError):
        await sender.send("", "hello")


async def test_twilio_error_status_raises() -> None:
    async with _client(lambda r: httpx.Response(400, json={"message": "bad"})) as client:
        sender = TwilioSmsSender("AC1", "token", "+15550000", http_client=client)
        with pytest.raises(httpx.HTTPStatusError):
            await sender.send("+1", "hi")


async def test_postmark_sender_sends_json() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"MessageID": "m-1", "To": "a@example.com"})

    async with _client(handler) as client:
        sender = PostmarkEmailSender("server-token", "noreply@example.com", http_client=client)
        result = await sender.send("a@example.com", "Hi", "<b>x</b>", html=True)
    assert result == {"messageId": "m-1", "to": "a@example.com"}
    payload = json.loads(seen[0].content)
    assert payload["HtmlBody"] == "<b>x</b>"
    assert seen[0].headers["X-Postmark-Server-Token"] == "server-token"


async def test_unconfigured_service_fails_on_use() -> None:
    with pytest.raises(RuntimeError, match="Service 'sms' is not configured"):
        await UnconfiguredService("sms").send("+1", "hi")


async def test_provider_builds_only_requested_services() -> None:
    async with _client(lambda r: httpx.Response(200, text="ok")) as client:
        provider = TaskServiceProvider(client, UnconfiguredService("sms"), UnconfiguredService("email"))
        services = provider.build(["http", "datetime", "teleport"])
        assert set(services) == {"http", "datetime"}
        assert services["http"] is client


async def test_fetch_service_returns_text() -> None:
    async with _client(lambda r: httpx.Response(200, text="<html>hi</html>")) as client:
        provider = TaskServiceProvider(client, UnconfiguredService("sms"), UnconfiguredService("email"))
        fetch = provider.build(["fetch"])["fetch"]
        assert await fetch("https://example.com") == "<html>hi</html>"


def test_datetime_service() -> None:
    service = DateTimeService()
    assert service.parse("2024-05-01T12:00:00Z") == datetime(2024, 5, 1, 12, tzinfo=UTC)
    assert service.now().tzinfo is not None
    local = service.to_timezone(datetime(2024, 5, 1, 12, tzinfo=UTC), "Africa/Kampala")
    assert local.hour == 15
