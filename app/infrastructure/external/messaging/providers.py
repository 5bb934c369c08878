"""Twilio SMS and Postmark email senders over their REST APIs (httpx)."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
POSTMARK_API_URL = "https://api.postmarkapp.com/email"


class _HttpProvider:
    """Shares an injected AsyncClient or opens a short-lived one per call."""

    def __init__(self, *, http_client: httpx.AsyncClient | None = None) -> None:
        self._http_client = http_client

    @asynccontextmanager
    async def _http_cm(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=30.0) as client:
            yield client


class TwilioSmsSender(_HttpProvider):
    """Send SMS through Twilio's Messages resource."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(http_client=http_client)
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number

    async def send(self, phone: str, message: str) -> dict[str, Any]:
        if not phone or not message:
            raise ValueError("phone and message are required")
        url = f"{TWILIO_API_BASE}/Accounts/{self._account_sid}/Messages.json"
        async with self._http_cm() as client:
            response = await client.post(
                url,
                data={"To": phone, "From": self._from_number, "Body": message},
                auth=(self._account_sid, self._auth_token),
            )
            response.raise_for_status()
            result = response.json()
        logger.info("SMS sent via Twilio: sid=%s", result.get("sid"))
        return {"sid": result.get("sid"), "status": result.get("status")}


class PostmarkEmailSender(_HttpProvider):
    """Send email through Postmark's single-message endpoint."""

    def __init__(
        self,
        server_token: str,
        from_email: str,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(http_client=http_client)
        self._server_token = server_token
        self._from_email = from_email

    async def send(self, to: str, subject: str, body: str, *, html: bool = False) -> dict[str, Any]:
        if not to:
            raise ValueError("recipient is required")
        payload = {
            "From": self._from_email,
            "To": to,
            "Subject": subject,
            ("HtmlBody" if html else "TextBody"): body,
        }
        async with self._http_cm() as client:
            response = await client.post(
                POSTMARK_API_URL,
                json=payload,
                headers={
                    "Accept": "application/json",
                    "X-Postmark-Server-Token": self._server_token,
                },
            )
            response.raise_for_status()
            result = response.json()
        logger.info("Email sent via Postmark: id=%s", result.get("MessageID"))
        return {"messageId": result.get("MessageID"), "to": result.get("To")}


class UnconfiguredService:
    """Placeholder injected when a requested service has no credentials; fails on use."""

    def __init__(self, name: str) -> None:
        self._name = name

    async def send(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        raise RuntimeError(f"Service '{self._name}' is not configured")
