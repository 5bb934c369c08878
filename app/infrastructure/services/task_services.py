"""External service handles injected into task contexts on request.

A task only receives the services named in its ``requiredServices``.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from app.infrastructure.external.messaging import IEmailSender, ISmsSender
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import from_timestamp_utc, to_timezone, utc_now

logger = get_logger(__name__)

AVAILABLE_SERVICES = ("http", "fetch", "datetime", "sms", "email")


class DateTimeService:
    """UTC-first date helpers with IANA timezone support."""

    def now(self, tz: str | None = None) -> datetime:
        return to_timezone(utc_now(), tz)

    def parse(self, value: str) -> datetime:
        """Parse an ISO-8601 string; a trailing ``Z`` means UTC."""
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    def fromtimestamp(self, timestamp: float) -> datetime:
        return from_timestamp_utc(timestamp)

    def to_timezone(self, dt: datetime, tz: str) -> datetime:
        return to_timezone(dt, tz)

    def timezone(self, name: str) -> ZoneInfo:
        return ZoneInfo(name)

    def isoformat(self, dt: datetime) -> str:
        return dt.isoformat()


class TaskServiceProvider:
    """Builds the read-only ``context.services`` mapping for one invocation."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        sms_sender: ISmsSender,
        email_sender: IEmailSender,
    ) -> None:
        self._http = http_client
        self._sms = sms_sender
        self._email = email_sender
        self._datetime = DateTimeService()

    async def fetch(self, url: str) -> str:
        """GET a URL (following redirects) and return the body text.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response.
        """
        response = await self._http.get(url, follow_redirects=True)
        response.raise_for_status()
        return response.text

    def build(self, required: Iterable[str]) -> dict[str, Any]:
        services: dict[str, Any] = {}
        for name in required:
            if name == "http":
                services["http"] = self._http
            elif name == "fetch":
                services["fetch"] = self.fetch
            elif name == "datetime":
                services["datetime"] = self._datetime
            elif name == "sms":
                services["sms"] = self._sms
            elif name == "email":
                services["email"] = self._email
            else:
                logger.warning(
                    "Unknown service requested: %s (available: %s)",
                    name,
                    ", ".join(AVAILABLE_SERVICES),
                )
        return services
