"""Outbound messaging protocols exposed to tasks as services (provider-agnostic)."""

from typing import Any, Protocol


class ISmsSender(Protocol):
    """SMS capability: ``await sms.send(phone, message)``."""

    async def send(self, phone: str, message: str) -> dict[str, Any]:
        """Send a text message. Returns provider metadata (e.g. message id)."""
        ...


class IEmailSender(Protocol):
    """Email capability: ``await email.send(to, subject, body)``."""

    async def send(self, to: str, subject: str, body: str, *, html: bool = False) -> dict[str, Any]:
        """Send an email. Returns provider metadata (e.g. message id)."""
        ...
