"""Outbound messaging services (SMS, email) available to tasks."""

from app.infrastructure.external.messaging.protocols import IEmailSender, ISmsSender
from app.infrastructure.external.messaging.providers import (
    PostmarkEmailSender,
    TwilioSmsSender,
    UnconfiguredService,
)

__all__ = [
    "IEmailSender",
    "ISmsSender",
    "PostmarkEmailSender",
    "TwilioSmsSender",
    "UnconfiguredService",
]
