"""Structural validation of trigger configurations, keyed on trigger type.

Pure functions: no I/O, no exceptions. Each returns a TriggerValidationResult.
"""

import re
from dataclasses import dataclass
from typing import Any

from app.domain.enums import TriggerType

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE")
_TRIGGER_COLLECTION_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")
_DATABASE_TRIGGER_TYPES = tuple(t.value for t in TriggerType if t.is_database_trigger)


@dataclass(frozen=True)
class TriggerValidationResult:
    valid: bool
    error: str | None = None


_OK = TriggerValidationResult(True)


def _fail(message: str) -> TriggerValidationResult:
    return TriggerValidationResult(False, message)


def validate_cron_config(config: dict[str, Any]) -> TriggerValidationResult:
    schedule = config.get("schedule")
    if not schedule:
        return _fail("Cron trigger requires 'schedule' field")
    if not isinstance(schedule, str):
        return _fail("Cron schedule must be a string")
    if len(schedule.split()) not in (5, 6):
        return _fail("Cron expression must have 5 or 6 parts (minute hour day month weekday [year])")
    timezone = config.get("timezone")
    if timezone and not isinstance(timezone, str):
        return _fail("Timezone must be a string")
    return _OK


def validate_database_config(config: dict[str, Any]) -> TriggerValidationResult:
    collection = config.get("collection")
    if not collection:
        return _fail("Database trigger requires 'collection' field")
    if not isinstance(collection, str):
        return _fail("Collection name must be a string")
    if not _TRIGGER_COLLECTION_PATTERN.match(collection):
        return _fail(
            "Collection name must be lowercase and can only contain letters, numbers, and underscores"
        )
    document = config.get("document")
    if document:
        if not isinstance(document, str):
            return _fail("Document pattern must be a string")
        if "/" not in document:
            return _fail(
                "Document pattern must include collection and document path (e.g., 'users/{userId}')"
            )
    return _OK


def validate_http_config(config: dict[str, Any]) -> TriggerValidationResult:
    method = config.get("method")
    if not method:
        return _fail("HTTP trigger requires 'method' field")
    if method not in HTTP_METHODS:
        return _fail(f"HTTP method must be one of: {', '.join(HTTP_METHODS)}")
    path = config.get("path")
    if not path:
        return _fail("HTTP trigger requires 'path' field")
    if not isinstance(path, str):
        return _fail("HTTP path must be a string")
    if not path.startswith("/"):
        return _fail("HTTP path must start with '/'")
    return _OK


def validate_trigger_config(trigger_type: Any, config: Any) -> TriggerValidationResult:
    """Validate ``config`` for ``trigger_type``; unknown types are invalid."""
    if not isinstance(config, dict):
        config = {}
    if trigger_type == TriggerType.CRON.value:
        return validate_cron_config(config)
    if trigger_type in _DATABASE_TRIGGER_TYPES:
        return validate_database_config(config)
    if trigger_type == TriggerType.HTTP.value:
        return validate_http_config(config)
    return _fail(f"Unknown trigger type: {trigger_type}")
