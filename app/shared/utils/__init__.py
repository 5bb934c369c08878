"""Shared utilities: datetime, generators, sanitization."""

from app.shared.utils.datetime import ensure_utc, utc_now
from app.shared.utils.generators import generate_api_key, generate_cuid
from app.shared.utils.sanitization import sanitize_project_name

__all__ = [
    "generate_api_key",
    "generate_cuid",
    "utc_now",
    "ensure_utc",
    "sanitize_project_name",
]
