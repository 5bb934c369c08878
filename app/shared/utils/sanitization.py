"""Project name sanitization.

Turns a free-form display name into a storage namespace identifier matching
``^[a-z0-9_]+$``.
"""

import re

PROJECT_NAME_MAX_LENGTH = 60
RESERVED_PREFIX = "system"

_INVALID_CHARS = re.compile(r"[^a-z0-9_]")
_REPEATED_UNDERSCORES = re.compile(r"_+")


def sanitize_project_name(name: str) -> str:
    """Return the namespace-safe form of a project display name.

    Lowercases, replaces anything outside ``[a-z0-9_]`` with underscores,
    collapses runs of underscores and trims them from both ends. Names that
    would start with the reserved ``system`` prefix get ``proj_`` prepended.

    Args:
        name: Display name as entered by the user.

    Returns:
        Sanitized name, at most 60 characters.

    Raises:
        ValueError: If nothing valid remains after sanitization.
    """
    sanitized = _INVALID_CHARS.sub("_", name.strip().lower())
    sanitized = _REPEATED_UNDERSCORES.sub("_", sanitized).strip("_")
    if not sanitized:
        raise ValueError("Project name contains only invalid characters")
    sanitized = sanitized[:PROJECT_NAME_MAX_LENGTH].rstrip("_")
    if sanitized.startswith(RESERVED_PREFIX):
        sanitized = f"proj_{sanitized}"[:PROJECT_NAME_MAX_LENGTH].rstrip("_")
    return sanitized
