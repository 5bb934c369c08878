"""Collection name, document id and task id validation.

Runs before any storage access on every data-path operation. Raises domain
exceptions carrying a suggestion string for the caller.
"""

import re

from app.domain.exceptions import (
    InvalidCollectionNameException,
    InvalidDocumentIdException,
    InvalidTaskIdException,
)

COLLECTION_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_-]*$")
COLLECTION_NAME_MAX_LENGTH = 255

CUSTOM_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
DOCUMENT_ID_MAX_LENGTH = 255

# CUID2 ids: lowercase letter followed by lowercase alphanumerics (default length 24).
GENERATED_ID_PATTERN = re.compile(r"^[a-z][a-z0-9]{23,31}$")

TASK_ID_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


def is_valid_collection_name(name: str) -> bool:
    return (
        isinstance(name, str)
        and len(name) <= COLLECTION_NAME_MAX_LENGTH
        and COLLECTION_NAME_PATTERN.match(name) is not None
    )


def is_generated_id(value: str) -> bool:
    """Return True if value is syntactically a generated (CUID2) identifier."""
    return isinstance(value, str) and GENERATED_ID_PATTERN.match(value) is not None


def is_valid_custom_id(value: str) -> bool:
    """Non-empty, strictly under the max length, URL-safe characters only."""
    return (
        isinstance(value, str)
        and 0 < len(value) < DOCUMENT_ID_MAX_LENGTH
        and CUSTOM_ID_PATTERN.match(value) is not None
    )


def validate_collection_name(name: str) -> str:
    """Return name if valid.

    Raises:
        InvalidCollectionNameException: If name is not lowercase snake/kebab case.
    """
    if not is_valid_collection_name(name):
        raise InvalidCollectionNameException(name)
    return name


def validate_document_id(document_id: str) -> str:
    """Return document_id if it is a generated id or a valid custom id.

    Raises:
        InvalidDocumentIdException: Otherwise.
    """
    if is_generated_id(document_id) or is_valid_custom_id(document_id):
        return document_id
    raise InvalidDocumentIdException(document_id)


def validate_task_id(task_id: str) -> str:
    """Return task_id if it has only letters, digits and underscores.

    Raises:
        InvalidTaskIdException: Otherwise.
    """
    if not isinstance(task_id, str) or not TASK_ID_PATTERN.match(task_id):
        raise InvalidTaskIdException(str(task_id))
    return task_id
