"""Domain exceptions for the docbase application.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class DocbaseException(Exception):
    """Base exception for all docbase application errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, suggestion and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
        suggestion: Optional actionable hint for the caller.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
            suggestion: Optional hint on how to fix the request.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.suggestion = suggestion
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the response body: error, plus suggestion/details when present."""
        body: dict[str, Any] = {"error": self.message}
        if self.suggestion:
            body["suggestion"] = self.suggestion
        if self.details:
            body["details"] = self.details
        return body


# ---- InvalidArgument (400) ----


class ValidationException(DocbaseException):
    """Raised when input validation fails (e.g. invalid format or missing field)."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
            suggestion: Optional hint for the caller.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details, suggestion)


class InvalidCollectionNameException(DocbaseException):
    """Raised when a collection name is not lowercase snake/kebab case."""

    def __init__(self, collection: str) -> None:
        super().__init__(
            "Invalid collection name",
            "INVALID_COLLECTION_NAME",
            {"collection": collection},
            "Collection names must be lowercase with underscores/hyphens only "
            "(e.g., 'user_profiles', 'order-items'). No uppercase letters or "
            "camelCase allowed.",
        )


class InvalidDocumentIdException(DocbaseException):
    """Raised when a document identifier is neither generated nor a valid custom id."""

    def __init__(self, document_id: str) -> None:
        super().__init__(
            "Invalid document ID",
            "INVALID_DOCUMENT_ID",
            {"documentId": document_id},
            "Document ID must be URL-safe, up to 255 characters, and contain only "
            "letters, numbers, hyphens, and underscores.",
        )


class InvalidTaskIdException(DocbaseException):
    """Raised when a task id contains anything but letters, digits and underscores."""

    def __init__(self, task_id: str) -> None:
        super().__init__(
            "Invalid task ID",
            "INVALID_TASK_ID",
            {"taskId": task_id},
            "Task IDs may contain only letters, numbers, and underscores.",
        )


class MissingRequiredFieldsException(DocbaseException):
    """Raised when a request body lacks required fields."""

    def __init__(self, fields: list[str]) -> None:
        super().__init__(
            "Missing required fields",
            "MISSING_REQUIRED_FIELDS",
            {"required": fields},
            f"Provide all of: {', '.join(fields)}.",
        )


class InvalidQueryException(DocbaseException):
    """Raised when a structured query is malformed (missing envelope, from, or bad where)."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        super().__init__(message, "INVALID_QUERY", None, suggestion)


class InvalidTriggerException(DocbaseException):
    """Raised when a trigger definition or its config fails validation."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "INVALID_TRIGGER")


# ---- NotFound (404) ----


class ResourceNotFoundException(DocbaseException):
    """Raised when a requested resource does not exist (document, task, trigger)."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        message: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Initialize with resource type and identifier.

        Args:
            resource_type: Kind of resource (e.g. 'document', 'task').
            resource_id: Identifier that was not found.
            message: Optional override; defaults to '<Type> not found'.
            suggestion: Optional hint for the caller.
        """
        super().__init__(
            message or f"{resource_type.capitalize()} not found",
            "RESOURCE_NOT_FOUND",
            {"resourceType": resource_type, "resourceId": resource_id},
            suggestion,
        )


class ProjectNotFoundException(DocbaseException):
    """Raised when a requested project (tenant namespace) does not exist."""

    def __init__(self, project_name: str) -> None:
        super().__init__(
            f"Project '{project_name}' not found",
            "PROJECT_NOT_FOUND",
            None,
            f"Make sure the project '{project_name}' exists and you have access to it.",
        )


# ---- PermissionDenied (403) ----


class PermissionDeniedException(DocbaseException):
    """Raised on cross-tenant creation attempts or access outside the caller's project."""

    def __init__(
        self,
        message: str = "Access denied",
        details: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message, "PERMISSION_DENIED", details, suggestion)


class OwnershipViolationException(PermissionDeniedException):
    """Raised when a caller modifies or deletes a document owned by someone else."""

    def __init__(
        self,
        operation: str,
        document_id: str,
        required_owner: str,
        current_user: str,
    ) -> None:
        super().__init__(
            "Access denied",
            {
                "operation": operation,
                "documentId": document_id,
                "requiredOwner": required_owner,
                "currentUser": current_user,
            },
            "You can only modify or delete documents that you own.",
        )


# ---- Conflict (409) ----


class TaskAlreadyExistsException(DocbaseException):
    """Raised when registering a task whose id already exists in the same scope."""

    def __init__(self, task_id: str) -> None:
        super().__init__(
            "Task already exists",
            "TASK_ALREADY_EXISTS",
            {"taskId": task_id},
            "Choose a different task ID or update the existing task with PUT.",
        )


class ProjectAlreadyExistsException(DocbaseException):
    """Raised when no unique sanitized project name can be derived."""

    def __init__(self, name: str) -> None:
        super().__init__(
            "Could not generate unique project name",
            "PROJECT_ALREADY_EXISTS",
            {"name": name},
        )


# ---- Internal (500) ----


class IdGenerationFailedException(DocbaseException):
    """Raised when no unused document id was found within the attempt budget."""

    def __init__(self, attempts: int) -> None:
        super().__init__(
            "Failed to generate unique document ID",
            "ID_GENERATION_FAILED",
            {"attempts": attempts},
        )


class TaskExecutionException(DocbaseException):
    """Raised when a task invocation fails (compilation, runtime error, or timeout).

    All three kinds share the same public message; ``kind`` and ``details``
    carry what went wrong.
    """

    def __init__(self, task_name: str, kind: str, details: str) -> None:
        self.task_name = task_name
        self.kind = kind
        super().__init__(
            "Task execution failed",
            "TASK_EXECUTION_FAILED",
            {"kind": kind, "message": details},
            "Check the task implementation and its logs for errors.",
        )
