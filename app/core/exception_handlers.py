"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain and framework
exceptions to HTTP responses with a ``{error, suggestion?, details?}`` body.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.domain.exceptions import DocbaseException, TaskExecutionException

logger = logging.getLogger(__name__)

# Map domain error_code to HTTP status
_ERROR_CODE_STATUS: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "INVALID_COLLECTION_NAME": 400,
    "INVALID_DOCUMENT_ID": 400,
    "INVALID_TASK_ID": 400,
    "MISSING_REQUIRED_FIELDS": 400,
    "INVALID_QUERY": 400,
    "INVALID_TRIGGER": 400,
    "RESOURCE_NOT_FOUND": 404,
    "PROJECT_NOT_FOUND": 404,
    "PERMISSION_DENIED": 403,
    "TASK_ALREADY_EXISTS": 409,
    "PROJECT_ALREADY_EXISTS": 409,
    "ID_GENERATION_FAILED": 500,
    "TASK_EXECUTION_FAILED": 500,
    "STORAGE_ERROR": 500,
}


def _docbase_exception_handler(
    request: Request, exc: DocbaseException
) -> JSONResponse:
    """Return JSON from DocbaseException.to_dict() with appropriate status code."""
    status = _ERROR_CODE_STATUS.get(exc.error_code, 400)
    if status >= 500:
        logger.error(
            "%s %s failed: %s (%s) reason=%s",
            request.method,
            request.url.path,
            exc.message,
            exc.details,
            getattr(exc, "reason", None),
        )
    return JSONResponse(status_code=status, content=exc.to_dict())


def _task_execution_exception_handler(
    request: Request, exc: TaskExecutionException
) -> JSONResponse:
    """Return 500 with the execution failure shape (success flag, taskName, details text)."""
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": exc.message,
            "details": exc.details.get("message"),
            "taskName": exc.task_name,
            "suggestion": exc.suggestion,
        },
    )


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with validation error details."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "Request validation failed",
            "details": _jsonable_errors(exc),
        },
    )


def _jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Strip non-serializable context (e.g. exception instances) from pydantic errors."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail as error)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    settings = get_settings()
    detail: Any = str(exc) if settings.debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": detail},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Call once after creating the app. Handlers: TaskExecutionException,
    DocbaseException (and subclasses), RequestValidationError,
    StarletteHTTPException, generic Exception.
    """
    app.add_exception_handler(TaskExecutionException, _task_execution_exception_handler)
    app.add_exception_handler(DocbaseException, _docbase_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
