"""
Custom exceptions and error handlers for consistent error responses.

Every error leaves the API in the same envelope as successful responses:
``{"success": false, "message": ..., "error_code": ..., "errors": {...}}``.
"""

import logging
from contextlib import contextmanager
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, List, Optional

from backend.app.core.config import settings

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        errors: Optional[Dict[str, List[str]]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.errors = errors
        super().__init__(message)


class ValidationError(AppException):
    """Raised for malformed or out-of-range input (field-keyed messages)."""

    def __init__(self, errors: Dict[str, List[str]], message: str = "Validation failed"):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION",
            status_code=422,
            errors=errors,
        )

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})


class ForbiddenError(AppException):
    """Raised when the caller's role does not allow the action."""

    def __init__(self, message: str = "You do not have permission to perform this action."):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
        )


class NotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        super().__init__(
            message=f"{resource} not found",
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.resource = resource
        self.resource_id = resource_id


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Unauthenticated."):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class RateLimitError(AppException):
    """Raised once the fixed window's request quota is exhausted."""

    def __init__(self, retry_after: int):
        super().__init__(
            message="Too Many Attempts.",
            error_code="ERR_RATE_LIMIT",
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        )
        self.retry_after = retry_after


class InternalError(AppException):
    """Unexpected failure reported with an endpoint-specific message."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="ERR_INTERNAL_SERVER",
            status_code=500,
        )
        self.detail = detail


@contextmanager
def unexpected_errors(message: str):
    """
    Convert unexpected exceptions inside the block into ``InternalError``.

    Usage:
        with unexpected_errors("An error occurred while fetching blogs"):
            ...
    """
    try:
        yield
    except AppException:
        raise
    except Exception as e:
        logger.error(f"{message}: {e}", exc_info=True)
        raise InternalError(message, str(e)) from e


def error_body(message: str, error_code: str, errors: Optional[Dict[str, List[str]]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "success": False,
        "message": message,
        "error_code": error_code,
    }
    if errors:
        body["errors"] = errors
    return body


def unexpected_error_body(exc: Exception, message: str = "An internal server error occurred") -> Dict[str, Any]:
    """Generic 500 payload; the exception detail is only exposed in debug mode."""
    body = error_body(message, "ERR_INTERNAL_SERVER")
    body["error"] = str(exc) if settings.debug else None
    return body


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after)}
    content = error_body(exc.message, exc.error_code, exc.errors)
    if isinstance(exc, InternalError):
        content["error"] = exc.detail if settings.debug else None
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        405: "ERR_METHOD_NOT_ALLOWED",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), error_code),
        headers=getattr(exc, "headers", None),
    )


def _field_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    """Collapse pydantic error locations into ``{field: [messages]}``."""
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("query", "body", "path", "form")]
        field = ".".join(loc) if loc else "request"
        message = error.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, []).append(message)
    return errors


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=422,
        content=error_body("Validation failed", "ERR_VALIDATION", _field_errors(exc)),
    )
