"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
Every error leaves the API as {success: false, message, error, error_code, details}.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from typing import Any, Dict

logger = logging.getLogger("fare_engine.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(AppException):
    """Raised for malformed or out-of-range input."""

    def __init__(self, message: str, field: str = None):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"field": field} if field else {}
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class InactiveResourceError(AppException):
    """Raised when a resource exists but has been deactivated."""

    def __init__(self, resource: str, resource_id: Any = None):
        super().__init__(
            message=f"{resource} is not active",
            error_code="ERR_INACTIVE_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class PersistenceError(AppException):
    """Raised when the underlying store fails a read or write."""

    def __init__(self, operation: str):
        super().__init__(
            message=f"Persistence failure during {operation}",
            error_code="ERR_PERSISTENCE_001",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"operation": operation}
        )


def _error_body(message: str, error_code: str, details: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "success": False,
        "message": message,
        "error": error_code,
        "error_code": error_code,
        "details": details,
    }


def _correlation_id(request: Request):
    # Set by ObservabilityMiddleware; absent if the middleware never ran
    return getattr(request.state, "correlation_id", None)


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    if exc.status_code >= 500:
        logger.error(
            "Request failed: %s", exc.message,
            extra={"path": request.url.path, "correlation_id": _correlation_id(request), **exc.details}
        )
        # Detail stays in the log, the caller gets a generic message
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body("An internal server error occurred", exc.error_code, {})
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.error_code, jsonable_encoder(exc.details))
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        404: "ERR_NOT_FOUND",
        405: "ERR_METHOD_NOT_ALLOWED",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), error_code, {})
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors, reported field by field."""
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Validation error", "ERR_VALIDATION", {"errors": errors})
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception(
        "Unhandled exception: %s", type(exc).__name__,
        extra={"path": request.url.path, "correlation_id": _correlation_id(request)}
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("An internal server error occurred", "ERR_INTERNAL_SERVER", {})
    )
