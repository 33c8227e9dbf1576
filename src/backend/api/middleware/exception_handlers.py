"""
Global exception handlers for the FruitsAI API.

Centralizes error handling so every failure reaches the client as
``{"error": "<message>"}`` with a meaningful status code.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from openai import APIError as OpenAIAPIError
from starlette.exceptions import HTTPException

from core.constants import ERROR_UNKNOWN_SERVER
from models.error_models import ErrorCode, ErrorResponse, get_status_code
from utils.logger import logger


class AppException(Exception):
    """Base application exception with error code support.

    Example:
        raise AppException(code=ErrorCode.RESOURCE_NOT_FOUND, message="Server not found")
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        self.cause = cause
        super().__init__(message)


class ConfigurationError(AppException):
    """Settings are incomplete (e.g. no provider credentials)."""

    def __init__(self, message: str):
        super().__init__(code=ErrorCode.INTERNAL_CONFIGURATION_ERROR, message=message)


class ValidationException(AppException):
    """Request content is well-formed but unusable."""

    def __init__(self, message: str = "Validation error"):
        super().__init__(code=ErrorCode.VALIDATION_ERROR, message=message)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def _log_error(error: Exception, code: ErrorCode, status_code: int, request: Request) -> None:
    """Log error with appropriate level and context."""
    if status_code >= 500:
        logger.error(
            f"Server error: {code.value} - {error}",
            exc_info=True,
            error_code=code.value,
            status_code=status_code,
            path=request.url.path,
        )
    else:
        logger.warning(
            f"Client error: {code.value} - {error}",
            error_code=code.value,
            status_code=status_code,
            path=request.url.path,
        )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application-specific exceptions."""
    status_code = get_status_code(exc.code)
    _log_error(exc, exc.code, status_code, request)
    return _error_response(status_code, exc.message)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTPException with consistent formatting."""
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    code = ErrorCode.RESOURCE_NOT_FOUND if exc.status_code == 404 else ErrorCode.INTERNAL_ERROR
    _log_error(exc, code, exc.status_code, request)
    return _error_response(exc.status_code, message)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors from request parsing (400, not 422)."""
    problems = []
    for error in exc.errors():
        field_path = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        problems.append(f"{field_path}: {error['msg']}" if field_path else str(error["msg"]))

    message = "Request validation failed"
    if problems:
        message = f"{message}: {'; '.join(problems)}"

    _log_error(exc, ErrorCode.VALIDATION_ERROR, 400, request)
    return _error_response(400, message)


async def openai_exception_handler(request: Request, exc: OpenAIAPIError) -> JSONResponse:
    """Handle provider errors raised before a stream starts."""
    status_code = get_status_code(ErrorCode.OPENAI_ERROR)
    _log_error(exc, ErrorCode.OPENAI_ERROR, status_code, request)
    return _error_response(status_code, str(exc.message or exc) or ERROR_UNKNOWN_SERVER)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with graceful degradation."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        exc_info=True,
        path=request.url.path,
    )
    return _error_response(500, str(exc) or ERROR_UNKNOWN_SERVER)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Call this in main.py after creating the FastAPI app:
        register_exception_handlers(app)
    """
    # Note: type: ignore needed because Starlette's type signature expects Exception,
    # but covariant exception types in handlers are safe and work correctly at runtime
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(OpenAIAPIError, openai_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)


__all__ = [
    "AppException",
    "ConfigurationError",
    "ValidationException",
    "app_exception_handler",
    "generic_exception_handler",
    "http_exception_handler",
    "openai_exception_handler",
    "register_exception_handlers",
    "validation_exception_handler",
]
