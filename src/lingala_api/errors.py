"""
lingala_api.errors

API error hierarchy and the uniform JSON error envelope.

Responsibilities:
- Define one exception class per error tier (validation, authentication,
  authorization, not-found, conflict, upstream).
- Render every error as `{"error": <message>, "code": <code>}`.
- Register FastAPI exception handlers so no raw exception crosses the HTTP boundary.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from lingala_api.observability.logging import get_logger

log = get_logger(__name__)


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status and error code."""

    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR
    default_code: str | None = None

    def __init__(self, message: str, *, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.default_code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.code is not None:
            body["code"] = self.code
        return body


class InvalidInput(ApiError):
    status_code = HTTP_400_BAD_REQUEST
    default_code = "VALIDATION_ERROR"


class AuthenticationRequired(ApiError):
    status_code = HTTP_401_UNAUTHORIZED
    default_code = "AUTHENTICATION_REQUIRED"


class Forbidden(ApiError):
    status_code = HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"


class NotFound(ApiError):
    status_code = HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class Conflict(ApiError):
    # Duplicates are reported as 400 with a specific code, not 409.
    status_code = HTTP_400_BAD_REQUEST
    default_code = "CONFLICT"


class UpstreamFailure(ApiError):
    status_code = HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "INTERNAL_ERROR"


def _envelope(err: ApiError) -> JSONResponse:
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


async def _handle_api_error(_: Request, exc: ApiError) -> JSONResponse:
    if isinstance(exc, UpstreamFailure):
        log.error("upstream_failure", code=exc.code, error=exc.message, cause=repr(exc.__cause__))
    return _envelope(exc)


async def _handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return _envelope(InvalidInput(message))


async def _handle_database_error(_: Request, exc: Exception) -> JSONResponse:
    # Data-store failures never leak driver details to clients.
    log.error("database_error", error=str(exc), exc_info=exc)
    return _envelope(UpstreamFailure("Internal server error"))


async def _handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
    log.error("unhandled_error", error_type=type(exc).__name__, error=str(exc), exc_info=exc)
    return _envelope(UpstreamFailure("Internal server error"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _handle_api_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(SQLAlchemyError, _handle_database_error)
    app.add_exception_handler(Exception, _handle_unexpected)


# --- Module Notes -----------------------------------------------------------
# Billing failures are converted to `UpstreamFailure` inside the billing bridge so
# this module does not depend on the payment provider client.
