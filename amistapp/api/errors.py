# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API error responses.

Every error leaves the API as JSON of the form ``{"error": ..., "details": ...}``
where ``details`` is optional. Validation failures are answered with 400,
unexpected store failures and any other unhandled error with a generic 500.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from amistapp.infrastructure.database.connection import DatabaseError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error with a structured response body.

    Attributes:
        status_code: HTTP status code.
        error: Short error message.
        details: Optional human-readable detail.
    """

    def __init__(self, status_code: int, error: str, details: Any = None) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details


def error_body(error: str, details: Any = None) -> dict[str, Any]:
    """Build the JSON error body."""
    body: dict[str, Any] = {"error": error}
    if details is not None:
        body["details"] = details
    return body


def format_validation_errors(exc: RequestValidationError) -> str:
    """Render pydantic errors as one readable line per field."""
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        message = err.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.error, exc.details))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = format_validation_errors(exc)
    logger.debug("Request validation failed on %s: %s", request.url.path, details)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("validation failed", details),
    )


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    settings = getattr(request.app.state, "settings", None)
    details = None
    if settings is not None and not settings.is_production:
        details = str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("internal server error", details),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on an application."""
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
