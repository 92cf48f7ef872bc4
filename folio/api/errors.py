"""
Exception -> JSON response mapping.

Every error leaves the API as `{"error": message}` plus an optional
`details` list of `{field, message}` entries.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from folio.core.errors import AppError
from folio.integrations.sentry import capture_exception

logger = logging.getLogger(__name__)

# Location prefixes FastAPI puts in front of the offending field
_LOCATIONS = {"body", "query", "path", "header", "form"}


def validation_details(errors: Iterable[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic errors into `{field, message}` pairs."""
    details = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in _LOCATIONS]
        message = error.get("msg", "Invalid value")
        # "Value error, confirmPassword must match" -> "confirmPassword must match"
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": ".".join(loc), "message": message})
    return details


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid data", "details": validation_details(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = "Route not found"
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        capture_exception(exc, path=request.url.path, method=request.method)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
