"""
Application error taxonomy.

Services and policies raise these; `folio.api.errors` turns them into
`{"error": ..., "details": ...}` responses with the matching status code.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base exception for errors that are safe to show to the client."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    """Malformed or out-of-range input."""

    status_code = 400
    default_message = "Invalid data"


class Unauthorized(AppError):
    """Missing, invalid or expired credential."""

    status_code = 401
    default_message = "Authentication required"


class Forbidden(AppError):
    """Authenticated, but the role or ownership check failed."""

    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(AppError):
    """Missing resource, or one the caller is not allowed to know about."""

    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    """Uniqueness violation (slug, email)."""

    status_code = 400
    default_message = "Resource already exists"


def field_error(field: str, message: str) -> ValidationError:
    """Shortcut for a single-field validation error."""
    return ValidationError(details=[{"field": field, "message": message}])
