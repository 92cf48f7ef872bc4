"""
Shared utility functions for the folio backend.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def to_snake(name: str) -> str:
    """
    Convert a camelCase name to snake_case.

    Already snake_cased names pass through unchanged:
        "createdAt" -> "created_at", "view_count" -> "view_count"
    """
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def unique_in_order(values) -> list:
    """De-duplicate an iterable, keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result
