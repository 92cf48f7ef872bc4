"""
Filtered list queries.

One builder shared by every list endpoint (posts, projects, downloads,
contacts, users). It turns query-string parameters into a bounded,
ordered, paginated SELECT:

    query = (
        ListQuery(Post, params, search_fields=("title", "excerpt"))
        .filter_equal("category", category)
        .filter_flag("is_published", published)
        .search(search)
        .visible_to(ctx)
    )
    page = query.fetch(session)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

from fastapi import Query
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from folio.core.errors import field_error
from folio.core.utils import to_snake

MAX_LIMIT = 100

# Columns that can never be used for sorting
_UNSORTABLE = frozenset({"password_hash"})

# Escape character for user-supplied LIKE terms
_LIKE_ESCAPE = "\\"


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


# =============================================================================
# Parameters
# =============================================================================


@dataclass
class ListParams:
    """Pagination and sort parameters common to every list endpoint."""

    page: int = 1
    limit: int = 10
    sort: str = "createdAt"
    order: SortOrder = SortOrder.DESC

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def list_params(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    sort: str = Query("createdAt", min_length=1),
    order: SortOrder = Query(SortOrder.DESC),
) -> ListParams:
    """FastAPI dependency that parses and range-checks list parameters."""
    return ListParams(page=page, limit=limit, sort=sort, order=order)


def like_pattern(term: str) -> str:
    """Substring pattern for `ilike` with `%`, `_` and the escape char taken literally."""
    escaped = (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def parse_flag(raw: str | None) -> bool | None:
    """
    Boolean query flags arrive as strings.

    Absent means "no filter"; present means an exact match against
    raw == "true".
    """
    if raw is None:
        return None
    return raw.strip().lower() == "true"


# =============================================================================
# Result
# =============================================================================


@dataclass
class Page:
    """One page of rows plus the numbers needed for pagination metadata."""

    items: list[Any]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def pagination(self) -> dict[str, int]:
        return {
            "current_page": self.page,
            "total_pages": self.total_pages,
            "total_items": self.total,
            "items_per_page": self.limit,
        }


# =============================================================================
# Builder
# =============================================================================


@dataclass
class ListQuery:
    """
    Accumulates filters for one model and runs the count + page queries.

    Column filters are keyed by column name so a later filter on the same
    column replaces an earlier one. `visible_to` relies on that to override
    whatever `published` filter the caller asked for.
    """

    model: type
    params: ListParams
    search_fields: Sequence[str] = ()
    leading_order: Sequence[Any] = ()
    _filters: dict[str, Any] = field(default_factory=dict, repr=False)
    _extra: list[Any] = field(default_factory=list, repr=False)

    def _column(self, name: str):
        return getattr(self.model, name)

    # -------------------------------------------------------------------------
    # Filters
    # -------------------------------------------------------------------------

    def filter_equal(self, column: str, value: Any) -> ListQuery:
        """Exact match; None or "" means no filter."""
        if value is None or value == "":
            return self
        if isinstance(value, Enum):
            value = value.value
        self._filters[column] = self._column(column) == value
        return self

    def filter_flag(self, column: str, raw: str | None) -> ListQuery:
        """Boolean filter from a "true"/"false" query string."""
        flag = parse_flag(raw)
        if flag is not None:
            self._filters[column] = self._column(column).is_(flag)
        return self

    def filter_contains(self, column: str, value: str | None) -> ListQuery:
        """Case-insensitive substring match."""
        if value:
            self._filters[column] = self._column(column).ilike(
                like_pattern(value), escape=_LIKE_ESCAPE
            )
        return self

    def where(self, key: str, clause: Any) -> ListQuery:
        """Arbitrary SQL condition under a filter key."""
        self._filters[key] = clause
        return self

    def search(self, term: str | None) -> ListQuery:
        """Free text: case-insensitive match on any of the search fields."""
        if term and self.search_fields:
            pattern = like_pattern(term)
            self._extra.append(
                or_(
                    *(
                        self._column(name).ilike(pattern, escape=_LIKE_ESCAPE)
                        for name in self.search_fields
                    )
                )
            )
        return self

    def visible_to(self, ctx, column: str = "is_published") -> ListQuery:
        """Force published-only for callers who can't see drafts."""
        if not ctx.can_view_drafts:
            self._filters[column] = self._column(column).is_(True)
        return self

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    @property
    def conditions(self) -> list[Any]:
        return [*self._filters.values(), *self._extra]

    def _sort_column(self):
        name = to_snake(self.params.sort)
        columns = self.model.__table__.columns
        if name not in columns or name in _UNSORTABLE:
            raise field_error("sort", f"Cannot sort by '{self.params.sort}'")
        return columns[name]

    def order_by(self) -> list[Any]:
        sort_column = self._sort_column()
        descending = self.params.order == SortOrder.DESC
        tiebreak = self.model.__table__.columns["id"]
        return [
            *self.leading_order,
            sort_column.desc() if descending else sort_column.asc(),
            tiebreak.desc() if descending else tiebreak.asc(),
        ]

    def fetch(self, session: Session) -> Page:
        """Run the count and page queries."""
        order = self.order_by()
        conditions = self.conditions

        total = session.scalar(
            select(func.count()).select_from(self.model).where(*conditions)
        ) or 0

        rows = session.scalars(
            select(self.model)
            .where(*conditions)
            .order_by(*order)
            .limit(self.params.limit)
            .offset(self.params.offset)
        ).all()

        return Page(items=list(rows), total=total, page=self.params.page, limit=self.params.limit)
