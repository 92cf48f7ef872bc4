"""
Base class for slugged content services.

Posts, Projects and Downloads share one lifecycle: they are owned by a
user, addressed publicly by a unique slug, hidden from the public while
unpublished, and counted when viewed. Subclasses only describe their
model and list filters.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from sqlalchemy import distinct, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from folio.auth.context import AuthContext
from folio.core.errors import Conflict, NotFound
from folio.core.models import User
from folio.core.query import ListParams, ListQuery, Page
from folio.core.utils import unique_in_order

logger = logging.getLogger(__name__)

SLUG_TAKEN = "Slug already exists. Choose a unique slug."


def commit_or_conflict(session: Session, message: str) -> None:
    """
    Commit, mapping a unique-constraint violation to Conflict.

    The pre-checks done by services are only a courtesy; two concurrent
    requests can both pass them. The storage constraint decides.
    """
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Integrity violation on commit: {e.orig}")
        raise Conflict(message)


class SluggedResourceService(ABC):
    """
    Lifecycle of an owned, slug-addressed, publishable resource.

    Example:
        class PostService(SluggedResourceService):
            model = Post
            label = "Post"
            search_fields = ("title", "excerpt")

            def apply_filters(self, query, filters):
                return query.filter_equal("category", filters.get("category"))
    """

    model: type
    label: str = "Resource"
    search_fields: tuple[str, ...] = ()
    featured_first: bool = False
    counter_field: str | None = "view_count"

    def __init__(self, session: Session):
        self.session = session

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def not_found(self) -> NotFound:
        return NotFound(f"{self.label} not found")

    def find_by_slug(self, slug: str) -> Any | None:
        return self.session.scalars(
            select(self.model).where(self.model.slug == slug)
        ).first()

    def get_by_slug(self, slug: str) -> Any:
        obj = self.find_by_slug(slug)
        if obj is None:
            raise self.not_found()
        return obj

    def get_visible(self, slug: str, ctx: AuthContext) -> Any:
        """
        Fetch by slug, hiding drafts from non-elevated callers.

        Hidden items are reported as missing so their existence doesn't leak.
        """
        obj = self.get_by_slug(slug)
        if not obj.is_published and not ctx.can_view_drafts:
            raise self.not_found()
        return obj

    def view(self, slug: str, ctx: AuthContext) -> Any:
        """Read-by-slug that bumps the view counter."""
        obj = self.get_visible(slug, ctx)
        if self.counter_field:
            self.increment(obj, self.counter_field)
        return obj

    def increment(self, obj: Any, field: str) -> None:
        column = getattr(self.model, field)
        self.session.execute(
            update(self.model).where(self.model.id == obj.id).values({column: column + 1})
        )
        self.session.commit()
        self.session.refresh(obj)

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    @abstractmethod
    def apply_filters(self, query: ListQuery, filters: dict[str, Any]) -> ListQuery:
        """Translate resource-specific query parameters into filters."""
        pass

    def list(self, params: ListParams, ctx: AuthContext, **filters: Any) -> Page:
        leading = ()
        if self.featured_first:
            leading = (self.model.is_featured.desc(), self.model.sort_order.asc())

        query = ListQuery(
            self.model,
            params,
            search_fields=self.search_fields,
            leading_order=leading,
        )
        query = self.apply_filters(query, filters)
        query.search(filters.get("search"))
        query.visible_to(ctx)
        return query.fetch(self.session)

    def categories(self) -> list[str]:
        """Distinct categories of published items."""
        rows = self.session.scalars(
            select(distinct(self.model.category))
            .where(self.model.category.isnot(None), self.model.is_published.is_(True))
            .order_by(self.model.category)
        ).all()
        return [c for c in rows if c]

    def collect(self, field: str) -> list[str]:
        """Union of a JSON list column across published items, first-seen order."""
        rows = self.session.scalars(
            select(getattr(self.model, field))
            .where(self.model.is_published.is_(True))
            .order_by(self.model.id)
        ).all()
        values = []
        for row in rows:
            if isinstance(row, list):
                values.extend(v for v in row if v)
        return unique_in_order(values)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def ensure_slug_available(self, slug: str) -> None:
        if self.find_by_slug(slug) is not None:
            raise Conflict(SLUG_TAKEN)

    def create(self, data: dict[str, Any], owner: User) -> Any:
        self.ensure_slug_available(data["slug"])

        obj = self.model(**data, user_id=owner.id)
        self.session.add(obj)
        commit_or_conflict(self.session, SLUG_TAKEN)

        logger.info(f"{self.label} '{obj.slug}' created by user {owner.id}")
        return obj

    def update(self, obj: Any, data: dict[str, Any]) -> Any:
        new_slug = data.get("slug")
        if new_slug and new_slug != obj.slug:
            self.ensure_slug_available(new_slug)

        for key, value in data.items():
            setattr(obj, key, value)
        commit_or_conflict(self.session, SLUG_TAKEN)

        logger.info(f"{self.label} '{obj.slug}' updated")
        return obj

    def delete(self, obj: Any) -> None:
        slug = obj.slug
        self.session.delete(obj)
        self.session.commit()
        logger.info(f"{self.label} '{slug}' deleted")
