"""
User accounts: registration, credentials, profiles and admin management.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from folio.auth.jwt import hash_password, verify_password
from folio.core.errors import Conflict, NotFound, Unauthorized, ValidationError
from folio.core.models import Download, Post, Project, Role, User
from folio.core.query import ListParams, ListQuery, Page
from folio.core.utils import utc_now
from folio.services.base import commit_or_conflict

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "Email already in use"

# Profile fields only an admin may change
ADMIN_ONLY_FIELDS = ("role", "is_active")


class UserService:
    """Everything that touches the users table."""

    search_fields = ("name", "email")

    def __init__(self, session: Session):
        self.session = session

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def get_by_email(self, email: str) -> User | None:
        return self.session.scalars(
            select(User).where(func.lower(User.email) == email.lower())
        ).first()

    def ensure_email_available(self, email: str, exclude_id: int | None = None) -> None:
        existing = self.get_by_email(email)
        if existing is not None and existing.id != exclude_id:
            raise Conflict(EMAIL_TAKEN)

    # -------------------------------------------------------------------------
    # Credentials
    # -------------------------------------------------------------------------

    def create(
        self,
        name: str,
        email: str,
        password: str,
        role: Role | str = Role.VIEWER,
        **profile: Any,
    ) -> User:
        email = email.lower()
        self.ensure_email_available(email)

        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=Role(role).value,
            **profile,
        )
        self.session.add(user)
        commit_or_conflict(self.session, EMAIL_TAKEN)
        logger.info(f"User {user.id} created with role {user.role}")
        return user

    def authenticate(self, email: str, password: str) -> User:
        """
        Check credentials and stamp `last_login`.

        Raises:
            Unauthorized: unknown email, wrong password or disabled account
        """
        user = self.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise Unauthorized("Invalid credentials")
        if not user.is_active:
            raise Unauthorized("Account disabled")

        user.last_login = utc_now()
        self.session.commit()
        return user

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")
        user.password_hash = hash_password(new_password)
        self.session.commit()
        logger.info(f"User {user.id} changed their password")

    # -------------------------------------------------------------------------
    # Profile / admin management
    # -------------------------------------------------------------------------

    def update(self, user: User, data: dict[str, Any], allow_admin_fields: bool = False) -> User:
        data = dict(data)
        if not allow_admin_fields:
            for key in ADMIN_ONLY_FIELDS:
                data.pop(key, None)

        if data.get("email"):
            data["email"] = data["email"].lower()
            if data["email"] != user.email:
                self.ensure_email_available(data["email"], exclude_id=user.id)

        if "role" in data and data["role"] is not None:
            data["role"] = Role(data["role"]).value

        for key, value in data.items():
            setattr(user, key, value)
        commit_or_conflict(self.session, EMAIL_TAKEN)
        return user

    def delete(self, user: User, acting_user: User) -> None:
        if user.id == acting_user.id:
            raise ValidationError("You cannot delete your own account")
        self.session.delete(user)
        self.session.commit()
        logger.info(f"User {user.id} deleted by admin {acting_user.id}")

    def list(self, params: ListParams, **filters: Any) -> Page:
        return (
            ListQuery(User, params, search_fields=self.search_fields)
            .filter_equal("role", filters.get("role"))
            .filter_flag("is_active", filters.get("active"))
            .search(filters.get("search"))
            .fetch(self.session)
        )

    def recent_content(self, user: User, limit: int = 5) -> dict[str, list]:
        """Latest published posts and projects for a public profile."""
        result = {}
        for key, model in (("posts", Post), ("projects", Project)):
            result[key] = list(
                self.session.scalars(
                    select(model)
                    .where(model.user_id == user.id, model.is_published.is_(True))
                    .order_by(model.created_at.desc(), model.id.desc())
                    .limit(limit)
                ).all()
            )
        return result

    def stats(self, user: User) -> dict[str, int]:
        def count(model) -> int:
            return self.session.scalar(
                select(func.count()).select_from(model).where(model.user_id == user.id)
            ) or 0

        total_views = self.session.scalar(
            select(func.coalesce(func.sum(Post.view_count), 0)).where(Post.user_id == user.id)
        )
        return {
            "posts_count": count(Post),
            "projects_count": count(Project),
            "downloads_count": count(Download),
            "total_views": int(total_views or 0),
        }
