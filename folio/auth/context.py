"""
Auth context - the "who is calling" for each request.

This is the lightweight object passed to route handlers.
It contains everything needed to make authorization decisions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from folio.auth.capabilities import can_edit, can_view_drafts, has_role, is_admin, is_owner
from folio.core.models import Role, User


@dataclass
class AuthContext:
    """
    Authorization context for a request.

    Usage in routes:
        def my_route(ctx: AuthContext = Depends(optional_auth)):
            if ctx.can_view_drafts:
                ...
    """

    user: User | None = None

    # Extra context
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        """Is there a logged-in user?"""
        return self.user is not None

    @property
    def is_anonymous(self) -> bool:
        return self.user is None

    @property
    def user_id(self) -> int | None:
        return self.user.id if self.user else None

    @property
    def role(self) -> Role | None:
        return Role(self.user.role) if self.user else None

    @property
    def is_admin(self) -> bool:
        return is_admin(self.user)

    @property
    def can_view_drafts(self) -> bool:
        return can_view_drafts(self.user)

    def has_role(self, *roles: Role | str) -> bool:
        return has_role(self.user, *roles)

    def owns(self, resource: Any, field: str = "user_id") -> bool:
        return is_owner(self.user, resource, field)

    def can_edit(self, resource: Any, field: str = "user_id") -> bool:
        return can_edit(self.user, resource, field)

    @classmethod
    def anonymous(cls) -> AuthContext:
        """Create an anonymous context (no user)."""
        return cls()
