"""
Policies - the clean interface for route authorization.

Route handlers just declare what they need:

    ctx: AuthContext = Depends(optional_auth)       # anonymous allowed
    ctx: AuthContext = Depends(require_auth)        # any active user
    ctx: AuthContext = Depends(require_editor)      # admin or editor

Ownership can only be decided once the resource is loaded, so those checks
are plain functions (`ensure_can_edit`, `ensure_owner_or_admin`) called from
the handler.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from folio.auth.capabilities import can_edit, owner_or_admin
from folio.auth.context import AuthContext
from folio.auth.jwt import ACCESS, TokenExpiredError, TokenInvalidError, TokenService
from folio.core.errors import Forbidden, Unauthorized
from folio.core.models import Role, User
from folio.integrations.sentry import set_user
from folio.storage.database import get_session

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


# =============================================================================
# Token Handling
# =============================================================================


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def extract_bearer_token(header: str | None) -> str | None:
    """
    Pull the token out of an Authorization header.

    Only "Bearer <token>" counts; anything else is treated as no token.
    """
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def resolve_user(token: str, tokens: TokenService, session: Session) -> User:
    """
    Turn an access token into an active user.

    Raises:
        Unauthorized: invalid/expired token, unknown or disabled user
    """
    try:
        claims = tokens.verify(token, expected_type=ACCESS)
    except TokenExpiredError:
        raise Unauthorized("Token expired")
    except TokenInvalidError as e:
        logger.debug(f"Rejected token: {e}")
        raise Unauthorized("Invalid token")

    user = session.get(User, claims["id"])
    if user is None:
        raise Unauthorized("User not found")
    if not user.is_active:
        raise Unauthorized("Account disabled")
    return user


# =============================================================================
# Authentication Gate
# =============================================================================


def require_auth(
    authorization: str | None = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
    session: Session = Depends(get_session),
) -> AuthContext:
    """Mandatory authentication: any failure is a 401."""
    token = extract_bearer_token(authorization)
    if token is None:
        raise Unauthorized("Access token required")

    user = resolve_user(token, tokens, session)
    set_user(str(user.id), role=user.role)
    return AuthContext(user=user)


def optional_auth(
    authorization: str | None = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
    session: Session = Depends(get_session),
) -> AuthContext:
    """Optional authentication: any failure degrades to anonymous."""
    token = extract_bearer_token(authorization)
    if token is None:
        return AuthContext.anonymous()

    try:
        user = resolve_user(token, tokens, session)
    except Unauthorized as e:
        logger.debug(f"Optional auth fell back to anonymous: {e.message}")
        return AuthContext.anonymous()

    return AuthContext(user=user)


# =============================================================================
# Policy - role-based authorization
# =============================================================================


class Policy:
    """
    A role policy that can be checked against a context.

        Policy([Role.ADMIN]).check(ctx)              # admins only
        Policy([Role.ADMIN, Role.EDITOR]).check(ctx) # elevated roles
        Policy().check(ctx)                          # any authenticated user
    """

    def __init__(
        self,
        roles: list[Role | str] | None = None,
        custom_check: Callable[[AuthContext], bool] | None = None,
    ):
        self.roles = [Role(r) for r in roles or []]
        self.custom_check = custom_check

    def check(self, ctx: AuthContext) -> None:
        """
        Raise if the context does not satisfy the policy.

        Raises:
            Unauthorized: no identity
            Forbidden: identity lacks the role or fails the custom check
        """
        if ctx.is_anonymous:
            raise Unauthorized("Authentication required")

        if self.roles and not ctx.has_role(*self.roles):
            raise Forbidden("Insufficient permissions")

        if self.custom_check and not self.custom_check(ctx):
            raise Forbidden("Insufficient permissions")


def authorize(*roles: Role | str) -> Callable:
    """
    Require one of `roles` to access a route.

    Usage:
        @router.delete("/{id}")
        def delete_thing(ctx: AuthContext = Depends(authorize(Role.ADMIN))):
            ...
    """
    policy = Policy(list(roles))

    def dependency(ctx: AuthContext = Depends(require_auth)) -> AuthContext:
        policy.check(ctx)
        return ctx

    return dependency


require_admin = authorize(Role.ADMIN)
require_editor = authorize(Role.ADMIN, Role.EDITOR)


# =============================================================================
# Ownership checks (resource already loaded)
# =============================================================================


def ensure_owner_or_admin(ctx: AuthContext, resource: Any, field: str = "user_id") -> None:
    """Admins always pass; otherwise only the owner."""
    if ctx.is_anonymous:
        raise Unauthorized("Authentication required")
    if not owner_or_admin(ctx.user, resource, field):
        raise Forbidden("Access denied. Only the owner or an admin can access this resource.")


def ensure_can_edit(ctx: AuthContext, resource: Any, field: str = "user_id") -> None:
    """Admins and editors always pass; otherwise only the owner."""
    if ctx.is_anonymous:
        raise Unauthorized("Authentication required")
    if not can_edit(ctx.user, resource, field):
        raise Forbidden("Insufficient permissions to edit this resource.")


def ensure_self_or_admin(ctx: AuthContext, user_id: int) -> None:
    """For user records the record itself is the owner."""
    if ctx.is_anonymous:
        raise Unauthorized("Authentication required")
    if not ctx.is_admin and ctx.user_id != user_id:
        raise Forbidden("Insufficient permissions")
