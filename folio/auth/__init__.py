"""
Authentication and authorization.

Route handlers declare what they need through dependencies:

    ctx: AuthContext = Depends(optional_auth)
    ctx: AuthContext = Depends(require_editor)
"""

from folio.auth.context import AuthContext
from folio.auth.jwt import (
    TokenPair,
    TokenService,
    hash_password,
    verify_password,
)
from folio.auth.policies import (
    Policy,
    authorize,
    ensure_can_edit,
    ensure_owner_or_admin,
    ensure_self_or_admin,
    optional_auth,
    require_admin,
    require_auth,
    require_editor,
)

__all__ = [
    # Main interface
    "require_auth",
    "optional_auth",
    "require_admin",
    "require_editor",
    "authorize",
    "AuthContext",
    "Policy",
    # Ownership
    "ensure_can_edit",
    "ensure_owner_or_admin",
    "ensure_self_or_admin",
    # JWT
    "TokenPair",
    "TokenService",
    "hash_password",
    "verify_password",
]
