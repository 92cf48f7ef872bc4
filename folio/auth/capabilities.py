"""
Roles and capability predicates.

This defines WHAT a caller may do, not HOW we check it.
The actual gating happens in policies.py.

Every predicate is a pure function over (identity, resource) so routes can
compose them freely. An identity is anything with `id` and `role`
attributes (normally the ORM `User`); `None` means anonymous.
"""

from __future__ import annotations

from typing import Any

from folio.core.models import Role

# Roles that can see drafts and edit anybody's content
ELEVATED_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.EDITOR})


def _role_of(identity: Any) -> Role | None:
    if identity is None:
        return None
    try:
        return Role(identity.role)
    except ValueError:
        return None


def has_role(identity: Any, *roles: Role | str) -> bool:
    """Is the identity one of the given roles?"""
    role = _role_of(identity)
    if role is None:
        return False
    return role in {Role(r) for r in roles}


def is_admin(identity: Any) -> bool:
    return has_role(identity, Role.ADMIN)


def is_owner(identity: Any, resource: Any, field: str = "user_id") -> bool:
    """Does the resource's owner field point at this identity?"""
    if identity is None or resource is None:
        return False
    owner_id = getattr(resource, field, None)
    return owner_id is not None and owner_id == identity.id


def can_view_drafts(identity: Any) -> bool:
    """Unpublished content is visible to admins and editors only."""
    return has_role(identity, *ELEVATED_ROLES)


def can_edit(identity: Any, resource: Any, field: str = "user_id") -> bool:
    """Admins and editors edit anything; everybody else only what they own."""
    return has_role(identity, *ELEVATED_ROLES) or is_owner(identity, resource, field)


def owner_or_admin(identity: Any, resource: Any, field: str = "user_id") -> bool:
    """Admins always; otherwise the owner only."""
    return is_admin(identity) or is_owner(identity, resource, field)
