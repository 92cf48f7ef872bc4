"""
Tests for the authentication and authorization gates.
"""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from folio.auth.capabilities import can_edit, can_view_drafts, has_role, is_owner, owner_or_admin
from folio.auth.context import AuthContext
from folio.auth.policies import (
    Policy,
    ensure_can_edit,
    ensure_owner_or_admin,
    ensure_self_or_admin,
    extract_bearer_token,
    optional_auth,
    require_auth,
    resolve_user,
)
from folio.core.errors import Forbidden, Unauthorized
from folio.core.models import Role


def identity(id, role):
    return SimpleNamespace(id=id, role=role)


ADMIN = identity(1, "admin")
EDITOR = identity(2, "editor")
VIEWER = identity(3, "viewer")


# =============================================================================
# Capability predicates
# =============================================================================


class TestCapabilities:
    def test_has_role(self):
        assert has_role(ADMIN, Role.ADMIN)
        assert has_role(EDITOR, Role.ADMIN, Role.EDITOR)
        assert not has_role(VIEWER, Role.ADMIN, Role.EDITOR)
        assert not has_role(None, Role.VIEWER)

    def test_unknown_role_has_nothing(self):
        assert not has_role(identity(9, "superuser"), Role.ADMIN)

    def test_is_owner(self):
        resource = SimpleNamespace(user_id=3)

        assert is_owner(VIEWER, resource)
        assert not is_owner(EDITOR, resource)
        assert not is_owner(None, resource)
        assert not is_owner(VIEWER, SimpleNamespace(user_id=None))

    def test_custom_owner_field(self):
        assert is_owner(VIEWER, SimpleNamespace(author_id=3), field="author_id")

    def test_drafts_are_for_elevated_roles(self):
        assert can_view_drafts(ADMIN)
        assert can_view_drafts(EDITOR)
        assert not can_view_drafts(VIEWER)
        assert not can_view_drafts(None)

    def test_can_edit(self):
        theirs = SimpleNamespace(user_id=99)
        mine = SimpleNamespace(user_id=3)

        assert can_edit(ADMIN, theirs)
        assert can_edit(EDITOR, theirs)
        assert not can_edit(VIEWER, theirs)
        assert can_edit(VIEWER, mine)

    def test_owner_or_admin_excludes_editors(self):
        theirs = SimpleNamespace(user_id=99)

        assert owner_or_admin(ADMIN, theirs)
        assert not owner_or_admin(EDITOR, theirs)


# =============================================================================
# Bearer extraction
# =============================================================================


class TestBearerExtraction:
    def test_bearer_token(self):
        assert extract_bearer_token("Bearer abc.def") == "abc.def"

    @pytest.mark.parametrize("header", [None, "", "abc.def", "Basic abc", "bearer abc", "Bearer "])
    def test_anything_else_is_no_token(self, header):
        assert extract_bearer_token(header) is None


# =============================================================================
# Policy
# =============================================================================


class TestPolicy:
    def test_anonymous_is_unauthorized(self):
        with pytest.raises(Unauthorized):
            Policy([Role.ADMIN]).check(AuthContext.anonymous())

    def test_wrong_role_is_forbidden(self):
        with pytest.raises(Forbidden):
            Policy([Role.ADMIN, Role.EDITOR]).check(AuthContext(user=VIEWER))

    def test_matching_role_passes(self):
        Policy([Role.ADMIN, Role.EDITOR]).check(AuthContext(user=EDITOR))

    def test_no_roles_means_any_user(self):
        Policy().check(AuthContext(user=VIEWER))

    def test_custom_check(self):
        policy = Policy(custom_check=lambda ctx: ctx.user_id == 1)

        policy.check(AuthContext(user=ADMIN))
        with pytest.raises(Forbidden):
            policy.check(AuthContext(user=VIEWER))


class TestOwnershipChecks:
    def test_ensure_can_edit(self):
        post = SimpleNamespace(user_id=3)

        ensure_can_edit(AuthContext(user=VIEWER), post)
        ensure_can_edit(AuthContext(user=EDITOR), post)
        with pytest.raises(Forbidden):
            ensure_can_edit(AuthContext(user=identity(4, "viewer")), post)
        with pytest.raises(Unauthorized):
            ensure_can_edit(AuthContext.anonymous(), post)

    def test_ensure_owner_or_admin(self):
        post = SimpleNamespace(user_id=3)

        ensure_owner_or_admin(AuthContext(user=ADMIN), post)
        with pytest.raises(Forbidden):
            ensure_owner_or_admin(AuthContext(user=EDITOR), post)

    def test_ensure_self_or_admin(self):
        ensure_self_or_admin(AuthContext(user=VIEWER), 3)
        ensure_self_or_admin(AuthContext(user=ADMIN), 3)
        with pytest.raises(Forbidden):
            ensure_self_or_admin(AuthContext(user=EDITOR), 3)


# =============================================================================
# Authentication gate
# =============================================================================


class TestAuthenticationGate:
    def test_valid_token(self, app, session, viewer):
        token = app.state.tokens.create_access_token(viewer)

        ctx = require_auth(f"Bearer {token}", app.state.tokens, session)

        assert ctx.is_authenticated
        assert ctx.user_id == viewer.id
        assert ctx.role == Role.VIEWER

    def test_missing_token(self, app, session):
        with pytest.raises(Unauthorized) as exc:
            require_auth(None, app.state.tokens, session)
        assert exc.value.message == "Access token required"

    def test_expired_token(self, app, session, viewer):
        token = app.state.tokens.issue({"id": viewer.id}, timedelta(seconds=-1))

        with pytest.raises(Unauthorized) as exc:
            resolve_user(token, app.state.tokens, session)
        assert exc.value.message == "Token expired"

    def test_unknown_user(self, app, session):
        token = app.state.tokens.issue({"id": 4242}, timedelta(minutes=5))

        with pytest.raises(Unauthorized) as exc:
            resolve_user(token, app.state.tokens, session)
        assert exc.value.message == "User not found"

    def test_disabled_user(self, app, session, make_user):
        user = make_user(is_active=False)
        token = app.state.tokens.create_access_token(user)

        with pytest.raises(Unauthorized) as exc:
            resolve_user(token, app.state.tokens, session)
        assert exc.value.message == "Account disabled"

    def test_refresh_token_is_rejected(self, app, session, viewer):
        token = app.state.tokens.create_refresh_token(viewer)

        with pytest.raises(Unauthorized):
            require_auth(f"Bearer {token}", app.state.tokens, session)

    def test_optional_auth_degrades_to_anonymous(self, app, session):
        assert optional_auth(None, app.state.tokens, session).is_anonymous
        assert optional_auth("Bearer garbage", app.state.tokens, session).is_anonymous

    def test_optional_auth_with_valid_token(self, app, session, editor):
        token = app.state.tokens.create_access_token(editor)

        ctx = optional_auth(f"Bearer {token}", app.state.tokens, session)

        assert ctx.can_view_drafts
