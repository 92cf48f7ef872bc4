"""
Shared fixtures.

Every test gets its own app over a private in-memory SQLite database and a
temporary upload directory.
"""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from folio.api.app import create_app
from folio.config import Settings
from folio.core.models import Download, Post, Project, Role
from folio.services.users import UserService

PASSWORD = "secret123"


# =============================================================================
# App
# =============================================================================


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        environment="test",
        debug=False,
        database_url="sqlite://",
        upload_path=str(tmp_path / "uploads"),
        jwt_secret_key="test-secret-key-with-enough-bytes-for-hs256",
        rate_limit_enabled=False,
        sentry_dsn="",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def session(app):
    with app.state.database.session() as s:
        yield s


# =============================================================================
# Users
# =============================================================================


@pytest.fixture
def make_user(app):
    """Create users straight through the service layer."""
    counter = {"n": 0}

    def _make(role=Role.VIEWER, email=None, name=None, is_active=True):
        counter["n"] += 1
        with app.state.database.session() as s:
            return UserService(s).create(
                name=name or f"User {counter['n']}",
                email=email or f"user{counter['n']}@folio.dev",
                password=PASSWORD,
                role=role,
                is_active=is_active,
            )

    return _make


@pytest.fixture
def headers_for(app):
    """Authorization headers carrying an access token for `user`."""

    def _headers(user):
        token = app.state.tokens.create_access_token(user)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, email="admin@folio.dev", name="Admin")


@pytest.fixture
def editor(make_user):
    return make_user(Role.EDITOR, email="editor@folio.dev", name="Editor")


@pytest.fixture
def viewer(make_user):
    return make_user(Role.VIEWER, email="viewer@folio.dev", name="Viewer")


@pytest.fixture
def admin_headers(admin, headers_for):
    return headers_for(admin)


@pytest.fixture
def editor_headers(editor, headers_for):
    return headers_for(editor)


@pytest.fixture
def viewer_headers(viewer, headers_for):
    return headers_for(viewer)


# =============================================================================
# Content
# =============================================================================


@pytest.fixture
def make_post(app):
    def _make(slug, owner=None, is_published=True, **fields):
        data = {
            "title": slug.replace("-", " ").title(),
            "slug": slug,
            "full_content": f"Body of {slug}",
            "author": "Jane Doe",
            "publish_date": date(2024, 1, 1),
            "tags": [],
            "is_published": is_published,
            **fields,
        }
        with app.state.database.session() as s:
            post = Post(**data, user_id=owner.id if owner else None)
            s.add(post)
            s.commit()
            return post

    return _make


@pytest.fixture
def make_project(app):
    def _make(slug, owner=None, is_published=True, **fields):
        data = {
            "title": slug.replace("-", " ").title(),
            "slug": slug,
            "description": f"About {slug}",
            "technologies": [],
            "gallery": [],
            "is_published": is_published,
            **fields,
        }
        with app.state.database.session() as s:
            project = Project(**data, user_id=owner.id if owner else None)
            s.add(project)
            s.commit()
            return project

    return _make


@pytest.fixture
def make_download(app):
    """Catalogue entry backed by a real file in upload storage."""

    def _make(slug, owner=None, is_published=True, content=b"%PDF-1.4 test", **fields):
        filename = f"{slug}_stored.pdf"
        storage = app.state.uploads.storage
        storage.path(filename).write_bytes(content)

        data = {
            "title": slug.replace("-", " ").title(),
            "slug": slug,
            "description": f"About {slug}",
            "author": "Jane Doe",
            "file_url": storage.get_url(filename),
            "file_name": f"{slug}.pdf",
            "file_size": len(content),
            "file_type": "application/pdf",
            "tags": [],
            "is_published": is_published,
            **fields,
        }
        with app.state.database.session() as s:
            download = Download(**data, user_id=owner.id if owner else None)
            s.add(download)
            s.commit()
            return download

    return _make
