"""
Relational storage.

One `Database` per application: it owns the SQLAlchemy engine and hands
out short-lived sessions, one per request.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class Database:
    """Engine + session factory."""

    def __init__(self, url: str, echo: bool = False):
        kwargs: dict = {}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            # In-memory SQLite lives inside a single connection
            if url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool

        self.url = url
        self.engine = create_engine(url, echo=echo, **kwargs)
        self.session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

    def create_all(self) -> None:
        """Create all tables that don't exist yet."""
        # Models must be imported so they register with Base.metadata
        from folio.core import models  # noqa: F401

        Base.metadata.create_all(self.engine)
        logger.info(f"Database schema ready ({self.engine.url.get_backend_name()})")

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()


def get_session(request: Request) -> Iterator[Session]:
    """FastAPI dependency: a session bound to the app's database."""
    database: Database = request.app.state.database
    with database.session() as session:
        yield session
