"""
Storage layer.

- Database → SQLAlchemy engine + per-request sessions (SQLite, MySQL, PostgreSQL)
- FileStorage → uploaded files (local filesystem)
"""

from folio.storage.base import FileStorage
from folio.storage.database import Base, Database, get_session
from folio.storage.local import LocalFileStorage

__all__ = [
    "Base",
    "Database",
    "FileStorage",
    "LocalFileStorage",
    "get_session",
]
