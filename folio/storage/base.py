"""
File storage abstraction.

Uploaded binaries go through this interface so the local filesystem
implementation can be swapped (S3, GCS, ...) without touching services.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO


class FileStorage(ABC):
    """
    Storage for uploaded files, addressed by a flat key (the stored filename).

    Local Implementation: Filesystem
    """

    @abstractmethod
    def put(self, key: str, stream: BinaryIO) -> int:
        """Store content read from `stream`, return bytes written."""
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def path(self, key: str) -> Path:
        """Filesystem path for streaming the file back."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete content. Returns False if it was already gone."""
        pass

    @abstractmethod
    def get_url(self, key: str) -> str:
        """Public URL the file is served from."""
        pass
