"""
Local filesystem storage for uploads.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import BinaryIO

from folio.storage.base import FileStorage


class LocalFileStorage(FileStorage):
    """Store uploads in a single local directory, served under `url_prefix`."""

    def __init__(self, base_path: str = "./uploads", url_prefix: str = "/uploads"):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.url_prefix = url_prefix.rstrip("/")

    def _key_to_path(self, key: str) -> Path:
        # Keys are flat filenames; never let one escape the upload directory
        return self.base_path / Path(key).name

    def put(self, key: str, stream: BinaryIO) -> int:
        path = self._key_to_path(key)
        with open(path, "wb") as f:
            shutil.copyfileobj(stream, f)
        return path.stat().st_size

    def exists(self, key: str) -> bool:
        return self._key_to_path(key).is_file()

    def path(self, key: str) -> Path:
        return self._key_to_path(key)

    def delete(self, key: str) -> bool:
        path = self._key_to_path(key)
        if path.exists():
            path.unlink()
            return True
        return False

    def get_url(self, key: str) -> str:
        return f"{self.url_prefix}/{Path(key).name}"
