"""
Upload handling.

Validates incoming files (MIME allow-list, size ceiling, count ceiling),
stores them under collision-resistant names and reports back what was
stored. Deletion is idempotent and best-effort.
"""

from __future__ import annotations

import logging
import os
import re
import secrets
import time
from dataclasses import dataclass
from typing import Sequence

from fastapi import Request, UploadFile

from folio.config import Settings
from folio.core.errors import ValidationError
from folio.storage.base import FileStorage

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES: frozenset[str] = frozenset({
    # Documents
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
    "text/csv",
    # Archives
    "application/zip",
    "application/x-rar-compressed",
    "application/x-7z-compressed",
    # Images
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    # Video
    "video/mp4",
    "video/avi",
    "video/quicktime",
    # Audio
    "audio/mpeg",
    "audio/wav",
    "audio/ogg",
})

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")


@dataclass
class StoredFile:
    """What was written to storage."""

    filename: str       # generated storage key
    original_name: str
    mime_type: str
    size: int
    url: str


def generate_filename(original_name: str) -> str:
    """
    Collision-resistant storage name.

    "My Report (v2).pdf" -> "My_Report__v2__1712345678901-483920174.pdf"
    """
    base, extension = os.path.splitext(os.path.basename(original_name or "file"))
    sanitized = _UNSAFE_CHARS.sub("_", base) or "file"
    unique_suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return f"{sanitized}_{unique_suffix}{extension}"


def _measure(upload: UploadFile) -> int:
    stream = upload.file
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


class UploadHandler:
    """Validates and stores uploaded files."""

    def __init__(
        self,
        storage: FileStorage,
        max_file_size: int = 5 * 1024 * 1024,
        max_files: int = 5,
        allowed_types: frozenset[str] = ALLOWED_MIME_TYPES,
    ):
        self.storage = storage
        self.max_file_size = max_file_size
        self.max_files = max_files
        self.allowed_types = allowed_types

    @classmethod
    def from_settings(cls, storage: FileStorage, settings: Settings) -> UploadHandler:
        return cls(
            storage=storage,
            max_file_size=settings.max_file_size,
            max_files=settings.max_files_per_request,
        )

    @property
    def max_file_size_mb(self) -> float:
        return round(self.max_file_size / (1024 * 1024), 2)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self, upload: UploadFile) -> int:
        """
        Check type and size without storing anything.

        Returns the size in bytes.
        """
        mime_type = upload.content_type or ""
        if mime_type not in self.allowed_types:
            raise ValidationError(f"File type not allowed: {mime_type or 'unknown'}")

        size = _measure(upload)
        if size > self.max_file_size:
            raise ValidationError(
                f"File too large. Maximum allowed size: {self.max_file_size_mb:g}MB"
            )
        return size

    def check_count(self, uploads: Sequence[UploadFile]) -> None:
        if len(uploads) > self.max_files:
            raise ValidationError(f"Too many files. Maximum allowed: {self.max_files} files")

    # -------------------------------------------------------------------------
    # Storing
    # -------------------------------------------------------------------------

    def accept(self, upload: UploadFile) -> StoredFile:
        """Validate and store one file."""
        size = self.validate(upload)
        filename = generate_filename(upload.filename or "")
        self.storage.put(filename, upload.file)
        logger.info(f"Stored upload {filename} ({size} bytes)")

        return StoredFile(
            filename=filename,
            original_name=upload.filename or filename,
            mime_type=upload.content_type or "application/octet-stream",
            size=size,
            url=self.storage.get_url(filename),
        )

    def accept_many(self, uploads: Sequence[UploadFile]) -> list[StoredFile]:
        """Validate and store several files; all or nothing."""
        self.check_count(uploads)
        for upload in uploads:
            self.validate(upload)

        stored: list[StoredFile] = []
        try:
            for upload in uploads:
                stored.append(self.accept(upload))
        except Exception:
            for item in stored:
                self.delete(item.filename)
            raise
        return stored

    def delete(self, filename: str | None) -> bool:
        """Remove a stored file. Missing files and storage errors are not raised."""
        if not filename:
            return False
        try:
            removed = self.storage.delete(filename)
        except OSError as e:
            logger.warning(f"Could not delete upload {filename}: {e}")
            return False
        if removed:
            logger.info(f"Deleted upload {filename}")
        return removed


def get_upload_handler(request: Request) -> UploadHandler:
    return request.app.state.uploads
