"""
Posts, Projects and Downloads.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from folio.auth.context import AuthContext
from folio.core.errors import NotFound, Unauthorized
from folio.core.models import Download, Post, Project, User
from folio.core.query import ListQuery, parse_flag
from folio.core.utils import utc_now
from folio.services.base import SluggedResourceService
from folio.services.uploads import StoredFile, UploadHandler

logger = logging.getLogger(__name__)


class PostService(SluggedResourceService):
    model = Post
    label = "Post"
    search_fields = ("title", "excerpt", "full_content")

    def apply_filters(self, query: ListQuery, filters: dict[str, Any]) -> ListQuery:
        return (
            query.filter_equal("category", filters.get("category"))
            .filter_contains("author", filters.get("author"))
            .filter_flag("is_published", filters.get("published"))
        )

    def tags(self) -> list[str]:
        return self.collect("tags")


class ProjectService(SluggedResourceService):
    model = Project
    label = "Project"
    search_fields = ("title", "description", "full_description")
    featured_first = True

    def apply_filters(self, query: ListQuery, filters: dict[str, Any]) -> ListQuery:
        return (
            query.filter_equal("category", filters.get("category"))
            .filter_equal("status", filters.get("status"))
            .filter_flag("is_published", filters.get("published"))
            .filter_flag("is_featured", filters.get("featured"))
        )

    def technologies(self) -> list[str]:
        return self.collect("technologies")


class DownloadService(SluggedResourceService):
    """
    Downloads also own a stored file.

    The metadata endpoint does not count; only fetching the file bumps
    `download_count`.
    """

    model = Download
    label = "Download"
    search_fields = ("title", "description", "file_name")
    featured_first = True
    counter_field = None

    def __init__(self, session: Session, uploads: UploadHandler):
        super().__init__(session)
        self.uploads = uploads

    def apply_filters(self, query: ListQuery, filters: dict[str, Any]) -> ListQuery:
        query = (
            query.filter_equal("category", filters.get("category"))
            .filter_contains("file_type", filters.get("file_type"))
            .filter_flag("is_published", filters.get("published"))
            .filter_flag("is_featured", filters.get("featured"))
        )
        free = parse_flag(filters.get("free"))
        if free is True:
            query.where("price", Download.price == 0)
        elif free is False:
            query.where("price", Download.price > 0)
        return query

    def tags(self) -> list[str]:
        return self.collect("tags")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_metadata(self, slug: str, ctx: AuthContext) -> Download:
        download = self.get_visible(slug, ctx)
        if download.requires_auth and ctx.is_anonymous:
            raise Unauthorized("Authentication required to access this download")
        return download

    def fetch_file(self, slug: str, ctx: AuthContext) -> Download:
        """
        Resolve a download for streaming and count it.

        Expired items are gone for the public; staff can still fetch them.
        """
        download = self.get_visible(slug, ctx)
        if download.requires_auth and ctx.is_anonymous:
            raise Unauthorized("Authentication required to download this file")

        if (
            download.expiry_date is not None
            and download.expiry_date < utc_now().date()
            and not ctx.can_view_drafts
        ):
            raise self.not_found()

        if not self.uploads.storage.exists(download.stored_filename):
            logger.error(f"Stored file missing for download '{slug}': {download.stored_filename}")
            raise NotFound("File not found on server")

        self.increment(download, "download_count")
        return download

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @staticmethod
    def _file_fields(stored: StoredFile) -> dict[str, Any]:
        return {
            "file_url": stored.url,
            "file_name": stored.original_name,
            "file_size": stored.size,
            "file_type": stored.mime_type,
        }

    def create_with_file(self, data: dict[str, Any], owner: User, stored: StoredFile) -> Download:
        """Create the record; the stored file is removed if that fails."""
        try:
            return self.create({**data, **self._file_fields(stored)}, owner)
        except Exception:
            self.uploads.delete(stored.filename)
            raise

    def update_with_file(
        self,
        download: Download,
        data: dict[str, Any],
        stored: StoredFile | None = None,
    ) -> Download:
        """
        Update metadata and optionally swap the file.

        The old file is deleted only once the new record is committed;
        the new file is deleted if the update fails.
        """
        if stored is None:
            return self.update(download, data)

        old_filename = download.stored_filename
        try:
            self.update(download, {**data, **self._file_fields(stored)})
        except Exception:
            self.uploads.delete(stored.filename)
            raise

        self.uploads.delete(old_filename)
        return download

    def delete(self, download: Download) -> None:
        filename = download.stored_filename
        super().delete(download)
        self.uploads.delete(filename)
