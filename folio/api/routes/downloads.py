"""
Downloadable files.

Create and update are multipart: metadata travels as form fields next to a
`file` part. The metadata endpoint never counts; fetching the file does.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import FileResponse
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from folio.api.errors import validation_details
from folio.api.schemas import (
    DownloadCreate,
    DownloadOut,
    DownloadUpdate,
    Message,
    Paginated,
    paginated,
    to_record,
)
from folio.auth.context import AuthContext
from folio.auth.policies import ensure_can_edit, optional_auth, require_auth, require_editor
from folio.core.errors import ValidationError, field_error
from folio.core.query import ListParams, list_params
from folio.services.content import DownloadService
from folio.services.uploads import UploadHandler, get_upload_handler
from folio.storage.database import get_session

router = APIRouter(prefix="/downloads", tags=["downloads"])

# Form fields that may repeat or carry a comma-separated list
LIST_FIELDS = {"tags"}


# =============================================================================
# Multipart form
# =============================================================================


@dataclass
class UploadForm:
    """Text fields and file parts of one multipart request."""

    fields: dict[str, Any] = field(default_factory=dict)
    files: list[UploadFile] = field(default_factory=list)

    def parse(self, schema: type[BaseModel]) -> BaseModel:
        try:
            return schema.model_validate(self.fields)
        except SchemaError as e:
            raise ValidationError("Invalid data", details=validation_details(e.errors()))

    def single_file(self, uploads: UploadHandler, required: bool) -> UploadFile | None:
        """The one attached file, checked against the upload rules."""
        uploads.check_count(self.files)
        if len(self.files) > 1:
            raise ValidationError("Only one file can be attached to a download")
        if not self.files:
            if required:
                raise field_error("file", "File is required")
            return None

        upload = self.files[0]
        uploads.validate(upload)
        return upload


async def read_upload_form(request: Request) -> UploadForm:
    form = await request.form()
    result = UploadForm()

    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if value.filename:
                result.files.append(value)
            continue

        value = value.strip()
        if not value:
            continue
        if key in LIST_FIELDS:
            items = [item.strip() for item in value.split(",") if item.strip()]
            result.fields.setdefault(key, []).extend(items)
        else:
            result.fields[key] = value

    return result


# =============================================================================
# Reads
# =============================================================================


@router.get("", response_model=Paginated[DownloadOut])
def list_downloads(
    params: ListParams = Depends(list_params),
    category: str | None = None,
    file_type: str | None = Query(default=None, alias="fileType"),
    published: str | None = None,
    featured: str | None = None,
    free: str | None = None,
    search: str | None = None,
    ctx: AuthContext = Depends(optional_auth),
    session: Session = Depends(get_session),
    uploads: UploadHandler = Depends(get_upload_handler),
):
    page = DownloadService(session, uploads).list(
        params,
        ctx,
        category=category,
        file_type=file_type,
        published=published,
        featured=featured,
        free=free,
        search=search,
    )
    return paginated(page, DownloadOut)


@router.get("/categories", response_model=list[str])
def download_categories(
    session: Session = Depends(get_session),
    uploads: UploadHandler = Depends(get_upload_handler),
):
    return DownloadService(session, uploads).categories()


@router.get("/tags", response_model=list[str])
def download_tags(
    session: Session = Depends(get_session),
    uploads: UploadHandler = Depends(get_upload_handler),
):
    return DownloadService(session, uploads).tags()


@router.get("/{slug}", response_model=DownloadOut)
def get_download(
    slug: str,
    ctx: AuthContext = Depends(optional_auth),
    session: Session = Depends(get_session),
    uploads: UploadHandler = Depends(get_upload_handler),
):
    download = DownloadService(session, uploads).get_metadata(slug, ctx)
    return DownloadOut.model_validate(download)


@router.get("/{slug}/download")
def fetch_download(
    slug: str,
    ctx: AuthContext = Depends(optional_auth),
    session: Session = Depends(get_session),
    uploads: UploadHandler = Depends(get_upload_handler),
):
    """Stream the stored file under its original name."""
    download = DownloadService(session, uploads).fetch_file(slug, ctx)
    return FileResponse(
        uploads.storage.path(download.stored_filename),
        filename=download.file_name,
        media_type=download.file_type or "application/octet-stream",
    )


# =============================================================================
# Mutations
# =============================================================================


@router.post("", response_model=DownloadOut, status_code=201)
def create_download(
    ctx: AuthContext = Depends(require_editor),
    form: UploadForm = Depends(read_upload_form),
    session: Session = Depends(get_session),
    uploads: UploadHandler = Depends(get_upload_handler),
):
    upload = form.single_file(uploads, required=True)
    data = form.parse(DownloadCreate)

    stored = uploads.accept(upload)
    download = DownloadService(session, uploads).create_with_file(to_record(data), ctx.user, stored)
    return DownloadOut.model_validate(download)


@router.put("/{slug}", response_model=DownloadOut)
def update_download(
    slug: str,
    ctx: AuthContext = Depends(require_auth),
    form: UploadForm = Depends(read_upload_form),
    session: Session = Depends(get_session),
    uploads: UploadHandler = Depends(get_upload_handler),
):
    service = DownloadService(session, uploads)
    download = service.get_by_slug(slug)
    ensure_can_edit(ctx, download)

    upload = form.single_file(uploads, required=False)
    data = form.parse(DownloadUpdate)

    stored = uploads.accept(upload) if upload is not None else None
    download = service.update_with_file(download, to_record(data, partial=True), stored)
    return DownloadOut.model_validate(download)


@router.delete("/{slug}", response_model=Message)
def delete_download(
    slug: str,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
    uploads: UploadHandler = Depends(get_upload_handler),
):
    service = DownloadService(session, uploads)
    download = service.get_by_slug(slug)
    ensure_can_edit(ctx, download)
    service.delete(download)
    return Message(message="Download deleted successfully")
