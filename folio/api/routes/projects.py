"""
Portfolio projects.

Same access rules as posts. Featured projects list first, then by
`sortOrder`, then by the requested sort.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from folio.api.schemas import (
    Message,
    Paginated,
    ProjectCreate,
    ProjectOut,
    ProjectUpdate,
    paginated,
    to_record,
)
from folio.auth.context import AuthContext
from folio.auth.policies import ensure_can_edit, optional_auth, require_auth, require_editor
from folio.core.models import ProjectStatus
from folio.core.query import ListParams, list_params
from folio.services.content import ProjectService
from folio.storage.database import get_session

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=Paginated[ProjectOut])
def list_projects(
    params: ListParams = Depends(list_params),
    category: str | None = None,
    status: ProjectStatus | None = None,
    published: str | None = None,
    featured: str | None = None,
    search: str | None = None,
    ctx: AuthContext = Depends(optional_auth),
    session: Session = Depends(get_session),
):
    page = ProjectService(session).list(
        params,
        ctx,
        category=category,
        status=status,
        published=published,
        featured=featured,
        search=search,
    )
    return paginated(page, ProjectOut)


@router.get("/categories", response_model=list[str])
def project_categories(session: Session = Depends(get_session)):
    return ProjectService(session).categories()


@router.get("/technologies", response_model=list[str])
def project_technologies(session: Session = Depends(get_session)):
    return ProjectService(session).technologies()


@router.get("/{slug}", response_model=ProjectOut)
def get_project(
    slug: str,
    ctx: AuthContext = Depends(optional_auth),
    session: Session = Depends(get_session),
):
    return ProjectOut.model_validate(ProjectService(session).view(slug, ctx))


@router.post("", response_model=ProjectOut, status_code=201)
def create_project(
    data: ProjectCreate,
    ctx: AuthContext = Depends(require_editor),
    session: Session = Depends(get_session),
):
    project = ProjectService(session).create(to_record(data), ctx.user)
    return ProjectOut.model_validate(project)


@router.put("/{slug}", response_model=ProjectOut)
def update_project(
    slug: str,
    data: ProjectUpdate,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    service = ProjectService(session)
    project = service.get_by_slug(slug)
    ensure_can_edit(ctx, project)
    return ProjectOut.model_validate(service.update(project, to_record(data, partial=True)))


@router.delete("/{slug}", response_model=Message)
def delete_project(
    slug: str,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    service = ProjectService(session)
    project = service.get_by_slug(slug)
    ensure_can_edit(ctx, project)
    service.delete(project)
    return Message(message="Project deleted successfully")
