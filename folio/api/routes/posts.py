"""
Blog posts.

Anyone can read published posts; editors and admins write them, and
authors keep edit rights over their own.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from folio.api.schemas import (
    Message,
    Paginated,
    PostCreate,
    PostOut,
    PostUpdate,
    paginated,
    to_record,
)
from folio.auth.context import AuthContext
from folio.auth.policies import ensure_can_edit, optional_auth, require_auth, require_editor
from folio.core.query import ListParams, list_params
from folio.services.content import PostService
from folio.storage.database import get_session

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=Paginated[PostOut])
def list_posts(
    params: ListParams = Depends(list_params),
    category: str | None = None,
    author: str | None = None,
    published: str | None = None,
    search: str | None = None,
    ctx: AuthContext = Depends(optional_auth),
    session: Session = Depends(get_session),
):
    page = PostService(session).list(
        params,
        ctx,
        category=category,
        author=author,
        published=published,
        search=search,
    )
    return paginated(page, PostOut)


@router.get("/categories", response_model=list[str])
def post_categories(session: Session = Depends(get_session)):
    return PostService(session).categories()


@router.get("/tags", response_model=list[str])
def post_tags(session: Session = Depends(get_session)):
    return PostService(session).tags()


@router.get("/{slug}", response_model=PostOut)
def get_post(
    slug: str,
    ctx: AuthContext = Depends(optional_auth),
    session: Session = Depends(get_session),
):
    return PostOut.model_validate(PostService(session).view(slug, ctx))


@router.post("", response_model=PostOut, status_code=201)
def create_post(
    data: PostCreate,
    ctx: AuthContext = Depends(require_editor),
    session: Session = Depends(get_session),
):
    post = PostService(session).create(to_record(data), ctx.user)
    return PostOut.model_validate(post)


@router.put("/{slug}", response_model=PostOut)
def update_post(
    slug: str,
    data: PostUpdate,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    service = PostService(session)
    post = service.get_by_slug(slug)
    ensure_can_edit(ctx, post)
    return PostOut.model_validate(service.update(post, to_record(data, partial=True)))


@router.delete("/{slug}", response_model=Message)
def delete_post(
    slug: str,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    service = PostService(session)
    post = service.get_by_slug(slug)
    ensure_can_edit(ctx, post)
    service.delete(post)
    return Message(message="Post deleted successfully")
