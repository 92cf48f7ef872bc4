"""
User management.

Profiles are public; listing, creating and deleting accounts is for admins;
a user may update (and see stats for) their own record.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.orm import Session

from folio.api.schemas import (
    Message,
    Paginated,
    PostSummary,
    ProjectSummary,
    UserCreate,
    UserOut,
    UserStats,
    UserUpdate,
    paginated,
    to_record,
)
from folio.auth.context import AuthContext
from folio.auth.policies import ensure_self_or_admin, require_admin, require_auth
from folio.core.models import Role
from folio.core.query import ListParams, list_params
from folio.services.users import UserService
from folio.storage.database import get_session

router = APIRouter(prefix="/users", tags=["users"])


class UserProfile(UserOut):
    """Public profile with the latest published work."""

    posts: list[PostSummary] = Field(default_factory=list)
    projects: list[ProjectSummary] = Field(default_factory=list)


@router.get("", response_model=Paginated[UserOut])
def list_users(
    params: ListParams = Depends(list_params),
    role: Role | None = None,
    active: str | None = None,
    search: str | None = None,
    ctx: AuthContext = Depends(require_admin),
    session: Session = Depends(get_session),
):
    page = UserService(session).list(params, role=role, active=active, search=search)
    return paginated(page, UserOut)


@router.post("", response_model=UserOut, status_code=201)
def create_user(
    data: UserCreate,
    ctx: AuthContext = Depends(require_admin),
    session: Session = Depends(get_session),
):
    user = UserService(session).create(
        name=data.name,
        email=data.email,
        password=data.password,
        role=data.role,
    )
    return UserOut.model_validate(user)


@router.get("/{user_id}", response_model=UserProfile)
def get_user(user_id: int, session: Session = Depends(get_session)):
    service = UserService(session)
    user = service.get(user_id)
    recent = service.recent_content(user)
    return UserProfile(
        **UserOut.model_validate(user).model_dump(),
        posts=[PostSummary.model_validate(p) for p in recent["posts"]],
        projects=[ProjectSummary.model_validate(p) for p in recent["projects"]],
    )


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    data: UserUpdate,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    ensure_self_or_admin(ctx, user_id)
    service = UserService(session)
    user = service.update(
        service.get(user_id),
        to_record(data, partial=True),
        allow_admin_fields=ctx.is_admin,
    )
    return UserOut.model_validate(user)


@router.delete("/{user_id}", response_model=Message)
def delete_user(
    user_id: int,
    ctx: AuthContext = Depends(require_admin),
    session: Session = Depends(get_session),
):
    service = UserService(session)
    service.delete(service.get(user_id), acting_user=ctx.user)
    return Message(message="User deleted successfully")


@router.get("/{user_id}/stats", response_model=UserStats)
def user_stats(
    user_id: int,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    ensure_self_or_admin(ctx, user_id)
    service = UserService(session)
    return UserStats(**service.stats(service.get(user_id)))
