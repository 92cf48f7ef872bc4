"""
Request/response models.

Wire format is camelCase (`isPublished`, `viewCount`); Python attributes stay
snake_case. Requests accept either spelling. Unknown request fields are
ignored.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Generic, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    model_validator,
)
from pydantic.alias_generators import to_camel

from folio.auth.jwt import TokenPair
from folio.core.models import (
    ContactCategory,
    ContactPriority,
    ContactStatus,
    ProjectPriority,
    ProjectStatus,
    Role,
)
from folio.core.query import Page

Url = Annotated[HttpUrl, AfterValidator(str)]
Slug = Annotated[str, Field(min_length=1, max_length=255, pattern=r"^[A-Za-z0-9_-]+$")]

T = TypeVar("T")


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# Common
# =============================================================================


class Message(ApiModel):
    message: str


class Pagination(ApiModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class Paginated(ApiModel, Generic[T]):
    items: list[T]
    pagination: Pagination


def to_record(model: BaseModel, partial: bool = False) -> dict[str, Any]:
    """
    Dump a request model as ORM column values.

    With `partial`, only fields the client actually sent (and not null) are
    kept, so an update never blanks a column by omission.
    """
    data = model.model_dump(exclude_unset=partial, exclude_none=partial)
    return {key: value.value if isinstance(value, Enum) else value for key, value in data.items()}


def paginated(page: Page, item_model: type[ApiModel]) -> dict:
    """Shape a query `Page` as `{items, pagination}`."""
    return {
        "items": [item_model.model_validate(item) for item in page.items],
        "pagination": Pagination(**page.pagination),
    }


# =============================================================================
# Users & Auth
# =============================================================================


class RegisterRequest(ApiModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=100)


class UserCreate(RegisterRequest):
    """Admin-created account; the role can be chosen."""

    role: Role = Role.VIEWER


class LoginRequest(ApiModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshRequest(ApiModel):
    refresh_token: str = Field(min_length=1)


class ProfileUpdate(ApiModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    email: EmailStr | None = None
    bio: str | None = Field(default=None, max_length=1000)
    avatar: Url | None = None


class UserUpdate(ProfileUpdate):
    """Admins may also change role and active flag."""

    role: Role | None = None
    is_active: bool | None = None


class PasswordChange(ApiModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=100)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password != self.new_password:
            raise ValueError("confirmPassword must match newPassword")
        return self


class OwnerOut(ApiModel):
    id: int
    name: str
    email: str
    avatar: str | None = None


class UserOut(ApiModel):
    id: int
    name: str
    email: str
    role: Role
    is_active: bool
    bio: str | None = None
    avatar: str | None = None
    email_verified: bool
    last_login: datetime | None = None
    created_at: datetime
    updated_at: datetime


class AuthResponse(ApiModel):
    message: str
    user: UserOut
    tokens: TokenPair


class AccessTokenResponse(ApiModel):
    access_token: str


class UserStats(ApiModel):
    posts_count: int
    projects_count: int
    downloads_count: int
    total_views: int


# =============================================================================
# Posts
# =============================================================================


class PostCreate(ApiModel):
    title: str = Field(min_length=1, max_length=255)
    slug: Slug
    excerpt: str | None = Field(default=None, max_length=500)
    full_content: str = Field(min_length=1)
    author: str = Field(min_length=1)
    publish_date: date
    category: str | None = Field(default=None, max_length=100)
    tags: list[str] = Field(default_factory=list)
    image_url: Url | None = None
    is_published: bool = False


class PostUpdate(ApiModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    slug: Slug | None = None
    excerpt: str | None = Field(default=None, max_length=500)
    full_content: str | None = Field(default=None, min_length=1)
    author: str | None = Field(default=None, min_length=1)
    publish_date: date | None = None
    category: str | None = Field(default=None, max_length=100)
    tags: list[str] | None = None
    image_url: Url | None = None
    is_published: bool | None = None


class PostOut(ApiModel):
    id: int
    title: str
    slug: str
    excerpt: str | None = None
    full_content: str
    author: str
    publish_date: date
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    image_url: str | None = None
    is_published: bool
    view_count: int
    user_id: int | None = None
    user: OwnerOut | None = None
    created_at: datetime
    updated_at: datetime


class PostSummary(ApiModel):
    id: int
    title: str
    slug: str
    excerpt: str | None = None
    publish_date: date
    created_at: datetime


# =============================================================================
# Projects
# =============================================================================


class _ProjectDates(ApiModel):
    @model_validator(mode="after")
    def end_after_start(self):
        start = getattr(self, "start_date", None)
        end = getattr(self, "end_date", None)
        if start and end and end < start:
            raise ValueError("endDate must not be before startDate")
        return self


class ProjectCreate(_ProjectDates):
    title: str = Field(min_length=1, max_length=255)
    slug: Slug
    description: str = Field(min_length=1)
    full_description: str | None = None
    image_url: Url | None = None
    gallery: list[Url] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)
    category: str | None = Field(default=None, max_length=100)
    status: ProjectStatus = ProjectStatus.PLANNING
    priority: ProjectPriority = ProjectPriority.MEDIUM
    start_date: date | None = None
    end_date: date | None = None
    project_url: Url | None = None
    github_url: Url | None = None
    demo_url: Url | None = None
    client: str | None = Field(default=None, max_length=255)
    budget: float | None = Field(default=None, gt=0)
    is_published: bool = False
    is_featured: bool = False
    sort_order: int = 0


class ProjectUpdate(_ProjectDates):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    slug: Slug | None = None
    description: str | None = Field(default=None, min_length=1)
    full_description: str | None = None
    image_url: Url | None = None
    gallery: list[Url] | None = None
    technologies: list[str] | None = None
    category: str | None = Field(default=None, max_length=100)
    status: ProjectStatus | None = None
    priority: ProjectPriority | None = None
    start_date: date | None = None
    end_date: date | None = None
    project_url: Url | None = None
    github_url: Url | None = None
    demo_url: Url | None = None
    client: str | None = Field(default=None, max_length=255)
    budget: float | None = Field(default=None, gt=0)
    is_published: bool | None = None
    is_featured: bool | None = None
    sort_order: int | None = None


class ProjectOut(ApiModel):
    id: int
    title: str
    slug: str
    description: str
    full_description: str | None = None
    image_url: str | None = None
    gallery: list[str] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)
    category: str | None = None
    status: ProjectStatus
    priority: ProjectPriority
    start_date: date | None = None
    end_date: date | None = None
    project_url: str | None = None
    github_url: str | None = None
    demo_url: str | None = None
    client: str | None = None
    budget: float | None = None
    is_published: bool
    is_featured: bool
    view_count: int
    sort_order: int
    user_id: int | None = None
    user: OwnerOut | None = None
    created_at: datetime
    updated_at: datetime


class ProjectSummary(ApiModel):
    id: int
    title: str
    slug: str
    description: str
    image_url: str | None = None
    created_at: datetime


# =============================================================================
# Downloads (multipart form fields)
# =============================================================================


class DownloadCreate(ApiModel):
    title: str = Field(min_length=1, max_length=255)
    slug: Slug
    description: str = Field(min_length=1)
    category: str | None = Field(default=None, max_length=100)
    tags: list[str] = Field(default_factory=list)
    thumbnail_url: Url | None = None
    version: str | None = Field(default=None, max_length=50)
    author: str = Field(min_length=1)
    license: str | None = Field(default=None, max_length=100)
    requirements: str | None = None
    instructions: str | None = None
    is_published: bool = False
    is_featured: bool = False
    requires_auth: bool = False
    price: float = Field(default=0, ge=0)
    sort_order: int = 0
    publish_date: date | None = None
    expiry_date: date | None = None


class DownloadUpdate(ApiModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    slug: Slug | None = None
    description: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, max_length=100)
    tags: list[str] | None = None
    thumbnail_url: Url | None = None
    version: str | None = Field(default=None, max_length=50)
    author: str | None = Field(default=None, min_length=1)
    license: str | None = Field(default=None, max_length=100)
    requirements: str | None = None
    instructions: str | None = None
    is_published: bool | None = None
    is_featured: bool | None = None
    requires_auth: bool | None = None
    price: float | None = Field(default=None, ge=0)
    sort_order: int | None = None
    publish_date: date | None = None
    expiry_date: date | None = None


class DownloadOut(ApiModel):
    id: int
    title: str
    slug: str
    description: str
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    file_url: str
    file_name: str
    file_size: int | None = None
    file_type: str | None = None
    thumbnail_url: str | None = None
    version: str | None = None
    author: str
    license: str | None = None
    requirements: str | None = None
    instructions: str | None = None
    download_count: int
    is_published: bool
    is_featured: bool
    requires_auth: bool
    price: float
    sort_order: int
    publish_date: date | None = None
    expiry_date: date | None = None
    user_id: int | None = None
    user: OwnerOut | None = None
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Contacts
# =============================================================================


class ContactCreate(ApiModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=20)
    company: str | None = Field(default=None, max_length=100)
    subject: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=10, max_length=2000)
    category: ContactCategory = ContactCategory.GENERAL


class ContactStatusUpdate(ApiModel):
    status: ContactStatus | None = None
    priority: ContactPriority | None = None
    notes: str | None = None


class ContactReceipt(ApiModel):
    """What the public submitter gets back."""

    id: int
    name: str
    email: str
    subject: str
    category: ContactCategory
    status: ContactStatus
    priority: ContactPriority
    created_at: datetime


class ContactOut(ApiModel):
    id: int
    name: str
    email: str
    phone: str | None = None
    company: str | None = None
    subject: str
    message: str
    category: ContactCategory
    status: ContactStatus
    priority: ContactPriority
    ip_address: str | None = None
    user_agent: str | None = None
    referrer: str | None = None
    is_spam: bool
    read_at: datetime | None = None
    replied_at: datetime | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class ContactStats(ApiModel):
    total: int
    new: int
    read: int
    replied: int
    closed: int
    spam: int
