"""
Core data models for the folio backend.

ORM models for the five stored entities: Users, Posts, Projects, Downloads
and Contact messages. Posts, Projects and Downloads are "slugged" content:
each is owned by a user and addressed publicly by a unique slug.
"""

from __future__ import annotations

from datetime import timezone
from enum import Enum

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    TypeDecorator,
)
from sqlalchemy.orm import relationship

from folio.core.utils import utc_now
from folio.storage.database import Base


# =============================================================================
# Enums
# =============================================================================


class Role(str, Enum):
    """Platform-wide user role."""

    ADMIN = "admin"    # Everything, including destructive deletes
    EDITOR = "editor"  # Create and edit any content, manage contacts
    VIEWER = "viewer"  # Read-only, plus their own content


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class ProjectPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ContactStatus(str, Enum):
    """Lifecycle of an inbound message."""

    NEW = "new"          # Just received
    READ = "read"        # Opened by staff
    REPLIED = "replied"  # Answered
    CLOSED = "closed"    # Done (or spam)


class ContactPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ContactCategory(str, Enum):
    GENERAL = "general"
    PROJECT = "project"
    COLLABORATION = "collaboration"
    SUPPORT = "support"
    OTHER = "other"


# =============================================================================
# Column types
# =============================================================================


class UTCDateTime(TypeDecorator):
    """
    Timestamp that always comes back timezone-aware in UTC.

    SQLite drops the offset on storage, so naive values read back are UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


# =============================================================================
# Mixins
# =============================================================================


class TimestampMixin:
    created_at = Column(UTCDateTime(), default=utc_now, nullable=False)
    updated_at = Column(UTCDateTime(), default=utc_now, onupdate=utc_now, nullable=False)


# =============================================================================
# User
# =============================================================================


class User(TimestampMixin, Base):
    """Account used for authentication, role checks and content ownership."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=Role.VIEWER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    bio = Column(Text, nullable=True)
    avatar = Column(String(500), nullable=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    last_login = Column(UTCDateTime(), nullable=True)

    posts = relationship("Post", back_populates="user")
    projects = relationship("Project", back_populates="user")
    downloads = relationship("Download", back_populates="user")

    def __repr__(self):
        return f"<User {self.email}>"


# =============================================================================
# Content
# =============================================================================


class Post(TimestampMixin, Base):
    """Blog post."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    excerpt = Column(Text, nullable=True)
    full_content = Column(Text, nullable=False)
    author = Column(String(255), nullable=False)
    publish_date = Column(Date, nullable=False)
    category = Column(String(100), nullable=True)
    tags = Column(JSON, nullable=True, default=list)
    image_url = Column(String(500), nullable=True)
    is_published = Column(Boolean, nullable=False, default=False)
    view_count = Column(Integer, nullable=False, default=0)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    user = relationship("User", back_populates="posts")

    def __repr__(self):
        return f"<Post {self.slug}>"


class Project(TimestampMixin, Base):
    """Portfolio project."""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False)
    full_description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    gallery = Column(JSON, nullable=True, default=list)
    technologies = Column(JSON, nullable=True, default=list)
    category = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default=ProjectStatus.PLANNING.value)
    priority = Column(String(20), nullable=False, default=ProjectPriority.MEDIUM.value)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    project_url = Column(String(500), nullable=True)
    github_url = Column(String(500), nullable=True)
    demo_url = Column(String(500), nullable=True)
    client = Column(String(255), nullable=True)
    budget = Column(Numeric(10, 2), nullable=True)
    is_published = Column(Boolean, nullable=False, default=False)
    is_featured = Column(Boolean, nullable=False, default=False)
    view_count = Column(Integer, nullable=False, default=0)
    sort_order = Column(Integer, nullable=False, default=0)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    user = relationship("User", back_populates="projects")

    def __repr__(self):
        return f"<Project {self.slug}>"


class Download(TimestampMixin, Base):
    """Downloadable file plus its catalogue metadata."""

    __tablename__ = "downloads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=True)
    tags = Column(JSON, nullable=True, default=list)

    # Stored file
    file_url = Column(String(500), nullable=False)
    file_name = Column(String(255), nullable=False)  # original name, used on fetch
    file_size = Column(BigInteger, nullable=True)
    file_type = Column(String(255), nullable=True)

    thumbnail_url = Column(String(500), nullable=True)
    version = Column(String(50), nullable=True)
    author = Column(String(255), nullable=False)
    license = Column(String(100), nullable=True)
    requirements = Column(Text, nullable=True)
    instructions = Column(Text, nullable=True)
    download_count = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, nullable=False, default=False)
    is_featured = Column(Boolean, nullable=False, default=False)
    requires_auth = Column(Boolean, nullable=False, default=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    sort_order = Column(Integer, nullable=False, default=0)
    publish_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    user = relationship("User", back_populates="downloads")

    @property
    def stored_filename(self) -> str:
        """Name of the file in upload storage (last segment of the URL)."""
        return self.file_url.rsplit("/", 1)[-1]

    def __repr__(self):
        return f"<Download {self.slug}>"


# =============================================================================
# Contact
# =============================================================================


class Contact(TimestampMixin, Base):
    """Inbound message from the public contact form."""

    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    company = Column(String(100), nullable=True)
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    category = Column(String(20), nullable=False, default=ContactCategory.GENERAL.value)
    status = Column(String(20), nullable=False, default=ContactStatus.NEW.value)
    priority = Column(String(20), nullable=False, default=ContactPriority.MEDIUM.value)

    # Provenance, captured server-side
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    referrer = Column(String(500), nullable=True)

    is_spam = Column(Boolean, nullable=False, default=False)
    read_at = Column(UTCDateTime(), nullable=True)
    replied_at = Column(UTCDateTime(), nullable=True)
    notes = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Contact {self.id} {self.status}>"
