"""
Services - the business rules behind each route group.

Services take a SQLAlchemy session (one per request) and raise
`folio.core.errors` exceptions; they know nothing about HTTP.
"""

from folio.services.base import SluggedResourceService
from folio.services.contacts import ContactService
from folio.services.content import DownloadService, PostService, ProjectService
from folio.services.uploads import StoredFile, UploadHandler
from folio.services.users import UserService

__all__ = [
    "SluggedResourceService",
    "PostService",
    "ProjectService",
    "DownloadService",
    "ContactService",
    "UserService",
    "UploadHandler",
    "StoredFile",
]
