"""
Resource routers, mounted under /api by the app factory.
"""

from folio.api.routes.contacts import router as contacts_router
from folio.api.routes.downloads import router as downloads_router
from folio.api.routes.posts import router as posts_router
from folio.api.routes.projects import router as projects_router
from folio.api.routes.users import router as users_router

__all__ = [
    "posts_router",
    "projects_router",
    "downloads_router",
    "contacts_router",
    "users_router",
]
