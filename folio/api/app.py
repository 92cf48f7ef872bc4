"""
FastAPI application for the Folio portfolio backend.

`create_app()` builds a fully wired app; tests pass their own settings.
Run it with `folio-api` or `uvicorn --factory folio.api.app:create_app`.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from folio import __version__
from folio.api.errors import register_exception_handlers
from folio.api.ratelimit import FixedWindowRateLimiter, RateLimitMiddleware
from folio.api.routes import (
    contacts_router,
    downloads_router,
    posts_router,
    projects_router,
    users_router,
)
from folio.auth.jwt import TokenService
from folio.auth.routes import router as auth_router
from folio.config import Settings, get_settings
from folio.core.utils import utc_now
from folio.integrations.sentry import init_sentry
from folio.services.uploads import UploadHandler
from folio.storage import Database, LocalFileStorage

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# =============================================================================
# App Setup
# =============================================================================


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    if init_sentry(settings):
        logger.info("Sentry error tracking enabled")

    database = Database(settings.database_url, echo=settings.database_echo)
    database.create_all()

    storage = LocalFileStorage(settings.upload_path, url_prefix=settings.upload_url_prefix)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Folio API starting in {settings.environment} mode")
        yield
        database.dispose()
        logger.info("Folio API shutting down")

    app = FastAPI(
        title="Folio API",
        description="REST backend for a personal portfolio site",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.tokens = TokenService.from_settings(settings)
    app.state.uploads = UploadHandler.from_settings(storage, settings)

    # Middleware (last added runs first, so CORS wraps the limiter)
    if settings.rate_limit_enabled:
        limiter = FixedWindowRateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
        app.state.rate_limiter = limiter
        app.add_middleware(RateLimitMiddleware, limiter=limiter, prefix=API_PREFIX)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Routers
    for router in (
        auth_router,
        users_router,
        posts_router,
        projects_router,
        downloads_router,
        contacts_router,
    ):
        app.include_router(router, prefix=API_PREFIX)

    app.mount(
        settings.upload_url_prefix,
        StaticFiles(directory=str(storage.base_path)),
        name="uploads",
    )

    # =========================================================================
    # Service endpoints
    # =========================================================================

    @app.get("/", tags=["service"])
    async def root():
        return {
            "message": "Folio API",
            "version": __version__,
            "endpoints": {
                "auth": f"{API_PREFIX}/auth",
                "users": f"{API_PREFIX}/users",
                "posts": f"{API_PREFIX}/posts",
                "projects": f"{API_PREFIX}/projects",
                "downloads": f"{API_PREFIX}/downloads",
                "contacts": f"{API_PREFIX}/contacts",
            },
        }

    @app.get("/health", tags=["service"])
    async def health_check():
        return {
            "status": "healthy",
            "service": "folio-api",
            "environment": settings.environment,
            "timestamp": utc_now().isoformat(),
        }

    return app


def run() -> None:
    """Console entry point."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "folio.api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug and not settings.is_production,
    )
