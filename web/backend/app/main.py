"""FastAPI application for the Curator admin panel.

Provides REST API endpoints for:
- Generation browsing and aesthetic scoring for the curated ArtStation feed
- User moderation (suspensions, bans, roles, credits, warnings)
- Feature flags, IP and device blocklists
- Direct email and announcements
- The admin audit log
- Usage analytics for the dashboard
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from curator import __version__
from curator.broadcast import ResendMailer
from curator.config import Settings, configure_logging
from curator.moderation import IdentityProvider
from curator.services import build_services
from curator.store import DocumentStore
from web.backend.app.routers import (
    analytics,
    artstation,
    audit,
    auth,
    blocklist,
    broadcast,
    flags,
    generations,
    users,
)

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
    identity: Optional[IdentityProvider] = None,
    mailer: Optional[ResendMailer] = None,
) -> FastAPI:
    """Build the application. The store and its clients live as long as the app."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    services = build_services(settings, store=store, identity=identity, mailer=mailer)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Curator admin API starting (store=%s, env=%s)", settings.store_backend, settings.environment)
        yield
        await services.close()

    app = FastAPI(
        title="Curator Admin API",
        description="Moderation and curation backend for the generative-media admin panel.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    # -----------------------------------------------------------------------
    # CORS middleware (cookies are sent cross-origin, so origins are explicit)
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    # -----------------------------------------------------------------------
    # Include routers
    # -----------------------------------------------------------------------
    app.include_router(auth.router)
    app.include_router(generations.router)
    app.include_router(artstation.router)
    app.include_router(users.router)
    app.include_router(flags.router)
    app.include_router(blocklist.router)
    app.include_router(broadcast.router)
    app.include_router(audit.router)
    app.include_router(analytics.router)

    # -----------------------------------------------------------------------
    # Root and health-check endpoints
    # -----------------------------------------------------------------------

    @app.get("/", tags=["meta"])
    async def root():
        """Return basic API information."""
        return {
            "name": "Curator Admin API",
            "version": __version__,
            "docs": "/docs",
            "openapi": "/openapi.json",
        }

    @app.get("/health", tags=["meta"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "emailConfigured": services.broadcaster.email_enabled}

    return app
