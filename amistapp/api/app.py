# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the AmistApp API.
Startup brings the credential store to the current schema before the
application accepts any request; a migration failure aborts startup.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from amistapp import __version__
from amistapp.api.errors import register_exception_handlers
from amistapp.api.middleware.auth import AuthMiddleware
from amistapp.api.routes import admin, auth, health
from amistapp.core.config import Settings, get_settings
from amistapp.domains.auth.jwt import JWTManager
from amistapp.infrastructure.database.connection import create_store
from amistapp.infrastructure.database.migrations.runner import (
    MigrationError,
    run_startup_migrations,
)
from amistapp.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup:
    - Configure logging
    - Flag an insecure signing secret
    - Open the credential store
    - Apply pending migrations and ensure an administrator exists

    Shutdown closes the credential store.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.

    Raises:
        MigrationError: If the store cannot be migrated.
    """
    settings: Settings = app.state.settings
    setup_logging(settings)

    logger.info(
        "Starting AmistApp API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    if settings.jwt.uses_insecure_secret:
        logger.warning(
            "JWT secret key is the insecure default; set JWT_SECRET_KEY before deploying"
        )

    store = create_store(settings)
    app.state.store = store

    # =========================================================================
    # Startup barrier: no traffic until the schema is known
    # =========================================================================
    try:
        report = await run_startup_migrations(store, settings)
    except MigrationError:
        logger.exception("Database migration failed; refusing to start")
        await store.dispose()
        app.state.store = None
        raise

    logger.info(
        "Database ready: %d migrations applied, bootstrap admin created=%s",
        len(report.applied),
        report.admin_created,
    )

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================
    await store.dispose()
    app.state.store = None
    logger.info("Shutting down AmistApp API")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to run with. Defaults to get_settings().

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="AmistApp API",
        description="Credential and session authority for the AmistApp school platform",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Disable automatic redirects from /path to /path/
        # This prevents 307 redirects that lose Authorization headers
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.settings = settings
    app.state.jwt_manager = JWTManager(settings.jwt)
    app.state.store = None

    # =========================================================================
    # Exception handlers
    # =========================================================================
    register_exception_handlers(app)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    # Auth middleware - resolves bearer tokens into request.state
    app.add_middleware(AuthMiddleware, jwt_manager=app.state.jwt_manager)

    # CORS middleware (added last to execute first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(admin.router, prefix="/admin", tags=["Administration"])

    return app
