"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers, routers, and lifespan events.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from gatekeeper.adapters.repository.postgres import run_migrations
from gatekeeper.api.dependencies import build_components
from gatekeeper.api.errors import register_exception_handlers
from gatekeeper.api.v1 import profiles_router
from gatekeeper.api.v1 import router as users_router
from gatekeeper.config.settings import Settings, get_settings
from gatekeeper.domain.ports import OneTimeCodeStore

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "users",
        "description": "Registration, email verification, and two-step or Google login",
    },
    {
        "name": "restricted-profiles",
        "description": "PIN-protected child profiles owned by the logged-in account",
    },
]


async def sweep_expired_codes(store: OneTimeCodeStore, interval_seconds: float) -> None:
    """Drop expired one-time codes every interval until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        store.sweep()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates the database connection pool and runs migrations (postgres backend)
    - Builds repositories, code store, senders, and session issuer
    - Starts the periodic sweep of expired one-time codes
    - Stops the sweep, the delivery pool, and the connection pool on shutdown
    """
    settings: Settings = app.state.settings or get_settings()

    logger.info("Starting application...")

    pool = None
    if settings.repository_backend == "postgres":
        logger.info("Connecting to database...")
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
        )
        logger.info("Running database migrations...")
        run_migrations(pool)
    else:
        logger.warning("Using in-memory repositories; data is lost on restart")

    components = build_components(settings, pool)
    app.state.pool = pool
    app.state.components = components

    sweeper = None
    if settings.otp_sweep_interval_seconds > 0:
        sweeper = asyncio.create_task(
            sweep_expired_codes(components.code_store, settings.otp_sweep_interval_seconds)
        )

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    components.caller.shutdown()
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Overrides the environment-derived settings (used by tests)
    """
    application = FastAPI(
        title="gatekeeper",
        description="Account registration, email verification, and two-step login API",
        version="0.1.0",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    application.state.settings = settings
    application.state.pool = None

    register_exception_handlers(application)
    application.include_router(users_router, prefix="/v1")
    application.include_router(profiles_router, prefix="/v1")

    @application.get("/health")
    def health_check(request: Request) -> dict[str, str]:
        """
        Health check endpoint with database validation.

        Returns 200 OK if the application (and database, when used) is healthy.
        """
        pool = request.app.state.pool
        if pool is not None:
            with pool.connection() as conn:
                conn.execute("SELECT 1")
        return {"status": "healthy"}

    return application


app = create_app()
