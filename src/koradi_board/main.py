# src/koradi_board/main.py
"""Main entry point for the Koradi Board application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from koradi_board.api.v1 import (
    clients_admin_router,
    clients_router,
    messages_admin_router,
    messages_router,
    system_router,
)
from koradi_board.api.v1.dependencies import require_api_key
from koradi_board.core.logging import configure_logging
from koradi_board.core.rate_limit import build_limiter
from koradi_board.core.settings import Settings, settings
from koradi_board.middleware import SecurityHeadersMiddleware
from koradi_board.services.backup import BackupConfig, BackupService
from koradi_board.services.backup_storage import build_backup_storage
from koradi_board.services.message_store import MessageStore
from koradi_board.services.reaper import MessageReaper
from koradi_board.services.token_registry import build_token_registry

logger = logging.getLogger(__name__)

ADMIN_PREFIX = "/admin"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Restore the latest snapshot, then run the background workers."""
    app_settings: Settings = app.state.settings
    backup: BackupService | None = app.state.backup

    if backup is not None:
        try:
            await backup.restore_latest()
        except Exception:
            logger.exception("Failed to restore messages from backup; starting empty")
        await backup.start()

    if not app_settings.admin_enabled:
        logger.warning("ADMIN_API_KEY is not set; admin routes will reject every request")

    reaper: MessageReaper = app.state.reaper
    await reaper.start()
    try:
        yield
    finally:
        await reaper.stop()
        if backup is not None:
            await backup.stop()


def create_app(
    app_settings: Settings | None = None,
    store: MessageStore | None = None,
) -> FastAPI:
    """Build the FastAPI application and its shared services.

    Args:
        app_settings: Settings override; defaults to the environment-derived
            module settings.
        store: Pre-built message store; a fresh empty one by default.
    """
    if app_settings is None:
        app_settings = settings
    configure_logging(app_settings.log_level)

    app = FastAPI(
        title=app_settings.app_name,
        description="Language-scoped message board API",
        version=app_settings.app_version,
        debug=app_settings.debug,
        lifespan=lifespan,
    )

    store = store if store is not None else MessageStore()
    app.state.settings = app_settings
    app.state.message_store = store
    app.state.token_registry = build_token_registry(
        app_settings.token_backend, app_settings.redis_url
    )
    app.state.reaper = MessageReaper(store, interval_seconds=app_settings.sweep_interval_seconds)
    app.state.backup = (
        BackupService(
            store,
            BackupConfig.from_settings(app_settings),
            build_backup_storage(app_settings),
        )
        if app_settings.backup_enabled
        else None
    )

    # Rate limiting per client address
    app.state.limiter = build_limiter(app_settings)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Added last so it also wraps rate-limited responses
    if app_settings.security_headers_enabled:
        app.add_middleware(SecurityHeadersMiddleware)

    admin_dependencies = [Depends(require_api_key)]
    app.include_router(clients_router)
    app.include_router(messages_router)
    app.include_router(system_router)
    app.include_router(messages_admin_router, prefix=ADMIN_PREFIX, dependencies=admin_dependencies)
    app.include_router(clients_admin_router, prefix=ADMIN_PREFIX, dependencies=admin_dependencies)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint to verify the service is running."""
        return {"status": "ok"}

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with basic information about the API."""
        return {
            "name": app_settings.app_name,
            "version": app_settings.app_version,
            "description": "Language-scoped message board API",
            "docs": "/docs",
        }

    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "koradi_board.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
