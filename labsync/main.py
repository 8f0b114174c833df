"""
FastAPI application for the lab result sync service.
"""
import logging
from typing import Optional

from fastapi import FastAPI

from .config import RosterConfig, load_roster_config
from .context import AppContext
from .middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from .routers import samples_router, sync_router
from .settings import Settings

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    roster: Optional[RosterConfig] = None,
    context: Optional[AppContext] = None,
) -> FastAPI:
    """
    Build the application.

    Without an explicit context one is built from ``settings`` (environment by
    default) and ``roster`` (read from ``settings.config_path`` by default).
    """
    if context is None:
        settings = settings or Settings()
        roster = roster or load_roster_config(settings.config_path)
        context = AppContext.build(settings, roster)

    app = FastAPI(
        title=context.settings.app_name,
        description="Track lab specimens and collect their results from the portal",
        version=context.settings.app_version,
    )
    app.state.context = context

    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(samples_router)
    app.include_router(sync_router)

    @app.on_event("startup")
    async def startup_event():
        await context.startup()

    @app.on_event("shutdown")
    async def shutdown_event():
        await context.shutdown()

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint for deployment."""
        return {"status": "healthy"}

    return app
