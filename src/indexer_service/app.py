"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from indexer_service.config import get_settings
from indexer_service.core.exceptions import register_exception_handlers
from indexer_service.core.lifespan import lifespan
from indexer_service.routers import agents, curves, health, insights, tasks


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance with all routers registered.
    """
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.service.name} Service",
        version=settings.service.version,
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["Operations"])
    app.include_router(agents.router, prefix="/api", tags=["Agents"])
    app.include_router(tasks.router, prefix="/api", tags=["Tasks"])
    app.include_router(curves.router, prefix="/api", tags=["Curves"])
    app.include_router(insights.router, prefix="/api", tags=["Insights"])

    return app
