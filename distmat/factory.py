"""FastAPI application factory."""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from .api import health_router
from .bootstrap import ServiceContainer, bootstrap_services
from .logging_config import configure_logging
from .settings import Settings, get_settings
from distmat.modules.dist import dist_router


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    services = ServiceContainer(settings)

    app = FastAPI(title=settings.app_name, version=settings.version)
    app.include_router(health_router)
    app.include_router(dist_router)
    app.state.container = services

    @app.on_event("startup")
    async def _startup() -> None:  # pragma: no cover - invoked by FastAPI
        await bootstrap_services(services)

    return app
