from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from maguru.api.edge import build_edge_guard
from maguru.api.errors import register_exception_handlers, unhandled_error_middleware
from maguru.api.middleware import request_context_middleware
from maguru.api.routes import register_routes
from maguru.core.config import Settings, get_settings
from maguru.core.logging import setup_logging
from maguru.infrastructure.db.session import dispose_engine

logger = structlog.get_logger()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory for the course marketplace API."""
    settings = settings or get_settings()
    setup_logging(settings.log_level, service=settings.app_name, json_logs=settings.log_json)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "service_startup",
            service=settings.app_name,
            environment=settings.environment,
            version=settings.version,
            edge_guard=settings.edge_guard_enabled,
        )
        yield
        await dispose_engine()
        logger.info("service_shutdown", service=settings.app_name)

    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
    app.state.settings = settings

    register_exception_handlers(app)
    register_routes(app)

    # Later registrations wrap earlier ones. The edge check sits closest to
    # the routes; CORS answers preflights before anything else runs.
    if settings.edge_guard_enabled:
        app.middleware("http")(build_edge_guard(settings))
    app.middleware("http")(unhandled_error_middleware)
    app.middleware("http")(request_context_middleware)

    cors_origins = list(settings.cors_origins)
    if settings.environment in ["local", "development"]:
        cors_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials="*" not in cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()
