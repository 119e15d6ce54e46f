"""
hoa_portal.api.app

FastAPI app factory for the HOA portal backend.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Initialize and dispose shared infrastructure (DB engine, session factory,
  outbound HTTP client) in the lifespan.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from hoa_portal import __version__
from hoa_portal.api.errors import install_error_handlers
from hoa_portal.api.routers.auth import router as auth_router
from hoa_portal.api.routers.functions.router import router as functions_router
from hoa_portal.api.routers.health import router as health_router
from hoa_portal.api.routers.rest import router as rest_router
from hoa_portal.db.init_db import init_db
from hoa_portal.db.session import create_engine, create_sessionmaker
from hoa_portal.observability.logging import configure_logging, get_logger
from hoa_portal.observability.middleware import RequestContextMiddleware
from hoa_portal.settings import Settings

log = get_logger(__name__)


def create_app(
    *,
    settings: Settings,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    `http_transport` replaces the network for outbound calls (central-bank fetches);
    tests pass an `httpx.MockTransport`.
    """

    configure_logging(
        service_name=settings.service_name, level=settings.log_level, json_logs=settings.log_json
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        app.state.http = httpx.AsyncClient(
            transport=http_transport,
            timeout=settings.rate_timeout_seconds,
            follow_redirects=True,
        )
        if settings.env in ("dev", "test"):
            # Prod runs Alembic migrations instead.
            await init_db(engine, seed_permissions=settings.seed_role_permissions)
        try:
            yield
        finally:
            await app.state.http.aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="HOA Portal",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    install_error_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(rest_router)
    app.include_router(functions_router)

    return app
