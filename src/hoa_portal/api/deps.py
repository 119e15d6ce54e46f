"""
hoa_portal.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide settings, DB sessions and a shared outbound HTTP client from app.state.
- Refuse function calls when backend credentials are missing.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hoa_portal.observability.logging import get_logger
from hoa_portal.services.errors import ConfigurationError
from hoa_portal.settings import Settings

log = get_logger(__name__)


def settings_dep(request: Request) -> Settings:
    # Settings are fixed per app instance by `create_app`.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


def http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Commit/rollback is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session


def require_configured(settings: Settings = Depends(settings_dep)) -> Settings:
    missing = settings.missing_credentials()
    if missing:
        log.error("config.missing_credentials", missing=missing)
        raise ConfigurationError(missing)
    return settings
