"""
tests.conftest

Shared fixtures: an in-process app on a throwaway SQLite file, an ASGI-backed
`httpx.AsyncClient`, and a mock central-bank transport.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from support import FakeTcmb

from hoa_portal.api.app import create_app
from hoa_portal.settings import Settings


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(env="test", database_url=f"sqlite+aiosqlite:///{tmp_path / 'hoa.db'}")


@pytest.fixture
def tcmb() -> FakeTcmb:
    return FakeTcmb()


@pytest_asyncio.fixture
async def app(settings: Settings, tcmb: FakeTcmb) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings, http_transport=httpx.MockTransport(tcmb.handler))
    # httpx's ASGITransport does not run the lifespan; enter it explicitly.
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def api(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
