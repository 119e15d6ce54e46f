"""
tests.support

Helpers shared by test modules: fake central bank, request recorder, seeding.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field

import httpx
from fastapi import FastAPI

from hoa_portal.db.repositories.profiles import ProfileRepo
from hoa_portal.db.repositories.roles import UserSiteRoleRepo
from hoa_portal.db.repositories.sites import SiteRepo
from hoa_portal.db.repositories.units import UnitRepo
from hoa_portal.domain import Role

PASSWORD = "s3cret-pass"


def bulletin_xml(*currencies: tuple[str, int, str, str]) -> str:
    """(code, unit, forex_selling, banknote_selling) -> TCMB-shaped XML."""

    body = "".join(
        f'<Currency CrossOrder="0" Kod="{code}" CurrencyCode="{code}">'
        f"<Unit>{unit}</Unit><ForexSelling>{forex}</ForexSelling>"
        f"<BanknoteSelling>{banknote}</BanknoteSelling></Currency>"
        for code, unit, forex, banknote in currencies
    )
    return f'<?xml version="1.0" encoding="UTF-8"?><Tarih_Date Tarih="x">{body}</Tarih_Date>'


class FakeTcmb:
    """Serves bulletins keyed by request path; every other path is a 404."""

    def __init__(self) -> None:
        self.bulletins: dict[str, str] = {}
        self.failing: set[str] = set()
        self.requested: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requested.append(path)
        if path in self.failing:
            raise httpx.ConnectError("connection refused", request=request)
        if path in self.bulletins:
            return httpx.Response(200, text=self.bulletins[path])
        return httpx.Response(404, text="Not Found")


@dataclass
class HeldRequest:
    entered: asyncio.Event = field(default_factory=asyncio.Event)
    released: asyncio.Event = field(default_factory=asyncio.Event)


class RecordingTransport(httpx.AsyncBaseTransport):
    def __init__(self, inner: httpx.AsyncBaseTransport) -> None:
        self.inner = inner
        self.calls: list[tuple[str, str]] = []
        self._held: dict[str, HeldRequest] = {}

    def hold(self, path: str) -> HeldRequest:
        """Park the next request to `path` until the returned handle is released."""

        held = self._held[path] = HeldRequest()
        return held

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request.method, request.url.path))
        held = self._held.pop(request.url.path, None)
        if held is not None:
            held.entered.set()
            await held.released.wait()
        return await self.inner.handle_async_request(request)

    def paths(self) -> list[str]:
        return [path for _, path in self.calls]


def bearer(session: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {session['access_token']}"}


async def sign_up(
    api: httpx.AsyncClient, email: str, *, full_name: str = "Test User", password: str = PASSWORD
) -> dict:
    r = await api.post(
        "/auth/v1/signup",
        json={"email": email, "password": password, "data": {"full_name": full_name}},
    )
    assert r.status_code == 200, r.text
    return r.json()


async def create_site(
    app: FastAPI, name: str, *, units: tuple[str, ...] = (), is_active: bool = True
) -> tuple[uuid.UUID, list[uuid.UUID]]:
    async with app.state.sessionmaker() as s:
        site = await SiteRepo(s).create(name=name, city="Istanbul", is_active=is_active)
        unit_ids = [(await UnitRepo(s).create(site_id=site.id, unit_number=n)).id for n in units]
        site_id = site.id
        await s.commit()
    return site_id, unit_ids


async def grant_role(
    app: FastAPI,
    user_id: str | uuid.UUID,
    site_id: uuid.UUID,
    role: Role,
    *,
    is_active: bool = True,
) -> None:
    async with app.state.sessionmaker() as s:
        await UserSiteRoleRepo(s).add(
            user_id=uuid.UUID(str(user_id)), site_id=site_id, role=role, is_active=is_active
        )
        await s.commit()


async def promote_super_admin(app: FastAPI, user_id: str | uuid.UUID) -> None:
    async with app.state.sessionmaker() as s:
        profile = await ProfileRepo(s).get(uuid.UUID(str(user_id)))
        assert profile is not None
        profile.is_super_admin = True
        await s.commit()
