from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hoa_portal.db.models import Site


class SiteRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, name: str, city: str | None = None, is_active: bool = True) -> Site:
        site = Site(name=name, city=city, is_active=is_active)
        self._session.add(site)
        await self._session.flush()
        return site

    async def get(self, site_id: uuid.UUID) -> Site | None:
        return await self._session.get(Site, site_id)

    async def list_active(self) -> list[Site]:
        stmt = select(Site).where(Site.is_active.is_(True)).order_by(Site.name)
        return list((await self._session.execute(stmt)).scalars().all())
