"""
hoa_portal.db.repositories.units

Repository for `Unit` entities.

Responsibilities:
- List unowned units of a site (onboarding picker).
- Claim units conditionally (only while still unowned) and release them.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hoa_portal.db.models import Unit, utcnow


class UnitRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, site_id: uuid.UUID, unit_number: str, block: str | None = None) -> Unit:
        unit = Unit(site_id=site_id, unit_number=unit_number, block=block)
        self._session.add(unit)
        await self._session.flush()
        return unit

    async def list_unowned(self, site_id: uuid.UUID) -> list[Unit]:
        stmt = (
            select(Unit)
            .where(Unit.site_id == site_id, Unit.owner_id.is_(None))
            .order_by(Unit.unit_number)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_by_ids(self, *, site_id: uuid.UUID, unit_ids: list[uuid.UUID]) -> list[Unit]:
        stmt = select(Unit).where(Unit.site_id == site_id, Unit.id.in_(unit_ids))
        return list((await self._session.execute(stmt)).scalars().all())

    async def claim(
        self,
        *,
        site_id: uuid.UUID,
        unit_ids: list[uuid.UUID],
        owner_id: uuid.UUID,
        owner_name: str | None,
        owner_email: str | None,
    ) -> int:
        """
        Assign unowned units to `owner_id`. Returns the number of rows actually claimed;
        a shortfall means another caller took some units first.
        """

        stmt = (
            update(Unit)
            .where(Unit.site_id == site_id, Unit.id.in_(unit_ids), Unit.owner_id.is_(None))
            .values(
                owner_id=owner_id,
                owner_name=owner_name,
                owner_email=owner_email,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def assign(
        self, *, site_id: uuid.UUID, unit_ids: list[uuid.UUID], owner_id: uuid.UUID
    ) -> int:
        # Admin assignment overrides any current owner.
        stmt = (
            update(Unit)
            .where(Unit.site_id == site_id, Unit.id.in_(unit_ids))
            .values(owner_id=owner_id, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def release_for_owner(self, *, site_id: uuid.UUID, owner_id: uuid.UUID) -> int:
        stmt = (
            update(Unit)
            .where(Unit.site_id == site_id, Unit.owner_id == owner_id)
            .values(owner_id=None, owner_name=None, owner_email=None, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0
