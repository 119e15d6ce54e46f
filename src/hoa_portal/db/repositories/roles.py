"""
hoa_portal.db.repositories.roles

Repository for `UserSiteRole` (per-site role grants).

Responsibilities:
- Look up a user's role records, optionally scoped to one site.
- Insert/upsert/deactivate/delete grants for onboarding and user administration.
"""

from __future__ import annotations

import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from hoa_portal.db.models import UserSiteRole
from hoa_portal.domain import Role


class UserSiteRoleRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def any_for_user(self, user_id: uuid.UUID) -> bool:
        stmt = select(UserSiteRole.id).where(UserSiteRole.user_id == user_id).limit(1)
        return (await self._session.execute(stmt)).first() is not None

    async def get(self, *, user_id: uuid.UUID, site_id: uuid.UUID) -> UserSiteRole | None:
        stmt = select(UserSiteRole).where(
            UserSiteRole.user_id == user_id, UserSiteRole.site_id == site_id
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_site(self, site_id: uuid.UUID) -> list[UserSiteRole]:
        stmt = (
            select(UserSiteRole)
            .where(UserSiteRole.site_id == site_id)
            .order_by(UserSiteRole.created_at)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def add(
        self, *, user_id: uuid.UUID, site_id: uuid.UUID, role: Role, is_active: bool = True
    ) -> UserSiteRole:
        grant = UserSiteRole(user_id=user_id, site_id=site_id, role=role.value, is_active=is_active)
        self._session.add(grant)
        await self._session.flush()
        return grant

    async def upsert(self, *, user_id: uuid.UUID, site_id: uuid.UUID, role: Role) -> UserSiteRole:
        # One grant per (user, site): re-inviting replaces the role and reactivates it.
        existing = await self.get(user_id=user_id, site_id=site_id)
        if existing is None:
            return await self.add(user_id=user_id, site_id=site_id, role=role)
        existing.role = role.value
        existing.is_active = True
        await self._session.flush()
        return existing

    async def delete(self, *, user_id: uuid.UUID, site_id: uuid.UUID) -> int:
        stmt = delete(UserSiteRole).where(
            UserSiteRole.user_id == user_id, UserSiteRole.site_id == site_id
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0
