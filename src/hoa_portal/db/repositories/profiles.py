from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hoa_portal.db.models import Profile


class ProfileRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: uuid.UUID,
        full_name: str | None,
        is_super_admin: bool = False,
        language: str = "en",
    ) -> Profile:
        profile = Profile(
            id=user_id,
            full_name=full_name,
            is_super_admin=is_super_admin,
            language=language,
        )
        self._session.add(profile)
        await self._session.flush()
        return profile

    async def get(self, user_id: uuid.UUID) -> Profile | None:
        return await self._session.get(Profile, user_id)

    async def list_by_ids(self, user_ids: list[uuid.UUID]) -> list[Profile]:
        if not user_ids:
            return []
        stmt = select(Profile).where(Profile.id.in_(user_ids))
        return list((await self._session.execute(stmt)).scalars().all())
