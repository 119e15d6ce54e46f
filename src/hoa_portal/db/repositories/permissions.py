from __future__ import annotations

import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from hoa_portal.db.models import RolePermission


class RolePermissionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def grant(self, *, role: str, page_path: str) -> RolePermission:
        stmt = select(RolePermission).where(
            RolePermission.role == role, RolePermission.page_path == page_path
        )
        existing = (await self._session.execute(stmt)).scalar_one_or_none()
        if existing is not None:
            return existing
        perm = RolePermission(role=role, page_path=page_path)
        self._session.add(perm)
        await self._session.flush()
        return perm

    async def revoke(self, permission_id: uuid.UUID) -> int:
        result = await self._session.execute(
            delete(RolePermission).where(RolePermission.id == permission_id)
        )
        return result.rowcount or 0
