"""
hoa_portal.db.repositories.auth_users

Repositories for `AuthUser` and `RefreshToken` entities.

Responsibilities:
- Create and look up credential records.
- Issue, rotate and revoke opaque refresh tokens.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hoa_portal.db.models import AuthUser, RefreshToken, utcnow


class AuthUserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        email: str,
        password_hash: str | None,
        user_metadata: dict[str, Any] | None = None,
    ) -> AuthUser:
        user = AuthUser(
            email=email.lower(),
            password_hash=password_hash,
            user_metadata=user_metadata or {},
        )
        self._session.add(user)
        await self._session.flush()
        return user

    async def get(self, user_id: uuid.UUID) -> AuthUser | None:
        return await self._session.get(AuthUser, user_id)

    async def get_by_email(self, email: str) -> AuthUser | None:
        stmt = select(AuthUser).where(func.lower(AuthUser.email) == email.lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()


class RefreshTokenRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def issue(self, *, user_id: uuid.UUID, ttl: timedelta) -> RefreshToken:
        rt = RefreshToken(
            user_id=user_id,
            token=secrets.token_urlsafe(48),
            revoked=False,
            expires_at=utcnow() + ttl,
        )
        self._session.add(rt)
        await self._session.flush()
        return rt

    async def get_valid(self, token: str, *, now: datetime | None = None) -> RefreshToken | None:
        stmt = select(RefreshToken).where(
            RefreshToken.token == token,
            RefreshToken.revoked.is_(False),
            RefreshToken.expires_at > (now or utcnow()),
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def revoke(self, rt: RefreshToken) -> None:
        rt.revoked = True
        await self._session.flush()

    async def revoke_all_for_user(self, user_id: uuid.UUID) -> int:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0
