"""
hoa_portal.services.auth_service

Backend auth service: password sign-up/sign-in, refresh-token rotation, sign-out.

Responsibilities:
- Create the credential record and its profile row in one transaction.
- Issue sessions (JWT access token + opaque refresh token).
- Revoke refresh tokens on sign-out and on rotation.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hoa_portal.auth.jwt import TokenSigner
from hoa_portal.auth.passwords import hash_password, verify_password
from hoa_portal.db.models import AuthUser
from hoa_portal.db.repositories.auth_users import AuthUserRepo, RefreshTokenRepo
from hoa_portal.db.repositories.profiles import ProfileRepo
from hoa_portal.observability.logging import get_logger
from hoa_portal.services.errors import AuthServiceError
from hoa_portal.settings import Settings

log = get_logger(__name__)

_MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True, slots=True)
class IssuedSession:
    access_token: str
    refresh_token: str
    expires_at: datetime
    expires_in: int
    user: AuthUser

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "token_type": "bearer",
            "expires_in": self.expires_in,
            "expires_at": int(self.expires_at.timestamp()),
            "refresh_token": self.refresh_token,
            "user": user_to_dict(self.user),
        }


def user_to_dict(user: AuthUser) -> dict[str, Any]:
    return {
        "id": str(user.id),
        "email": user.email,
        "user_metadata": dict(user.user_metadata or {}),
        "created_at": user.created_at.isoformat(),
    }


class AuthService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._users = AuthUserRepo(session)
        self._refresh_tokens = RefreshTokenRepo(session)
        self._profiles = ProfileRepo(session)

    async def sign_up(
        self,
        *,
        email: str,
        password: str,
        metadata: dict[str, Any] | None = None,
        is_super_admin: bool = False,
    ) -> IssuedSession:
        if len(password) < _MIN_PASSWORD_LENGTH:
            raise AuthServiceError(
                f"Password should be at least {_MIN_PASSWORD_LENGTH} characters"
            )
        if await self._users.get_by_email(email) is not None:
            raise AuthServiceError("User already registered")

        metadata = dict(metadata or {})
        user = await self._users.create(
            email=email, password_hash=hash_password(password), user_metadata=metadata
        )
        await self._profiles.create(
            user_id=user.id,
            full_name=str(metadata.get("full_name") or "") or None,
            is_super_admin=is_super_admin,
        )
        issued = await self._issue(user)
        await self._session.commit()
        log.info("auth.signed_up", user_id=str(user.id), super_admin=is_super_admin)
        return issued

    async def sign_in_with_password(self, *, email: str, password: str) -> IssuedSession:
        user = await self._users.get_by_email(email)
        if user is None or not user.password_hash or not verify_password(
            password, user.password_hash
        ):
            log.warning("auth.sign_in_failed", email=email)
            raise AuthServiceError("Invalid login credentials")
        issued = await self._issue(user)
        await self._session.commit()
        log.info("auth.signed_in", user_id=str(user.id))
        return issued

    async def refresh(self, *, refresh_token: str) -> IssuedSession:
        rt = await self._refresh_tokens.get_valid(refresh_token)
        if rt is None:
            raise AuthServiceError("Invalid Refresh Token")
        user = await self._users.get(rt.user_id)
        if user is None:
            raise AuthServiceError("Invalid Refresh Token")
        # Rotation: a refresh token is single-use.
        await self._refresh_tokens.revoke(rt)
        issued = await self._issue(user)
        await self._session.commit()
        return issued

    async def sign_out(self, *, user_id: uuid.UUID) -> None:
        revoked = await self._refresh_tokens.revoke_all_for_user(user_id)
        await self._session.commit()
        log.info("auth.signed_out", user_id=str(user_id), revoked_tokens=revoked)

    async def get_user(self, user_id: uuid.UUID) -> AuthUser | None:
        return await self._users.get(user_id)

    async def update_metadata(self, *, user_id: uuid.UUID, data: dict[str, Any]) -> AuthUser:
        """Merge `data` into the user's metadata; `full_name` is mirrored to the profile."""

        user = await self._users.get(user_id)
        if user is None:
            raise AuthServiceError("User not found")
        # Reassign so the JSON column is flagged dirty.
        user.user_metadata = {**(user.user_metadata or {}), **data}
        if "full_name" in data:
            profile = await self._profiles.get(user_id)
            if profile is not None:
                profile.full_name = str(data["full_name"] or "") or None
        await self._session.commit()
        log.info("auth.user_updated", user_id=str(user_id), keys=sorted(data))
        return user

    async def _issue(self, user: AuthUser) -> IssuedSession:
        ttl = timedelta(seconds=self._settings.access_token_ttl_seconds)
        access_token, expires_at = TokenSigner.from_settings(self._settings).issue(
            user_id=user.id, email=user.email, ttl=ttl
        )
        rt = await self._refresh_tokens.issue(
            user_id=user.id, ttl=timedelta(days=self._settings.refresh_token_ttl_days)
        )
        return IssuedSession(
            access_token=access_token,
            refresh_token=rt.token,
            expires_at=expires_at,
            expires_in=int(ttl.total_seconds()),
            user=user,
        )
