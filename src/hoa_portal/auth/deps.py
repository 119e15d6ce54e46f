"""
hoa_portal.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer token into a typed `Principal` (enriched with the profile's
  super-admin flag).
- Provide a super-admin gate for admin-only endpoints.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from hoa_portal.api.deps import db_session, settings_dep
from hoa_portal.auth.jwt import JwtValidationError, TokenSigner
from hoa_portal.auth.models import Principal
from hoa_portal.db.repositories.profiles import ProfileRepo
from hoa_portal.settings import Settings

_bearer = HTTPBearer(auto_error=False)


def get_bearer_token(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return creds.credentials


async def get_principal(
    token: str = Depends(get_bearer_token),
    settings: Settings = Depends(settings_dep),
    session: AsyncSession = Depends(db_session),
) -> Principal:
    try:
        claims = TokenSigner.from_settings(settings).verify(token)
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}") from e

    profile = await ProfileRepo(session).get(claims.user_id)
    return Principal(
        user_id=claims.user_id,
        email=claims.email,
        is_super_admin=bool(profile is not None and profile.is_super_admin),
    )


def require_super_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_super_admin:
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Forbidden: not superadmin")
    return principal


# --- Module Notes -----------------------------------------------------------
# Per-site roles are not part of the principal; endpoints that need them query
# `user_site_roles` for the site in question.
