"""
hoa_portal.api.routers.auth

Auth API (`/auth/v1`): sign-up, password and refresh-token grants, sign-out,
current user and metadata updates.
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_204_NO_CONTENT, HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND

from hoa_portal.api.deps import db_session, settings_dep
from hoa_portal.auth.deps import get_principal
from hoa_portal.auth.models import Principal
from hoa_portal.services.auth_service import AuthService, user_to_dict
from hoa_portal.settings import Settings

router = APIRouter(prefix="/auth/v1", tags=["auth"])


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=256)
    data: dict[str, Any] = Field(default_factory=dict)


class TokenRequest(BaseModel):
    email: EmailStr | None = None
    password: str | None = None
    refresh_token: str | None = None


class UserUpdateRequest(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)


@router.post("/signup")
async def sign_up(
    body: SignUpRequest,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    svc = AuthService(session=session, settings=settings)
    issued = await svc.sign_up(email=body.email, password=body.password, metadata=body.data)
    return issued.to_dict()


@router.post("/token")
async def token(
    body: TokenRequest,
    grant_type: Literal["password", "refresh_token"] = Query(...),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    svc = AuthService(session=session, settings=settings)
    if grant_type == "password":
        if not body.email or body.password is None:
            raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Email and password required")
        issued = await svc.sign_in_with_password(email=body.email, password=body.password)
    else:
        if not body.refresh_token:
            raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Refresh token required")
        issued = await svc.refresh(refresh_token=body.refresh_token)
    return issued.to_dict()


@router.post("/logout", status_code=HTTP_204_NO_CONTENT)
async def logout(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> Response:
    await AuthService(session=session, settings=settings).sign_out(user_id=principal.user_id)
    return Response(status_code=HTTP_204_NO_CONTENT)


@router.get("/user")
async def current_user(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    user = await AuthService(session=session, settings=settings).get_user(principal.user_id)
    if user is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="User not found")
    return user_to_dict(user)


@router.put("/user")
async def update_user(
    body: UserUpdateRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    svc = AuthService(session=session, settings=settings)
    user = await svc.update_metadata(user_id=principal.user_id, data=body.data)
    return user_to_dict(user)
