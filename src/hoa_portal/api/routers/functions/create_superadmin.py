"""
hoa_portal.api.routers.functions.create_superadmin

`POST /functions/v1/create-superadmin`: bootstrap account for a fresh install.
Hidden (404) in prod, where super-admins are provisioned out of band.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_404_NOT_FOUND

from hoa_portal.api.deps import db_session, settings_dep
from hoa_portal.services.auth_service import AuthService
from hoa_portal.settings import Settings

router = APIRouter()


class CreateSuperadminRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=256)
    full_name: str | None = Field(default=None, max_length=256)


@router.post("/create-superadmin", status_code=HTTP_201_CREATED)
async def create_superadmin(
    body: CreateSuperadminRequest,
    settings: Settings = Depends(settings_dep),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    full_name = body.full_name or body.email
    issued = await AuthService(session=session, settings=settings).sign_up(
        email=body.email,
        password=body.password,
        metadata={"full_name": full_name},
        is_super_admin=True,
    )
    return {
        "success": True,
        "message": "Superadmin created",
        "user": {"id": str(issued.user.id), "email": issued.user.email, "full_name": full_name},
    }
