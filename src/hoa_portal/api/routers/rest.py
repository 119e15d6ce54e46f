"""
hoa_portal.api.routers.rest

Table-based data API (`/rest/v1/{table}`).

Responsibilities:
- Select rows with equality/ordering filters, scoped to the caller.
- Profile self-service updates.
- Super-admin management of `role_permissions`.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT, HTTP_404_NOT_FOUND

from hoa_portal.api.deps import db_session
from hoa_portal.auth.deps import get_principal, require_super_admin
from hoa_portal.auth.models import Principal
from hoa_portal.db.repositories.permissions import RolePermissionRepo
from hoa_portal.domain import Role
from hoa_portal.services.data_api import DataApi, DataApiError, row_to_dict

router = APIRouter(prefix="/rest/v1", tags=["data"])


class ProfilePatch(BaseModel):
    full_name: str | None = Field(default=None, max_length=256)
    phone: str | None = Field(default=None, max_length=64)
    language: str | None = Field(default=None, max_length=8)


class RolePermissionCreate(BaseModel):
    role: Role
    page_path: str = Field(min_length=1, max_length=256)


def _single_id_filter(request: Request, column: str = "id") -> uuid.UUID:
    raw = request.query_params.get(column, "")
    if not raw.startswith("eq."):
        raise DataApiError(f"Expected {column}=eq.<uuid>")
    try:
        return uuid.UUID(raw[3:])
    except ValueError as e:
        raise DataApiError(f"Invalid value for {column}: {raw[3:]}") from e


@router.get("/{table}")
async def select_rows(
    table: str,
    request: Request,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> list[dict[str, Any]]:
    api = DataApi(session=session, principal=principal)
    return await api.select(table, list(request.query_params.multi_items()))


@router.patch("/profiles")
async def update_profile(
    request: Request,
    body: ProfilePatch,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> list[dict[str, Any]]:
    profile_id = _single_id_filter(request)
    values = body.model_dump(exclude_unset=True)
    api = DataApi(session=session, principal=principal)
    return [await api.update_profile(profile_id, values)]


@router.post("/role_permissions", status_code=HTTP_201_CREATED)
async def grant_permission(
    body: RolePermissionCreate,
    _: Principal = Depends(require_super_admin),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    perm = await RolePermissionRepo(session).grant(role=body.role.value, page_path=body.page_path)
    await session.commit()
    return row_to_dict(perm)


@router.delete("/role_permissions", status_code=HTTP_204_NO_CONTENT)
async def revoke_permission(
    request: Request,
    _: Principal = Depends(require_super_admin),
    session: AsyncSession = Depends(db_session),
) -> Response:
    permission_id = _single_id_filter(request)
    if not await RolePermissionRepo(session).revoke(permission_id):
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Permission not found")
    await session.commit()
    return Response(status_code=HTTP_204_NO_CONTENT)
