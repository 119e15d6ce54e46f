"""
hoa_portal.api.routers.functions.manage_users

`POST /functions/v1/manage-users`: super-admin administration of site members.
"""

from __future__ import annotations

import uuid
from typing import Any, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from hoa_portal.api.deps import db_session
from hoa_portal.auth.deps import require_super_admin
from hoa_portal.auth.models import Principal
from hoa_portal.domain import Role
from hoa_portal.services.errors import UserAdminError
from hoa_portal.services.user_admin_service import UserAdminService

router = APIRouter()


class ManageUsersRequest(BaseModel):
    action: Literal["list_users", "invite_user", "update_user", "deactivate_user", "delete_user"]
    site_id: uuid.UUID
    email: EmailStr | None = None
    full_name: str | None = None
    role: Role | None = None
    unit_ids: list[uuid.UUID] = Field(default_factory=list)
    user_id: uuid.UUID | None = None
    deactivated: bool = True


@router.post("/manage-users")
async def manage_users(
    body: ManageUsersRequest,
    principal: Principal = Depends(require_super_admin),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = UserAdminService(session=session, actor=principal.user_id)

    if body.action == "list_users":
        return {"users": await svc.list_users(body.site_id)}

    if body.action == "invite_user":
        if body.email is None or body.role is None:
            raise UserAdminError("Email and role required")
        user_id = await svc.invite(
            site_id=body.site_id,
            email=body.email,
            role=body.role,
            full_name=body.full_name,
            unit_ids=body.unit_ids,
        )
        return {"success": True, "user_id": str(user_id)}

    if body.user_id is None:
        raise UserAdminError("User ID required")

    if body.action == "update_user":
        await svc.update(
            site_id=body.site_id, user_id=body.user_id, role=body.role, unit_ids=body.unit_ids
        )
        return {"success": True}

    if body.action == "deactivate_user":
        await svc.set_active(site_id=body.site_id, user_id=body.user_id, active=not body.deactivated)
        return {"success": True}

    await svc.remove(site_id=body.site_id, user_id=body.user_id)
    return {"success": True, "message": "User removed from site"}
