"""
hoa_portal.api.routers.functions.onboarding

`POST /functions/v1/self-onboarding`: multi-step self-service onboarding:
`list_sites` → `list_units` → `complete_onboarding`.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from hoa_portal.api.deps import db_session
from hoa_portal.auth.deps import get_principal
from hoa_portal.auth.models import Principal
from hoa_portal.observability.logging import get_logger
from hoa_portal.services.errors import OnboardingError
from hoa_portal.services.onboarding_service import OnboardingService

router = APIRouter()
log = get_logger(__name__)


class OnboardingRequest(BaseModel):
    action: str
    site_id: uuid.UUID | None = None
    unit_ids: list[uuid.UUID] = Field(default_factory=list)


@router.post("/self-onboarding")
async def self_onboarding(
    body: OnboardingRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    log.info("onboarding.action", action=body.action, user_id=str(principal.user_id))
    svc = OnboardingService(session=session)

    if body.action == "list_sites":
        sites = await svc.list_sites()
        return {"sites": [{"id": str(s.id), "name": s.name} for s in sites]}

    if body.action == "list_units":
        if body.site_id is None:
            raise OnboardingError("Site ID is required")
        units = await svc.list_units(body.site_id)
        return {"units": [{"id": str(u.id), "unit_number": u.unit_number} for u in units]}

    if body.action == "complete_onboarding":
        if body.site_id is None or not body.unit_ids:
            raise OnboardingError("Site ID and at least one unit are required")
        await svc.complete(principal=principal, site_id=body.site_id, unit_ids=body.unit_ids)
        return {"success": True, "message": "Onboarding completed successfully"}

    raise OnboardingError("Invalid action")
