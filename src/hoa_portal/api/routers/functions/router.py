"""
hoa_portal.api.routers.functions.router

Mounts each function under `/functions/v1`. Every function refuses to run when
backend credentials are missing (500, generic configuration error).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from hoa_portal.api.deps import require_configured
from hoa_portal.api.routers.functions import (
    create_superadmin,
    exchange_rate,
    manage_users,
    onboarding,
)

router = APIRouter(
    prefix="/functions/v1",
    tags=["functions"],
    dependencies=[Depends(require_configured)],
)

router.include_router(exchange_rate.router)
router.include_router(onboarding.router)
router.include_router(manage_users.router)
router.include_router(create_superadmin.router)
