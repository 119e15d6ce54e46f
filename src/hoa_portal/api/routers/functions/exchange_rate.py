"""
hoa_portal.api.routers.functions.exchange_rate

`POST /functions/v1/get-tcmb-rate`: daily central-bank rates for a date, falling
back to the most recent earlier bulletin.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import httpx
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from hoa_portal.api.deps import http_client, settings_dep
from hoa_portal.services.errors import ServiceError
from hoa_portal.services.exchange_rates import TcmbRateClient
from hoa_portal.settings import Settings

router = APIRouter()


class RateRequest(BaseModel):
    date: str | None = None


@router.post("/get-tcmb-rate")
async def get_tcmb_rate(
    body: RateRequest,
    settings: Settings = Depends(settings_dep),
    http: httpx.AsyncClient = Depends(http_client),
) -> dict[str, Any]:
    if not body.date:
        raise ServiceError("Date is required")
    try:
        requested = date.fromisoformat(body.date)
    except ValueError as e:
        raise ServiceError("Date must be formatted as YYYY-MM-DD") from e

    client = TcmbRateClient(http=http, base_url=settings.tcmb_base_url)
    lookup = await client.lookup(requested, lookback_days=settings.rate_lookback_days)
    return lookup.to_dict()
