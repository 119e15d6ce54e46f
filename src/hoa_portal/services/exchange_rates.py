"""
hoa_portal.services.exchange_rates

Central Bank of the Republic of Turkey (TCMB) daily exchange-rate lookup.

Responsibilities:
- Fetch the published daily XML bulletin for a date.
- Walk back one day at a time (weekends/holidays have no bulletin) within a
  bounded window and report which day's rates were used.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

import httpx

from hoa_portal.observability.logging import get_logger
from hoa_portal.services.errors import RateNotFoundError

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RateLookup:
    requested_date: date
    effective_date: date
    rates: dict[str, float]

    def to_dict(self) -> dict[str, Any]:
        return {
            "requestedDate": self.requested_date.isoformat(),
            "effectiveDate": self.effective_date.isoformat(),
            "rates": dict(self.rates),
        }


def bulletin_path(day: date) -> str:
    # e.g. /kurlar/202401/12012024.xml
    return f"/kurlar/{day:%Y%m}/{day:%d%m%Y}.xml"


def _as_float(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw.strip())
    except ValueError:
        return None


def parse_bulletin(xml_text: str) -> dict[str, float]:
    """
    Extract {currency code: TRY per one unit} from a TCMB bulletin.

    BanknoteSelling is preferred; currencies without banknote quotes fall back to
    ForexSelling. Quotes given per 100 units (e.g. JPY) are normalized.
    """

    root = ET.fromstring(xml_text)
    rates: dict[str, float] = {}
    for currency in root.iter("Currency"):
        code = (currency.get("Kod") or currency.get("CurrencyCode") or "").strip()
        if not code:
            continue
        value = _as_float(currency.findtext("BanknoteSelling"))
        if value is None:
            value = _as_float(currency.findtext("ForexSelling"))
        if value is None:
            continue
        unit = _as_float(currency.findtext("Unit")) or 1.0
        rates[code] = round(value / unit, 6)
    return rates


class TcmbRateClient:
    def __init__(self, *, http: httpx.AsyncClient, base_url: str) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")

    async def fetch_day(self, day: date) -> dict[str, float] | None:
        url = f"{self._base_url}{bulletin_path(day)}"
        try:
            r = await self._http.get(url)
        except httpx.HTTPError as e:
            log.warning("rates.fetch_failed", url=url, error=str(e))
            return None
        if r.status_code != 200:
            log.info("rates.not_published", url=url, status_code=r.status_code)
            return None
        try:
            rates = parse_bulletin(r.text)
        except ET.ParseError as e:
            log.warning("rates.malformed_bulletin", url=url, error=str(e))
            return None
        return rates or None

    async def lookup(self, requested: date, *, lookback_days: int = 7) -> RateLookup:
        """
        Rates for `requested`, or for the closest earlier day within `lookback_days`.
        """

        for offset in range(lookback_days + 1):
            day = requested - timedelta(days=offset)
            rates = await self.fetch_day(day)
            if rates:
                return RateLookup(requested_date=requested, effective_date=day, rates=rates)
        raise RateNotFoundError(
            f"Could not find TCMB rate within {lookback_days} days of {requested.isoformat()}"
        )
