"""
hoa_portal.services.onboarding_service

Self-service onboarding protocol.

Responsibilities:
- List active sites and the unowned units of a site.
- Claim a homeowner role plus a set of units for the caller in one transaction,
  rejecting callers that already hold a role and units that are (or just became)
  owned by someone else.
"""

from __future__ import annotations

import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hoa_portal.auth.models import Principal
from hoa_portal.db.models import Site, Unit
from hoa_portal.db.repositories.profiles import ProfileRepo
from hoa_portal.db.repositories.roles import UserSiteRoleRepo
from hoa_portal.db.repositories.sites import SiteRepo
from hoa_portal.db.repositories.units import UnitRepo
from hoa_portal.domain import Role
from hoa_portal.observability.logging import get_logger
from hoa_portal.services.errors import AlreadyOnboardedError, OnboardingError, UnitConflictError

log = get_logger(__name__)


class OnboardingService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._sites = SiteRepo(session)
        self._units = UnitRepo(session)
        self._roles = UserSiteRoleRepo(session)
        self._profiles = ProfileRepo(session)

    async def list_sites(self) -> list[Site]:
        return await self._sites.list_active()

    async def list_units(self, site_id: uuid.UUID) -> list[Unit]:
        return await self._units.list_unowned(site_id)

    async def complete(
        self,
        *,
        principal: Principal,
        site_id: uuid.UUID,
        unit_ids: list[uuid.UUID],
    ) -> None:
        unit_ids = list(dict.fromkeys(unit_ids))
        if not unit_ids:
            raise OnboardingError("Site ID and at least one unit are required")

        if await self._roles.any_for_user(principal.user_id):
            log.warning("onboarding.already_onboarded", user_id=str(principal.user_id))
            raise AlreadyOnboardedError()

        site = await self._sites.get(site_id)
        if site is None or not site.is_active:
            raise OnboardingError("Site not found")

        units = await self._units.list_by_ids(site_id=site_id, unit_ids=unit_ids)
        if len(units) != len(unit_ids):
            raise OnboardingError("Some units do not belong to this site")

        owned = sorted(u.unit_number for u in units if u.owner_id is not None)
        if owned:
            raise UnitConflictError(owned)

        profile = await self._profiles.get(principal.user_id)
        try:
            await self._roles.add(user_id=principal.user_id, site_id=site_id, role=Role.homeowner)
        except IntegrityError:
            # A parallel onboarding request from the same user won the insert.
            await self._session.rollback()
            raise AlreadyOnboardedError() from None

        try:
            claimed = await self._units.claim(
                site_id=site_id,
                unit_ids=unit_ids,
                owner_id=principal.user_id,
                owner_name=(profile.full_name if profile else None) or "",
                owner_email=principal.email,
            )
            if claimed != len(unit_ids):
                raise UnitConflictError([])
        except UnitConflictError:
            # Someone claimed units between the check and the update; report which.
            await self._session.rollback()
            units = await self._units.list_by_ids(site_id=site_id, unit_ids=unit_ids)
            taken = sorted(
                u.unit_number
                for u in units
                if u.owner_id is not None and u.owner_id != principal.user_id
            )
            log.warning(
                "onboarding.concurrent_claim", user_id=str(principal.user_id), conflicts=taken
            )
            raise UnitConflictError(taken) from None

        await self._session.commit()
        log.info(
            "onboarding.completed",
            user_id=str(principal.user_id),
            site_id=str(site_id),
            units=len(unit_ids),
        )
