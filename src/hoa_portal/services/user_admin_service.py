"""
hoa_portal.services.user_admin_service

Super-admin user administration for one site.

Responsibilities:
- List a site's members with their role and owned units.
- Invite a member (creating a password-less account for unknown emails).
- Change a member's role and reset their unit ownership on the site.
- Toggle a grant active/inactive and remove a member from a site.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hoa_portal.db.models import AuthUser, Unit
from hoa_portal.db.repositories.auth_users import AuthUserRepo
from hoa_portal.db.repositories.profiles import ProfileRepo
from hoa_portal.db.repositories.roles import UserSiteRoleRepo
from hoa_portal.db.repositories.sites import SiteRepo
from hoa_portal.db.repositories.units import UnitRepo
from hoa_portal.domain import Role
from hoa_portal.observability.logging import get_logger
from hoa_portal.services.errors import UserAdminError

log = get_logger(__name__)


class UserAdminService:
    def __init__(self, *, session: AsyncSession, actor: uuid.UUID) -> None:
        self._session = session
        self._actor = actor
        self._users = AuthUserRepo(session)
        self._profiles = ProfileRepo(session)
        self._roles = UserSiteRoleRepo(session)
        self._sites = SiteRepo(session)
        self._units = UnitRepo(session)

    async def list_users(self, site_id: uuid.UUID) -> list[dict[str, Any]]:
        grants = await self._roles.list_for_site(site_id)
        user_ids = [g.user_id for g in grants]
        profiles = {p.id: p for p in await self._profiles.list_by_ids(user_ids)}
        emails: dict[uuid.UUID, str] = {}
        owned: dict[uuid.UUID, list[str]] = {}
        if user_ids:
            rows = await self._session.execute(
                select(AuthUser.id, AuthUser.email).where(AuthUser.id.in_(user_ids))
            )
            emails = {row.id: row.email for row in rows}
            unit_rows = await self._session.execute(
                select(Unit.owner_id, Unit.unit_number)
                .where(Unit.site_id == site_id, Unit.owner_id.in_(user_ids))
                .order_by(Unit.unit_number)
            )
            for row in unit_rows:
                owned.setdefault(row.owner_id, []).append(row.unit_number)

        return [
            {
                "user_id": str(g.user_id),
                "email": emails.get(g.user_id, ""),
                "full_name": profiles[g.user_id].full_name if g.user_id in profiles else None,
                "role": g.role,
                "is_active": g.is_active,
                "units": owned.get(g.user_id, []),
            }
            for g in grants
        ]

    async def invite(
        self,
        *,
        site_id: uuid.UUID,
        email: str,
        role: Role,
        full_name: str | None = None,
        unit_ids: list[uuid.UUID] | None = None,
    ) -> uuid.UUID:
        if await self._sites.get(site_id) is None:
            raise UserAdminError("Site not found")

        user = await self._users.get_by_email(email)
        if user is None:
            # Invited accounts have no password until the user sets one.
            user = await self._users.create(
                email=email, password_hash=None, user_metadata={"full_name": full_name or ""}
            )
            await self._profiles.create(user_id=user.id, full_name=full_name or None)
            log.info("users.invited", user_id=str(user.id), site_id=str(site_id))
        elif await self._profiles.get(user.id) is None:
            await self._profiles.create(user_id=user.id, full_name=full_name or None)

        await self._roles.upsert(user_id=user.id, site_id=site_id, role=role)
        if role == Role.homeowner and unit_ids:
            await self._units.assign(site_id=site_id, unit_ids=unit_ids, owner_id=user.id)

        await self._session.commit()
        log.info(
            "users.role_assigned",
            actor=str(self._actor),
            user_id=str(user.id),
            site_id=str(site_id),
            role=role.value,
        )
        return user.id

    async def update(
        self,
        *,
        site_id: uuid.UUID,
        user_id: uuid.UUID,
        role: Role | None = None,
        unit_ids: list[uuid.UUID] | None = None,
    ) -> None:
        """
        Change a member's role on a site. Their units on the site are released
        first; homeowners then receive `unit_ids`.
        """

        grant = await self._roles.get(user_id=user_id, site_id=site_id)
        if grant is None:
            raise UserAdminError("User is not a member of this site")
        if role is not None:
            grant.role = role.value
        released = await self._units.release_for_owner(site_id=site_id, owner_id=user_id)
        assigned = 0
        if grant.role == Role.homeowner and unit_ids:
            assigned = await self._units.assign(site_id=site_id, unit_ids=unit_ids, owner_id=user_id)
        await self._session.commit()
        log.info(
            "users.updated",
            actor=str(self._actor),
            user_id=str(user_id),
            site_id=str(site_id),
            role=grant.role,
            released_units=released,
            assigned_units=assigned,
        )

    async def set_active(self, *, site_id: uuid.UUID, user_id: uuid.UUID, active: bool) -> None:
        grant = await self._roles.get(user_id=user_id, site_id=site_id)
        if grant is None:
            raise UserAdminError("User is not a member of this site")
        grant.is_active = active
        await self._session.commit()
        log.info("users.active_changed", user_id=str(user_id), site_id=str(site_id), active=active)

    async def remove(self, *, site_id: uuid.UUID, user_id: uuid.UUID) -> None:
        # The account itself survives; it may belong to other sites.
        await self._units.release_for_owner(site_id=site_id, owner_id=user_id)
        deleted = await self._roles.delete(user_id=user_id, site_id=site_id)
        if not deleted:
            await self._session.rollback()
            raise UserAdminError("User is not a member of this site")
        await self._session.commit()
        log.info("users.removed", user_id=str(user_id), site_id=str(site_id))
