"""
hoa_portal.client.sites

Role/Site Resolver.

Responsibilities:
- Determine the sites a user may see (all active sites for super-admins, else the
  sites joined through the user's active role records).
- Keep exactly one current site out of that set and the role that applies to it.
- Persist explicit site selections (`currentSiteId`).
- Notify listeners whenever (sites, current site, role) changes.

Failure semantics: data fetch failures are logged and collapse to no sites / no
role. Results of a resolve started before a newer resolve/clear are discarded.
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from hoa_portal.client.backend import BackendClient
from hoa_portal.client.errors import BackendError, RecordDecodeError
from hoa_portal.client.events import ListenerSet, Subscription
from hoa_portal.client.records import SiteRecord, UserSiteRoleRecord
from hoa_portal.client.storage import CURRENT_SITE_KEY, ClientStorage
from hoa_portal.domain import Role
from hoa_portal.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ResolverSnapshot:
    user_id: uuid.UUID | None
    is_super_admin: bool
    sites: tuple[SiteRecord, ...]
    current_site: SiteRecord | None
    role: UserSiteRoleRecord | None
    loading: bool

    @property
    def role_name(self) -> str | None:
        return self.role.role.value if self.role else None


def synthetic_admin_role(user_id: uuid.UUID, site_id: uuid.UUID) -> UserSiteRoleRecord:
    return UserSiteRoleRecord(id=None, user_id=user_id, site_id=site_id, role=Role.admin)


class SiteResolver:
    def __init__(self, *, backend: BackendClient, storage: ClientStorage) -> None:
        self._backend = backend
        self._storage = storage
        self._listeners: ListenerSet[ResolverSnapshot] = ListenerSet("sites")
        self._generation = 0
        self._user_id: uuid.UUID | None = None
        self._is_super_admin = False
        self._sites: tuple[SiteRecord, ...] = ()
        self._current: SiteRecord | None = None
        self._role: UserSiteRoleRecord | None = None
        self._loading = False

    @property
    def user_id(self) -> uuid.UUID | None:
        return self._user_id

    @property
    def sites(self) -> tuple[SiteRecord, ...]:
        return self._sites

    @property
    def current_site(self) -> SiteRecord | None:
        return self._current

    @property
    def current_role(self) -> UserSiteRoleRecord | None:
        return self._role

    @property
    def loading(self) -> bool:
        return self._loading

    def snapshot(self) -> ResolverSnapshot:
        return ResolverSnapshot(
            user_id=self._user_id,
            is_super_admin=self._is_super_admin,
            sites=self._sites,
            current_site=self._current,
            role=self._role,
            loading=self._loading,
        )

    def on_change(self, cb: Callable[[ResolverSnapshot], Awaitable[None]]) -> Subscription:
        return self._listeners.add(cb)

    async def resolve(self, user_id: uuid.UUID, is_super_admin: bool) -> None:
        self._generation += 1
        generation = self._generation
        switched_user = user_id != self._user_id
        self._user_id = user_id
        self._is_super_admin = is_super_admin
        self._loading = True
        if switched_user:
            self._sites = ()
            self._current = None
            self._role = None
            await self._listeners.emit(self.snapshot())

        roles_by_site: dict[uuid.UUID, UserSiteRoleRecord] = {}
        try:
            if is_super_admin:
                sites = await self._backend.list_active_sites()
            else:
                roles = await self._backend.list_roles_with_sites(user_id)
                roles_by_site = {r.site_id: r for r in roles if r.is_active}
                sites = sorted(
                    (r.sites for r in roles if r.is_active and r.sites and r.sites.is_active),
                    key=lambda s: s.name,
                )
        except (BackendError, RecordDecodeError) as e:
            log.warning("sites.resolve_failed", user_id=str(user_id), error=str(e))
            sites = []

        if generation != self._generation:
            log.debug("sites.resolve_discarded", user_id=str(user_id))
            return

        current = self._choose_current(sites)
        if current is None:
            role = None
        elif is_super_admin:
            role = synthetic_admin_role(user_id, current.id)
        else:
            role = roles_by_site.get(current.id)

        self._sites = tuple(sites)
        self._current = current
        self._role = role
        self._loading = False
        log.info(
            "sites.resolved",
            user_id=str(user_id),
            sites=len(sites),
            current_site=str(current.id) if current else None,
            role=role.role.value if role else None,
        )
        await self._listeners.emit(self.snapshot())

    async def select_site(self, site_id: uuid.UUID) -> bool:
        """
        Make `site_id` the current site. Returns False (state unchanged) for ids
        outside the accessible set and while a resolve is in flight; re-selecting the
        current site is a no-op.
        """

        if self._loading:
            log.warning("sites.select_rejected", site_id=str(site_id), reason="resolving")
            return False
        site = next((s for s in self._sites if s.id == site_id), None)
        if site is None or self._user_id is None:
            log.warning("sites.select_rejected", site_id=str(site_id), reason="not_accessible")
            return False
        if self._current is not None and self._current.id == site_id:
            return True

        self._generation += 1
        generation = self._generation
        user_id = self._user_id
        if self._is_super_admin:
            role = synthetic_admin_role(user_id, site_id)
        else:
            try:
                role = await self._backend.fetch_role(user_id, site_id)
            except (BackendError, RecordDecodeError) as e:
                log.warning("sites.role_fetch_failed", site_id=str(site_id), error=str(e))
                role = None
        if generation != self._generation:
            return False

        self._current = site
        self._role = role
        self._storage.set(CURRENT_SITE_KEY, str(site_id))
        log.info("sites.selected", site_id=str(site_id), role=role.role.value if role else None)
        await self._listeners.emit(self.snapshot())
        return True

    async def clear(self, *, forget_selection: bool) -> None:
        self._generation += 1
        self._user_id = None
        self._is_super_admin = False
        self._sites = ()
        self._current = None
        self._role = None
        self._loading = False
        if forget_selection:
            self._storage.remove(CURRENT_SITE_KEY)
        await self._listeners.emit(self.snapshot())

    def _choose_current(self, sites: list[SiteRecord]) -> SiteRecord | None:
        by_id = {str(s.id): s for s in sites}
        persisted = self._storage.get(CURRENT_SITE_KEY)
        if persisted and persisted in by_id:
            return by_id[persisted]
        if self._current is not None and str(self._current.id) in by_id:
            return by_id[str(self._current.id)]
        return sites[0] if sites else None
