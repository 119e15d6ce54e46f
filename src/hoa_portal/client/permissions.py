"""
hoa_portal.client.permissions

Permission Gate: maps the resolved role to its allow-list of UI paths.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from hoa_portal.client.backend import BackendClient
from hoa_portal.client.errors import BackendError, RecordDecodeError
from hoa_portal.client.sites import ResolverSnapshot
from hoa_portal.observability.logging import get_logger

log = get_logger(__name__)

WILDCARD = "*"


def is_path_allowed(
    path: str, *, has_user: bool, is_super_admin: bool, allowed: Iterable[str]
) -> bool:
    if not has_user:
        return False
    if is_super_admin:
        return True
    allowed = frozenset(allowed)
    return WILDCARD in allowed or path in allowed


class PermissionGate:
    def __init__(self, *, backend: BackendClient) -> None:
        self._backend = backend
        self._key: tuple[uuid.UUID | None, str | None, bool] = (None, None, False)
        self._allowed: frozenset[str] = frozenset()
        self._generation = 0
        self._loading = False

    @property
    def allowed_paths(self) -> frozenset[str]:
        return self._allowed

    @property
    def loading(self) -> bool:
        return self._loading

    async def on_resolver_change(self, snapshot: ResolverSnapshot) -> None:
        key = (snapshot.user_id, snapshot.role_name, snapshot.is_super_admin)
        if key == self._key:
            return
        self._key = key
        # Deny until the new role's allow-list arrives.
        self._allowed = frozenset()
        await self._load()

    async def reload(self) -> None:
        await self._load()

    def can_access(self, path: str) -> bool:
        user_id, _, is_super_admin = self._key
        return is_path_allowed(
            path,
            has_user=user_id is not None,
            is_super_admin=is_super_admin,
            allowed=self._allowed,
        )

    async def _load(self) -> None:
        self._generation += 1
        generation = self._generation
        user_id, role, is_super_admin = self._key
        if user_id is None or role is None or is_super_admin:
            # Super-admins bypass the allow-list entirely.
            self._allowed = frozenset()
            self._loading = False
            return

        self._loading = True
        try:
            rows = await self._backend.list_role_permissions(role)
            allowed = frozenset(r.page_path for r in rows)
        except (BackendError, RecordDecodeError) as e:
            log.warning("permissions.fetch_failed", role=role, error=str(e))
            allowed = frozenset()
        if generation != self._generation:
            return
        self._allowed = allowed
        self._loading = False
        log.info("permissions.loaded", role=role, paths=len(allowed))
