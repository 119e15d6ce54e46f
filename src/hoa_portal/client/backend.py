"""
hoa_portal.client.backend

Data API and functions client used by the client state components.

Responsibilities:
- Build PostgREST-style queries against `/rest/v1/{table}` with the caller's
  bearer token.
- Decode rows into typed records (`RecordDecodeError` on malformed rows).
- Invoke `/functions/v1/{name}`.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

import httpx

from hoa_portal.client.auth_api import AuthClient
from hoa_portal.client.errors import RecordDecodeError
from hoa_portal.client.http import send_json
from hoa_portal.client.records import (
    ProfileRecord,
    RolePermissionRecord,
    SiteRecord,
    UnitRecord,
    UserSiteRoleRecord,
    decode_rows,
)


class BackendClient:
    def __init__(self, *, http: httpx.AsyncClient, auth: AuthClient) -> None:
        self._http = http
        self._auth = auth

    async def select(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        order: str | None = None,
        columns: str | None = None,
        limit: int | None = None,
    ) -> Any:
        params: list[tuple[str, str]] = []
        if columns:
            params.append(("select", columns))
        for key, value in (eq or {}).items():
            params.append((key, f"eq.{_format(value)}"))
        if order:
            params.append(("order", order))
        if limit is not None:
            params.append(("limit", str(limit)))
        return await send_json(
            self._http, "GET", f"/rest/v1/{table}", headers=self._auth.auth_headers(), params=params
        )

    async def invoke(self, function: str, body: Mapping[str, Any]) -> Any:
        return await send_json(
            self._http,
            "POST",
            f"/functions/v1/{function}",
            headers=self._auth.auth_headers(),
            json=dict(body),
        )

    async def fetch_profile(self, user_id: uuid.UUID) -> ProfileRecord | None:
        rows = decode_rows(ProfileRecord, "profiles", await self.select("profiles", eq={"id": user_id}))
        return rows[0] if rows else None

    async def update_profile(self, user_id: uuid.UUID, values: Mapping[str, Any]) -> ProfileRecord:
        body = await send_json(
            self._http,
            "PATCH",
            "/rest/v1/profiles",
            headers=self._auth.auth_headers(),
            params={"id": f"eq.{user_id}"},
            json=dict(values),
        )
        rows = decode_rows(ProfileRecord, "profiles", body)
        if not rows:
            raise RecordDecodeError("profiles", "update returned no rows")
        return rows[0]

    async def list_active_sites(self) -> list[SiteRecord]:
        raw = await self.select("sites", eq={"is_active": True}, order="name")
        return decode_rows(SiteRecord, "sites", raw)

    async def list_roles_with_sites(self, user_id: uuid.UUID) -> list[UserSiteRoleRecord]:
        raw = await self.select(
            "user_site_roles",
            eq={"user_id": user_id, "is_active": True},
            columns="*, sites(*)",
        )
        return decode_rows(UserSiteRoleRecord, "user_site_roles", raw)

    async def fetch_role(self, user_id: uuid.UUID, site_id: uuid.UUID) -> UserSiteRoleRecord | None:
        raw = await self.select(
            "user_site_roles", eq={"user_id": user_id, "site_id": site_id, "is_active": True}
        )
        rows = decode_rows(UserSiteRoleRecord, "user_site_roles", raw)
        return rows[0] if rows else None

    async def list_role_permissions(self, role: str) -> list[RolePermissionRecord]:
        raw = await self.select("role_permissions", eq={"role": role})
        return decode_rows(RolePermissionRecord, "role_permissions", raw)

    async def list_units(self, site_id: uuid.UUID) -> list[UnitRecord]:
        raw = await self.select("units", eq={"site_id": site_id}, order="unit_number")
        return decode_rows(UnitRecord, "units", raw)


def _format(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
