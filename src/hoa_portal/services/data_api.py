"""
hoa_portal.services.data_api

Table-based query engine behind `/rest/v1/{table}`.

Responsibilities:
- Parse PostgREST-style filters (`col=eq.value`, `col=is.null`, `col=in.(a,b)`)
  and ordering (`order=name`, `order=created_at.desc`).
- Apply row-level scoping per table for the calling principal.
- Serialize ORM rows to JSON-safe dicts, embedding `sites(*)` on role rows.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from hoa_portal.auth.models import Principal
from hoa_portal.db.base import Base
from hoa_portal.db.models import (
    Profile,
    RolePermission,
    Site,
    Unit,
    UserSiteRole,
    utcnow,
)
from hoa_portal.domain import SUPPORTED_LANGUAGES
from hoa_portal.services.errors import ServiceError


class DataApiError(ServiceError):
    pass


class DataAccessDenied(DataApiError):
    pass


def _member_site_ids(user_id: uuid.UUID):
    return select(UserSiteRole.site_id).where(
        UserSiteRole.user_id == user_id, UserSiteRole.is_active.is_(True)
    )


def _scope_profiles(stmt: Select, p: Principal) -> Select:
    return stmt.where(Profile.id == p.user_id)


def _scope_sites(stmt: Select, p: Principal) -> Select:
    return stmt.where(Site.id.in_(_member_site_ids(p.user_id)))


def _scope_roles(stmt: Select, p: Principal) -> Select:
    return stmt.where(UserSiteRole.user_id == p.user_id)


def _scope_units(stmt: Select, p: Principal) -> Select:
    return stmt.where(Unit.site_id.in_(_member_site_ids(p.user_id)))


@dataclass(frozen=True, slots=True)
class TableDef:
    model: type[Base]
    # Row filter for non-super-admin callers; None means every authenticated user sees all rows.
    scope: Callable[[Select, Principal], Select] | None = None
    embeds: dict[str, str] = field(default_factory=dict)


TABLES: dict[str, TableDef] = {
    "profiles": TableDef(Profile, _scope_profiles),
    "sites": TableDef(Site, _scope_sites),
    "user_site_roles": TableDef(UserSiteRole, _scope_roles, embeds={"sites": "site"}),
    "role_permissions": TableDef(RolePermission),
    "units": TableDef(Unit, _scope_units),
}

_PROFILE_WRITABLE = frozenset({"full_name", "phone", "language"})
_RESERVED_PARAMS = frozenset({"select", "order", "limit"})


def to_json_value(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime | date):
        return value.isoformat()
    return value


def row_to_dict(row: Base) -> dict[str, Any]:
    return {
        col.key: to_json_value(getattr(row, col.key)) for col in row.__mapper__.column_attrs
    }


class DataApi:
    def __init__(self, *, session: AsyncSession, principal: Principal) -> None:
        self._session = session
        self._principal = principal

    def _table(self, table: str) -> TableDef:
        table_def = TABLES.get(table)
        if table_def is None:
            raise DataApiError(f"Unknown table: {table}")
        return table_def

    def _column(self, table_def: TableDef, name: str) -> InstrumentedAttribute:
        if name not in table_def.model.__mapper__.column_attrs:
            raise DataApiError(f"Unknown column: {name}")
        return getattr(table_def.model, name)

    async def select(
        self, table: str, params: Sequence[tuple[str, str]]
    ) -> list[dict[str, Any]]:
        table_def = self._table(table)
        stmt = select(table_def.model)
        if table_def.scope is not None and not self._principal.is_super_admin:
            stmt = table_def.scope(stmt, self._principal)

        embed: list[str] = []
        for key, raw in params:
            if key == "select":
                embed = [e for e in table_def.embeds if f"{e}(" in raw]
            elif key == "order":
                stmt = stmt.order_by(*self._order_clauses(table_def, raw))
            elif key == "limit":
                stmt = stmt.limit(self._parse_limit(raw))
            else:
                stmt = stmt.where(self._filter_clause(table_def, key, raw))

        rows = (await self._session.execute(stmt)).unique().scalars().all()
        out: list[dict[str, Any]] = []
        for row in rows:
            data = row_to_dict(row)
            for name in embed:
                related = getattr(row, table_def.embeds[name])
                data[name] = row_to_dict(related) if related is not None else None
            out.append(data)
        return out

    async def update_profile(self, profile_id: uuid.UUID, values: dict[str, Any]) -> dict[str, Any]:
        if profile_id != self._principal.user_id and not self._principal.is_super_admin:
            raise DataAccessDenied("Cannot update another user's profile")
        unknown = set(values) - _PROFILE_WRITABLE
        if unknown:
            raise DataApiError(f"Columns not writable: {', '.join(sorted(unknown))}")
        if "language" in values and values["language"] not in SUPPORTED_LANGUAGES:
            raise DataApiError(f"Unsupported language: {values['language']}")

        profile = await self._session.get(Profile, profile_id)
        if profile is None:
            raise DataApiError("Profile not found")
        for key, value in values.items():
            setattr(profile, key, value)
        profile.updated_at = utcnow()
        await self._session.commit()
        return row_to_dict(profile)

    def _order_clauses(self, table_def: TableDef, raw: str) -> list[Any]:
        clauses = []
        for part in filter(None, (p.strip() for p in raw.split(","))):
            name, _, direction = part.partition(".")
            col = self._column(table_def, name)
            if direction in ("", "asc"):
                clauses.append(col.asc())
            elif direction == "desc":
                clauses.append(col.desc())
            else:
                raise DataApiError(f"Invalid order direction: {direction}")
        return clauses

    @staticmethod
    def _parse_limit(raw: str) -> int:
        try:
            limit = int(raw)
        except ValueError as e:
            raise DataApiError(f"Invalid limit: {raw}") from e
        if limit < 0:
            raise DataApiError(f"Invalid limit: {raw}")
        return limit

    def _filter_clause(self, table_def: TableDef, name: str, raw: str) -> Any:
        col = self._column(table_def, name)
        op, sep, operand = raw.partition(".")
        if not sep:
            raise DataApiError(f"Invalid filter for {name}: {raw}")
        if op == "eq":
            return col == self._coerce(col, operand)
        if op == "neq":
            return col != self._coerce(col, operand)
        if op == "is":
            if operand == "null":
                return col.is_(None)
            if operand in ("true", "false"):
                return col.is_(operand == "true")
            raise DataApiError(f"Invalid is-operand for {name}: {operand}")
        if op == "in":
            items = [i.strip() for i in operand.strip("()").split(",") if i.strip()]
            return col.in_([self._coerce(col, i) for i in items])
        raise DataApiError(f"Unsupported operator: {op}")

    @staticmethod
    def _coerce(col: InstrumentedAttribute, raw: str) -> Any:
        py_type = col.type.python_type
        try:
            if py_type is uuid.UUID:
                return uuid.UUID(raw)
            if py_type is bool:
                if raw not in ("true", "false"):
                    raise ValueError(raw)
                return raw == "true"
            if py_type is int:
                return int(raw)
            if py_type is datetime:
                return datetime.fromisoformat(raw)
        except ValueError as e:
            raise DataApiError(f"Invalid value for {col.key}: {raw}") from e
        return raw


# --- Module Notes -----------------------------------------------------------
# Writes beyond profile self-service and role_permissions administration go through
# dedicated functions (onboarding, manage-users) rather than this generic surface.
