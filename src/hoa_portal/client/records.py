"""
hoa_portal.client.records

Typed record schemas for rows and payloads received from the backend.

Responsibilities:
- Validate loosely-typed JSON at the boundary (pydantic).
- Turn malformed rows into `RecordDecodeError` instead of attribute errors deep
  inside the state components.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hoa_portal.client.errors import RecordDecodeError
from hoa_portal.domain import Role


class _Record(BaseModel):
    # Backend rows carry more columns than the client needs.
    model_config = ConfigDict(extra="ignore", frozen=True)


class UserRecord(_Record):
    id: uuid.UUID
    email: str
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class SessionRecord(_Record):
    access_token: str
    refresh_token: str
    expires_at: int
    token_type: str = "bearer"
    user: UserRecord

    def expires_within(self, seconds: float, *, now: datetime | None = None) -> bool:
        current = (now or datetime.now(tz=UTC)).timestamp()
        return self.expires_at - current <= seconds


class ProfileRecord(_Record):
    id: uuid.UUID
    full_name: str | None = None
    phone: str | None = None
    language: str = "en"
    is_super_admin: bool = False


class SiteRecord(_Record):
    id: uuid.UUID
    name: str
    city: str | None = None
    default_currency: str = "TRY"
    is_active: bool = True


class UserSiteRoleRecord(_Record):
    # id is None for the synthetic admin role of super-admins.
    id: uuid.UUID | None = None
    user_id: uuid.UUID
    site_id: uuid.UUID
    role: Role
    is_active: bool = True
    sites: SiteRecord | None = None


class RolePermissionRecord(_Record):
    id: uuid.UUID
    role: str
    page_path: str


class UnitRecord(_Record):
    id: uuid.UUID
    site_id: uuid.UUID | None = None
    unit_number: str
    block: str | None = None
    floor: int | None = None
    owner_id: uuid.UUID | None = None


R = TypeVar("R", bound=_Record)


def decode_record(model: type[R], table: str, raw: Any) -> R:
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise RecordDecodeError(table, str(e.errors(include_url=False))) from e


def decode_rows(model: type[R], table: str, raw: Any) -> list[R]:
    if not isinstance(raw, list):
        raise RecordDecodeError(table, f"expected a list of rows, got {type(raw).__name__}")
    return [decode_record(model, table, row) for row in raw]
