"""
hoa_portal.db.init_db

DB initialization helpers (dev/test convenience).

Responsibilities:
- Create tables for local development and tests.
- Seed the default role → page-path allow-lists.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from hoa_portal.db.base import Base
from hoa_portal.db.models import RolePermission
from hoa_portal.domain import Role

_ADMIN_PATHS: tuple[str, ...] = (
    "/dashboard",
    "/units",
    "/residents",
    "/budget",
    "/fiscal-periods",
    "/budget-vs-actual",
    "/monthly-income-expenses",
    "/reports",
    "/ledger",
    "/import-ledger",
    "/debt-tracking",
    "/tickets",
    "/users",
    "/settings",
    "/language-settings",
    "/role-settings",
    "/my-account",
)

DEFAULT_ROLE_PERMISSIONS: dict[Role, tuple[str, ...]] = {
    Role.admin: _ADMIN_PATHS,
    Role.board_member: tuple(p for p in _ADMIN_PATHS if p not in ("/users", "/role-settings")),
    Role.homeowner: ("/dashboard", "/tickets", "/language-settings", "/my-account"),
}


async def init_db(engine: AsyncEngine, *, seed_permissions: bool = True) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if seed_permissions:
        await seed_role_permissions(engine)


async def seed_role_permissions(engine: AsyncEngine) -> int:
    """
    Insert missing default allow-list rows; existing rows are left alone.
    Returns the number of rows inserted.
    """

    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    async with session_factory() as session:
        existing = {
            (row.role, row.page_path)
            for row in (await session.execute(select(RolePermission))).scalars()
        }
        inserted = 0
        for role, paths in DEFAULT_ROLE_PERMISSIONS.items():
            for path in paths:
                if (role.value, path) in existing:
                    continue
                session.add(RolePermission(role=role.value, page_path=path))
                inserted += 1
        await session.commit()
    return inserted


# --- Module Notes -----------------------------------------------------------
# Production deployments run Alembic migrations and may manage permissions through
# the role-settings endpoints instead of this seed.
