"""
tests.test_admin_functions

Super-admin functions: `manage-users` and `create-superadmin`.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI
from support import PASSWORD, bearer, create_site, sign_up

from hoa_portal.api.app import create_app
from hoa_portal.settings import Settings

MANAGE = "/functions/v1/manage-users"


async def _super_admin(api: httpx.AsyncClient) -> dict:
    r = await api.post(
        "/functions/v1/create-superadmin",
        json={"email": "root@example.com", "password": PASSWORD, "full_name": "Root"},
    )
    assert r.status_code == 201, r.text
    r = await api.post(
        "/auth/v1/token",
        params={"grant_type": "password"},
        json={"email": "root@example.com", "password": PASSWORD},
    )
    return r.json()


@pytest.mark.asyncio
async def test_create_superadmin_grants_the_flag(api: httpx.AsyncClient) -> None:
    root = await _super_admin(api)
    r = await api.get("/rest/v1/profiles", headers=bearer(root), params={"id": f"eq.{root['user']['id']}"})
    assert r.json()[0]["is_super_admin"] is True


@pytest.mark.asyncio
async def test_create_superadmin_is_hidden_in_prod(tmp_path) -> None:
    settings = Settings(env="prod", database_url=f"sqlite+aiosqlite:///{tmp_path / 'hoa.db'}")
    app = create_app(settings=settings)
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            r = await client.post(
                "/functions/v1/create-superadmin",
                json={"email": "root@example.com", "password": PASSWORD},
            )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_manage_users_requires_super_admin(app: FastAPI, api: httpx.AsyncClient) -> None:
    user = await sign_up(api, "plain@example.com")
    site, _ = await create_site(app, "Alpha Residences")
    r = await api.post(MANAGE, headers=bearer(user), json={"action": "list_users", "site_id": str(site)})
    assert r.status_code == 403
    assert r.json() == {"error": "Forbidden: not superadmin"}


@pytest.mark.asyncio
async def test_member_lifecycle(app: FastAPI, api: httpx.AsyncClient) -> None:
    root = await _super_admin(api)
    site, units = await create_site(app, "Alpha Residences", units=("A-1", "A-2"))

    r = await api.post(
        MANAGE,
        headers=bearer(root),
        json={
            "action": "invite_user",
            "site_id": str(site),
            "email": "invitee@example.com",
            "full_name": "In Vitee",
            "role": "homeowner",
            "unit_ids": [str(units[1])],
        },
    )
    assert r.status_code == 200
    user_id = r.json()["user_id"]

    r = await api.post(MANAGE, headers=bearer(root), json={"action": "list_users", "site_id": str(site)})
    assert r.json()["users"] == [
        {
            "user_id": user_id,
            "email": "invitee@example.com",
            "full_name": "In Vitee",
            "role": "homeowner",
            "is_active": True,
            "units": ["A-2"],
        }
    ]

    r = await api.post(
        MANAGE,
        headers=bearer(root),
        json={"action": "deactivate_user", "site_id": str(site), "user_id": user_id},
    )
    assert r.status_code == 200
    r = await api.post(MANAGE, headers=bearer(root), json={"action": "list_users", "site_id": str(site)})
    assert r.json()["users"][0]["is_active"] is False

    # Re-assigning reactivates and replaces the role.
    r = await api.post(
        MANAGE,
        headers=bearer(root),
        json={"action": "invite_user", "site_id": str(site), "email": "invitee@example.com", "role": "board_member"},
    )
    assert r.json()["user_id"] == user_id
    r = await api.post(MANAGE, headers=bearer(root), json={"action": "list_users", "site_id": str(site)})
    [member] = r.json()["users"]
    assert (member["role"], member["is_active"]) == ("board_member", True)

    r = await api.post(
        MANAGE,
        headers=bearer(root),
        json={"action": "delete_user", "site_id": str(site), "user_id": user_id},
    )
    assert r.status_code == 200
    r = await api.post(MANAGE, headers=bearer(root), json={"action": "list_users", "site_id": str(site)})
    assert r.json()["users"] == []

    r = await api.get("/rest/v1/units", headers=bearer(root), params={"unit_number": "eq.A-2"})
    assert r.json()[0]["owner_id"] is None

    r = await api.post(
        MANAGE,
        headers=bearer(root),
        json={"action": "delete_user", "site_id": str(site), "user_id": user_id},
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_invited_account_cannot_sign_in_without_password(
    app: FastAPI, api: httpx.AsyncClient
) -> None:
    root = await _super_admin(api)
    site, _ = await create_site(app, "Alpha Residences")
    await api.post(
        MANAGE,
        headers=bearer(root),
        json={"action": "invite_user", "site_id": str(site), "email": "nopass@example.com", "role": "homeowner"},
    )
    r = await api.post(
        "/auth/v1/token",
        params={"grant_type": "password"},
        json={"email": "nopass@example.com", "password": PASSWORD},
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_update_user_resets_unit_ownership(app: FastAPI, api: httpx.AsyncClient) -> None:
    root = await _super_admin(api)
    site, units = await create_site(app, "Alpha Residences", units=("A-1", "A-2", "A-3"))

    r = await api.post(
        MANAGE,
        headers=bearer(root),
        json={
            "action": "invite_user",
            "site_id": str(site),
            "email": "owner@example.com",
            "role": "homeowner",
            "unit_ids": [str(units[0]), str(units[1])],
        },
    )
    user_id = r.json()["user_id"]

    async def owned_units() -> list[str]:
        r = await api.post(MANAGE, headers=bearer(root), json={"action": "list_users", "site_id": str(site)})
        [member] = r.json()["users"]
        return member["units"]

    assert await owned_units() == ["A-1", "A-2"]

    # Previous units are released before the new set is assigned.
    r = await api.post(
        MANAGE,
        headers=bearer(root),
        json={
            "action": "update_user",
            "site_id": str(site),
            "user_id": user_id,
            "role": "homeowner",
            "unit_ids": [str(units[2])],
        },
    )
    assert r.status_code == 200
    assert r.json() == {"success": True}
    assert await owned_units() == ["A-3"]

    # Non-homeowners end up owning nothing on the site.
    r = await api.post(
        MANAGE,
        headers=bearer(root),
        json={
            "action": "update_user",
            "site_id": str(site),
            "user_id": user_id,
            "role": "board_member",
            "unit_ids": [str(units[0])],
        },
    )
    assert r.status_code == 200
    r = await api.post(MANAGE, headers=bearer(root), json={"action": "list_users", "site_id": str(site)})
    [member] = r.json()["users"]
    assert (member["role"], member["units"]) == ("board_member", [])
    r = await api.get("/rest/v1/units", headers=bearer(root), params={"site_id": f"eq.{site}"})
    assert all(u["owner_id"] is None for u in r.json())


@pytest.mark.asyncio
async def test_update_user_requires_an_existing_member(app: FastAPI, api: httpx.AsyncClient) -> None:
    root = await _super_admin(api)
    site, _ = await create_site(app, "Alpha Residences")
    outsider = await sign_up(api, "outsider@example.com")

    r = await api.post(
        MANAGE,
        headers=bearer(root),
        json={"action": "update_user", "site_id": str(site), "role": "homeowner"},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "User ID required"}

    r = await api.post(
        MANAGE,
        headers=bearer(root),
        json={
            "action": "update_user",
            "site_id": str(site),
            "user_id": outsider["user"]["id"],
            "role": "homeowner",
        },
    )
    assert r.status_code == 400
    assert r.json() == {"error": "User is not a member of this site"}
