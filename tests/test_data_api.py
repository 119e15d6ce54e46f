"""
tests.test_data_api

`/rest/v1/{table}`: filters, ordering, embedding and per-table row scoping.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI
from support import bearer, create_site, grant_role, promote_super_admin, sign_up

from hoa_portal.db.init_db import DEFAULT_ROLE_PERMISSIONS
from hoa_portal.domain import Role


@pytest.mark.asyncio
async def test_rows_are_scoped_to_the_caller(app: FastAPI, api: httpx.AsyncClient) -> None:
    alice = await sign_up(api, "alice@example.com", full_name="Alice")
    bob = await sign_up(api, "bob@example.com", full_name="Bob")
    site_a, units_a = await create_site(app, "Alpha Residences", units=("A-1", "A-2"))
    site_b, _ = await create_site(app, "Beta Towers", units=("B-1",))
    await grant_role(app, alice["user"]["id"], site_a, Role.homeowner)
    await grant_role(app, bob["user"]["id"], site_b, Role.board_member)

    r = await api.get("/rest/v1/profiles", headers=bearer(alice))
    assert [p["full_name"] for p in r.json()] == ["Alice"]

    r = await api.get("/rest/v1/sites", headers=bearer(alice))
    assert [s["id"] for s in r.json()] == [str(site_a)]

    r = await api.get("/rest/v1/units", headers=bearer(alice), params={"order": "unit_number"})
    assert [u["unit_number"] for u in r.json()] == ["A-1", "A-2"]
    assert {u["id"] for u in r.json()} == {str(u) for u in units_a}

    r = await api.get("/rest/v1/user_site_roles", headers=bearer(alice))
    assert [(g["site_id"], g["role"]) for g in r.json()] == [(str(site_a), "homeowner")]


@pytest.mark.asyncio
async def test_inactive_grants_hide_the_site(app: FastAPI, api: httpx.AsyncClient) -> None:
    carol = await sign_up(api, "carol@example.com")
    site, _ = await create_site(app, "Gamma Court")
    await grant_role(app, carol["user"]["id"], site, Role.homeowner, is_active=False)

    r = await api.get("/rest/v1/sites", headers=bearer(carol))
    assert r.json() == []


@pytest.mark.asyncio
async def test_super_admin_sees_every_row(app: FastAPI, api: httpx.AsyncClient) -> None:
    root = await sign_up(api, "root@example.com")
    await sign_up(api, "someone@example.com")
    await promote_super_admin(app, root["user"]["id"])
    await create_site(app, "Alpha Residences")
    await create_site(app, "Closed Site", is_active=False)

    r = await api.get("/rest/v1/profiles", headers=bearer(root))
    assert len(r.json()) == 2

    r = await api.get(
        "/rest/v1/sites", headers=bearer(root), params={"is_active": "eq.true", "order": "name"}
    )
    assert [s["name"] for s in r.json()] == ["Alpha Residences"]

    r = await api.get("/rest/v1/sites", headers=bearer(root), params={"order": "name.desc"})
    assert [s["name"] for s in r.json()] == ["Closed Site", "Alpha Residences"]


@pytest.mark.asyncio
async def test_role_rows_embed_their_site(app: FastAPI, api: httpx.AsyncClient) -> None:
    dave = await sign_up(api, "dave@example.com")
    site, _ = await create_site(app, "Delta Park")
    await grant_role(app, dave["user"]["id"], site, Role.admin)

    r = await api.get(
        "/rest/v1/user_site_roles",
        headers=bearer(dave),
        params={"select": "*, sites(*)", "user_id": f"eq.{dave['user']['id']}"},
    )
    [row] = r.json()
    assert row["role"] == "admin"
    assert row["sites"]["name"] == "Delta Park"

    r = await api.get("/rest/v1/user_site_roles", headers=bearer(dave))
    assert "sites" not in r.json()[0]


@pytest.mark.asyncio
async def test_filters(app: FastAPI, api: httpx.AsyncClient) -> None:
    eve = await sign_up(api, "eve@example.com")
    site, units = await create_site(app, "Echo Homes", units=("E-1", "E-2", "E-3"))
    await grant_role(app, eve["user"]["id"], site, Role.board_member)

    r = await api.get(
        "/rest/v1/units",
        headers=bearer(eve),
        params={"id": f"in.({units[0]},{units[2]})", "order": "unit_number"},
    )
    assert [u["unit_number"] for u in r.json()] == ["E-1", "E-3"]

    r = await api.get(
        "/rest/v1/units",
        headers=bearer(eve),
        params={"unit_number": "neq.E-2", "owner_id": "is.null", "limit": "1", "order": "unit_number"},
    )
    assert [u["unit_number"] for u in r.json()] == ["E-1"]

    r = await api.get("/rest/v1/role_permissions", headers=bearer(eve), params={"role": "eq.homeowner"})
    assert {p["page_path"] for p in r.json()} == set(DEFAULT_ROLE_PERMISSIONS[Role.homeowner])


@pytest.mark.asyncio
async def test_bad_requests(api: httpx.AsyncClient) -> None:
    frank = await sign_up(api, "frank@example.com")

    r = await api.get("/rest/v1/ledger_entries", headers=bearer(frank))
    assert r.status_code == 400
    assert r.json() == {"error": "Unknown table: ledger_entries"}

    r = await api.get("/rest/v1/sites", headers=bearer(frank), params={"colour": "eq.red"})
    assert r.status_code == 400

    r = await api.get("/rest/v1/sites", headers=bearer(frank), params={"name": "like.A%"})
    assert r.status_code == 400

    r = await api.get("/rest/v1/sites")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_profile_self_service(app: FastAPI, api: httpx.AsyncClient) -> None:
    gina = await sign_up(api, "gina@example.com")
    hank = await sign_up(api, "hank@example.com")
    gina_id = gina["user"]["id"]

    r = await api.patch(
        "/rest/v1/profiles",
        headers=bearer(gina),
        params={"id": f"eq.{gina_id}"},
        json={"language": "tr", "phone": "+90 555 000 0000"},
    )
    assert r.status_code == 200
    assert r.json()[0]["language"] == "tr"
    assert r.json()[0]["phone"] == "+90 555 000 0000"

    r = await api.patch(
        "/rest/v1/profiles",
        headers=bearer(gina),
        params={"id": f"eq.{gina_id}"},
        json={"language": "xx"},
    )
    assert r.status_code == 400

    r = await api.patch(
        "/rest/v1/profiles",
        headers=bearer(hank),
        params={"id": f"eq.{gina_id}"},
        json={"full_name": "Hijacked"},
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_role_permissions_are_managed_by_super_admins(
    app: FastAPI, api: httpx.AsyncClient
) -> None:
    root = await sign_up(api, "root@example.com")
    user = await sign_up(api, "plain@example.com")
    await promote_super_admin(app, root["user"]["id"])

    body = {"role": "homeowner", "page_path": "/reports"}
    r = await api.post("/rest/v1/role_permissions", headers=bearer(user), json=body)
    assert r.status_code == 403

    r = await api.post("/rest/v1/role_permissions", headers=bearer(root), json=body)
    assert r.status_code == 201
    permission_id = r.json()["id"]

    r = await api.delete(
        "/rest/v1/role_permissions", headers=bearer(root), params={"id": f"eq.{permission_id}"}
    )
    assert r.status_code == 204

    r = await api.delete(
        "/rest/v1/role_permissions", headers=bearer(root), params={"id": f"eq.{permission_id}"}
    )
    assert r.status_code == 404
