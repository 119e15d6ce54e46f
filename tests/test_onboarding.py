"""
tests.test_onboarding

`/functions/v1/self-onboarding`: site/unit pickers and the claim protocol.
"""

from __future__ import annotations

import uuid

import httpx
import pytest
from fastapi import FastAPI
from support import bearer, create_site, grant_role, sign_up

from hoa_portal.db.repositories.roles import UserSiteRoleRepo
from hoa_portal.db.repositories.units import UnitRepo
from hoa_portal.domain import Role

URL = "/functions/v1/self-onboarding"


@pytest.mark.asyncio
async def test_requires_bearer(api: httpx.AsyncClient) -> None:
    r = await api.post(URL, json={"action": "list_sites"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_pickers_list_active_sites_and_unowned_units(
    app: FastAPI, api: httpx.AsyncClient
) -> None:
    me = await sign_up(api, "new@example.com")
    owner = await sign_up(api, "owner@example.com")
    site, units = await create_site(app, "Beta Towers", units=("B-2", "B-1"))
    await create_site(app, "Alpha Residences")
    await create_site(app, "Archived", is_active=False)
    await grant_role(app, owner["user"]["id"], site, Role.homeowner)
    async with app.state.sessionmaker() as s:
        await UnitRepo(s).assign(
            site_id=site, unit_ids=[units[0]], owner_id=uuid.UUID(owner["user"]["id"])
        )
        await s.commit()

    r = await api.post(URL, headers=bearer(me), json={"action": "list_sites"})
    assert [s["name"] for s in r.json()["sites"]] == ["Alpha Residences", "Beta Towers"]

    r = await api.post(URL, headers=bearer(me), json={"action": "list_units"})
    assert r.status_code == 400

    r = await api.post(URL, headers=bearer(me), json={"action": "list_units", "site_id": str(site)})
    assert r.json() == {"units": [{"id": str(units[1]), "unit_number": "B-1"}]}


@pytest.mark.asyncio
async def test_complete_onboarding_claims_units_once(app: FastAPI, api: httpx.AsyncClient) -> None:
    me = await sign_up(api, "claimer@example.com", full_name="Claire Mer")
    site, units = await create_site(app, "Alpha Residences", units=("A-1", "A-2", "A-3"))
    body = {
        "action": "complete_onboarding",
        "site_id": str(site),
        "unit_ids": [str(units[0]), str(units[1]), str(units[0])],
    }

    r = await api.post(URL, headers=bearer(me), json=body)
    assert r.status_code == 200
    assert r.json()["success"] is True

    r = await api.get("/rest/v1/user_site_roles", headers=bearer(me))
    assert [(g["site_id"], g["role"]) for g in r.json()] == [(str(site), "homeowner")]

    r = await api.get("/rest/v1/units", headers=bearer(me), params={"owner_id": f"eq.{me['user']['id']}"})
    owned = sorted(r.json(), key=lambda u: u["unit_number"])
    assert [u["unit_number"] for u in owned] == ["A-1", "A-2"]
    assert owned[0]["owner_name"] == "Claire Mer"
    assert owned[0]["owner_email"] == "claimer@example.com"

    r = await api.post(
        URL,
        headers=bearer(me),
        json={"action": "complete_onboarding", "site_id": str(site), "unit_ids": [str(units[2])]},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "You have already completed onboarding"}


@pytest.mark.asyncio
async def test_owned_unit_is_a_conflict(app: FastAPI, api: httpx.AsyncClient) -> None:
    first = await sign_up(api, "first@example.com")
    second = await sign_up(api, "second@example.com")
    site, units = await create_site(app, "Alpha Residences", units=("A-1", "A-2"))

    r = await api.post(
        URL,
        headers=bearer(first),
        json={"action": "complete_onboarding", "site_id": str(site), "unit_ids": [str(units[0])]},
    )
    assert r.status_code == 200

    r = await api.post(
        URL,
        headers=bearer(second),
        json={
            "action": "complete_onboarding",
            "site_id": str(site),
            "unit_ids": [str(units[0]), str(units[1])],
        },
    )
    assert r.status_code == 409
    assert r.json() == {"error": "Some units are already owned", "conflicts": ["A-1"]}

    # Nothing was written for the rejected caller.
    r = await api.get("/rest/v1/user_site_roles", headers=bearer(second))
    assert r.json() == []


@pytest.mark.asyncio
async def test_units_claimed_concurrently_are_reported(
    app: FastAPI, api: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    me = await sign_up(api, "slow@example.com")
    rival = await sign_up(api, "fast@example.com")
    site, units = await create_site(app, "Alpha Residences", units=("A-1", "A-2"))

    original_add = UserSiteRoleRepo.add

    async def racing_add(self, **kwargs):
        # The rival's claim commits after our ownership check but before our update.
        async with app.state.sessionmaker() as other:
            await UnitRepo(other).claim(
                site_id=site,
                unit_ids=[units[1]],
                owner_id=uuid.UUID(rival["user"]["id"]),
                owner_name="Rival",
                owner_email="fast@example.com",
            )
            await other.commit()
        return await original_add(self, **kwargs)

    monkeypatch.setattr(UserSiteRoleRepo, "add", racing_add)

    r = await api.post(
        URL,
        headers=bearer(me),
        json={
            "action": "complete_onboarding",
            "site_id": str(site),
            "unit_ids": [str(units[0]), str(units[1])],
        },
    )
    assert r.status_code == 409
    assert r.json()["conflicts"] == ["A-2"]

    monkeypatch.undo()
    r = await api.get("/rest/v1/user_site_roles", headers=bearer(me))
    assert r.json() == []
    async with app.state.sessionmaker() as s:
        a1, a2 = sorted(
            await UnitRepo(s).list_by_ids(site_id=site, unit_ids=units),
            key=lambda u: u.unit_number,
        )
    assert a1.owner_id is None
    assert str(a2.owner_id) == rival["user"]["id"]


@pytest.mark.asyncio
async def test_validation_errors(app: FastAPI, api: httpx.AsyncClient) -> None:
    me = await sign_up(api, "validate@example.com")
    site, _ = await create_site(app, "Alpha Residences", units=("A-1",))
    _, other_units = await create_site(app, "Beta Towers", units=("B-1",))

    r = await api.post(URL, headers=bearer(me), json={"action": "complete_onboarding"})
    assert r.status_code == 400

    r = await api.post(
        URL,
        headers=bearer(me),
        json={"action": "complete_onboarding", "site_id": str(site), "unit_ids": [str(other_units[0])]},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Some units do not belong to this site"}

    r = await api.post(
        URL,
        headers=bearer(me),
        json={"action": "complete_onboarding", "site_id": str(uuid.uuid4()), "unit_ids": [str(uuid.uuid4())]},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Site not found"}

    r = await api.post(URL, headers=bearer(me), json={"action": "delete_everything"})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid action"}
