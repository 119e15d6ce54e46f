"""
tests.test_auth_api

Backend auth API: sign-up, password and refresh-token grants, sign-out and the
current-user endpoints.
"""

from __future__ import annotations

import httpx
import pytest
from support import PASSWORD, bearer, sign_up


@pytest.mark.asyncio
async def test_sign_up_issues_session_and_creates_profile(api: httpx.AsyncClient) -> None:
    session = await sign_up(api, "ayse@example.com", full_name="Ayse Yilmaz")
    assert session["token_type"] == "bearer"
    assert session["refresh_token"]
    assert session["user"]["email"] == "ayse@example.com"
    assert session["user"]["user_metadata"]["full_name"] == "Ayse Yilmaz"

    r = await api.get("/rest/v1/profiles", headers=bearer(session))
    assert r.status_code == 200
    [profile] = r.json()
    assert profile["id"] == session["user"]["id"]
    assert profile["full_name"] == "Ayse Yilmaz"
    assert profile["language"] == "en"
    assert profile["is_super_admin"] is False


@pytest.mark.asyncio
async def test_sign_up_rejects_duplicates_and_short_passwords(api: httpx.AsyncClient) -> None:
    await sign_up(api, "dup@example.com")
    r = await api.post(
        "/auth/v1/signup", json={"email": "DUP@example.com", "password": PASSWORD, "data": {}}
    )
    assert r.status_code == 400
    assert r.json() == {"error": "User already registered"}

    r = await api.post("/auth/v1/signup", json={"email": "short@example.com", "password": "123"})
    assert r.status_code == 400
    assert "at least 6" in r.json()["error"]


@pytest.mark.asyncio
async def test_password_grant(api: httpx.AsyncClient) -> None:
    await sign_up(api, "login@example.com")

    r = await api.post(
        "/auth/v1/token",
        params={"grant_type": "password"},
        json={"email": "login@example.com", "password": PASSWORD},
    )
    assert r.status_code == 200
    assert r.json()["user"]["email"] == "login@example.com"

    r = await api.post(
        "/auth/v1/token",
        params={"grant_type": "password"},
        json={"email": "login@example.com", "password": "wrong-password"},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid login credentials"}


@pytest.mark.asyncio
async def test_refresh_token_is_rotated(api: httpx.AsyncClient) -> None:
    session = await sign_up(api, "rotate@example.com")
    old = session["refresh_token"]

    r = await api.post(
        "/auth/v1/token", params={"grant_type": "refresh_token"}, json={"refresh_token": old}
    )
    assert r.status_code == 200
    assert r.json()["refresh_token"] != old

    r = await api.post(
        "/auth/v1/token", params={"grant_type": "refresh_token"}, json={"refresh_token": old}
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid Refresh Token"}


@pytest.mark.asyncio
async def test_logout_revokes_refresh_tokens(api: httpx.AsyncClient) -> None:
    session = await sign_up(api, "bye@example.com")

    r = await api.post("/auth/v1/logout", headers=bearer(session))
    assert r.status_code == 204

    r = await api.post(
        "/auth/v1/token",
        params={"grant_type": "refresh_token"},
        json={"refresh_token": session["refresh_token"]},
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_current_user_requires_bearer(api: httpx.AsyncClient) -> None:
    r = await api.get("/auth/v1/user")
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized"}

    r = await api.get("/auth/v1/user", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_update_user_merges_metadata_and_mirrors_full_name(api: httpx.AsyncClient) -> None:
    session = await sign_up(api, "meta@example.com", full_name="Old Name")

    r = await api.put(
        "/auth/v1/user",
        headers=bearer(session),
        json={"data": {"full_name": "New Name", "theme": "dark"}},
    )
    assert r.status_code == 200
    assert r.json()["user_metadata"] == {"full_name": "New Name", "theme": "dark"}

    r = await api.get("/auth/v1/user", headers=bearer(session))
    assert r.json()["user_metadata"]["theme"] == "dark"

    r = await api.get("/rest/v1/profiles", headers=bearer(session))
    assert r.json()[0]["full_name"] == "New Name"
