"""Tests for registration, login and the current-user endpoint."""

import pytest


@pytest.mark.asyncio
async def test_register_creates_owner_membership_and_active_org(register_user):
    data = await register_user("carol@example.com", "Carol Co")

    org = data["organization"]
    user = data["user"]
    assert org["name"] == "Carol Co"
    assert org["org_id"].startswith("org_")
    assert user["current_org_id"] == org["org_id"]
    assert [(m["org_id"], m["role"]) for m in user["memberships"]] == [(org["org_id"], "Owner")]
    assert data["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_register_defaults_org_name(register_user):
    data = await register_user("dave@example.com")
    assert data["organization"]["name"] == "dave's Org"
    assert data["user"]["display_name"] == "dave"


@pytest.mark.asyncio
async def test_register_duplicate_email(client, alice):
    r = await client.post(
        "/api/v1/auth/register",
        json={"email": "alice@example.com", "password": "correct-horse"},
    )
    assert r.status_code == 400
    error = r.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"]["field"] == "email"


@pytest.mark.asyncio
async def test_register_duplicate_org_name(client, alice):
    r = await client.post(
        "/api/v1/auth/register",
        json={"email": "other@example.com", "password": "correct-horse", "organisation_name": "Alice Co"},
    )
    assert r.status_code == 400
    assert r.json()["error"]["details"]["field"] == "organisation_name"


@pytest.mark.asyncio
async def test_register_short_password_is_a_validation_error(client):
    r = await client.post("/api/v1/auth/register", json={"email": "x@example.com", "password": "short"})
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["details"]["field"] == "password"


@pytest.mark.asyncio
async def test_login(client, alice):
    r = await client.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": "correct-horse"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    me = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "alice@example.com"
    assert me.json()["last_login"] is not None


@pytest.mark.asyncio
async def test_login_unknown_email(client):
    r = await client.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": "whatever1"})
    assert r.status_code == 400
    assert r.json()["error"]["details"]["field"] == "email"


@pytest.mark.asyncio
async def test_login_wrong_password(client, alice):
    r = await client.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": "wrong-horse"})
    assert r.status_code == 401
    assert r.json()["error"]["details"]["field"] == "password"


@pytest.mark.asyncio
async def test_refresh_issues_new_access_token(client, alice):
    r = await client.post("/api/v1/auth/refresh", json={"refresh_token": alice["refresh_token"]})
    assert r.status_code == 200
    assert r.json()["access_token"]


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(client, alice):
    r = await client.post("/api/v1/auth/refresh", json={"refresh_token": alice["access_token"]})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_authentication(client):
    r = await client.get("/api/v1/users/me")
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "AUTHENTICATION_ERROR"


@pytest.mark.asyncio
async def test_invalid_token_is_rejected(client):
    r = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_logout_without_redis_is_accepted(client, alice):
    r = await client.post("/api/v1/auth/logout", json={"refresh_token": alice["refresh_token"]})
    assert r.status_code == 204
