"""End-to-end auth flow: signup → use token → refresh → logout."""

import pytest
from httpx import AsyncClient

from app.core.security import REFRESH_TOKEN, create_jwt, decode_jwt


async def _signup(client: AsyncClient, email: str, account_type: str = "customer", **extra):
    resp = await client.post("/v1/auth/signup", json={
        "email": email,
        "password": "supersecret123",
        "name": "Test User",
        "account_type": account_type,
        **extra,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_customer_signup_creates_tenant(client: AsyncClient):
    data = await _signup(client, "owner@acme.com", customer_data={
        "legal_business_name": "Acme Karaoke LLC",
    })
    assert data["user"]["role"] == "customer_owner"
    assert data["customer_profile_id"] is not None
    assert data["singer_profile_id"] is None

    headers = {"Authorization": f"Bearer {data['tokens']['access_token']}"}
    resp = await client.get("/v1/customer/profile", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["legal_business_name"] == "Acme Karaoke LLC"
    assert resp.json()["contact_email"] == "owner@acme.com"


@pytest.mark.asyncio
async def test_singer_signup_creates_singer_profile(client: AsyncClient):
    data = await _signup(client, "singer@example.com", "singer", singer_data={"nickname": "Ziggy"})
    assert data["user"]["role"] == "singer"
    assert data["singer_profile_id"] is not None
    assert data["customer_profile_id"] is None


@pytest.mark.asyncio
async def test_token_claims(client: AsyncClient):
    data = await _signup(client, "claims@acme.com")
    claims = decode_jwt(data["tokens"]["access_token"])
    assert claims["sub"] == data["user"]["id"]
    assert claims["email"] == "claims@acme.com"
    assert claims["type"] == "access"
    assert {"jti", "iat", "exp", "iss", "aud"} <= claims.keys()
    assert data["tokens"]["expires_in"] == 15 * 60


@pytest.mark.asyncio
async def test_duplicate_email_rejected(client: AsyncClient):
    await _signup(client, "dupe@acme.com")
    resp = await client.post("/v1/auth/signup", json={
        "email": "DUPE@acme.com",
        "password": "supersecret123",
        "account_type": "singer",
    })
    assert resp.status_code == 409
    body = resp.json()
    assert body["type"] == "conflict"
    assert body["errors"][0]["field"] == "email"


@pytest.mark.asyncio
async def test_weak_password_reports_every_rule(client: AsyncClient):
    resp = await client.post("/v1/auth/signup", json={
        "email": "weak@acme.com",
        "password": "abc",
        "account_type": "customer",
    })
    assert resp.status_code == 400
    messages = [e["message"] for e in resp.json()["errors"]]
    assert "Password must be at least 8 characters" in messages
    assert "Password must contain a digit" in messages


@pytest.mark.asyncio
async def test_signin_same_error_for_unknown_email_and_wrong_password(client: AsyncClient):
    await _signup(client, "known@acme.com")

    wrong = await client.post("/v1/auth/signin", json={
        "email": "known@acme.com", "password": "wrongpass123",
    })
    unknown = await client.post("/v1/auth/signin", json={
        "email": "nobody@acme.com", "password": "wrongpass123",
    })
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["detail"] == unknown.json()["detail"]


@pytest.mark.asyncio
async def test_signin_returns_profiles(client: AsyncClient):
    await _signup(client, "signin@acme.com")
    resp = await client.post("/v1/auth/signin", json={
        "email": "signin@acme.com", "password": "supersecret123",
    })
    assert resp.status_code == 200
    assert resp.json()["customer_profile_id"] is not None


@pytest.mark.asyncio
async def test_refresh_rotates_and_old_token_stops_working(client: AsyncClient):
    data = await _signup(client, "rotate@acme.com")
    old_refresh = data["tokens"]["refresh_token"]

    resp = await client.post("/v1/auth/refresh", json={"refresh_token": old_refresh})
    assert resp.status_code == 200
    new_tokens = resp.json()
    assert new_tokens["refresh_token"] != old_refresh

    resp = await client.post("/v1/auth/refresh", json={"refresh_token": old_refresh})
    assert resp.status_code == 401

    resp = await client.post(
        "/v1/auth/refresh", json={"refresh_token": new_tokens["refresh_token"]},
    )
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_access_token_cannot_refresh(client: AsyncClient):
    data = await _signup(client, "wrongtype@acme.com")
    resp = await client.post(
        "/v1/auth/refresh", json={"refresh_token": data["tokens"]["access_token"]},
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token_cannot_authenticate(client: AsyncClient):
    data = await _signup(client, "refresh-as-access@acme.com")
    headers = {"Authorization": f"Bearer {data['tokens']['refresh_token']}"}
    resp = await client.get("/v1/auth/me", headers=headers)
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_logout_revokes_access_and_refresh(client: AsyncClient, redis):
    data = await _signup(client, "logout@acme.com")
    headers = {"Authorization": f"Bearer {data['tokens']['access_token']}"}

    resp = await client.get("/v1/auth/me", headers=headers)
    assert resp.status_code == 200

    resp = await client.post(
        "/v1/auth/logout",
        json={"refresh_token": data["tokens"]["refresh_token"]},
        headers=headers,
    )
    assert resp.status_code == 204

    resp = await client.get("/v1/auth/me", headers=headers)
    assert resp.status_code == 401

    resp = await client.post(
        "/v1/auth/refresh", json={"refresh_token": data["tokens"]["refresh_token"]},
    )
    assert resp.status_code == 401

    jti = decode_jwt(data["tokens"]["access_token"])["jti"]
    assert 0 < redis.ttls[f"revoked:{jti}"] <= 15 * 60


@pytest.mark.asyncio
async def test_me_requires_token(client: AsyncClient):
    resp = await client.get("/v1/auth/me")
    assert resp.status_code == 401
    assert resp.json()["type"] == "authentication_required"


@pytest.mark.asyncio
async def test_garbage_token_rejected(client: AsyncClient):
    resp = await client.get(
        "/v1/auth/me", headers={"Authorization": "Bearer totally-fake-token"},
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_token_for_unknown_user_rejected(client: AsyncClient):
    token = create_jwt("00000000-0000-0000-0000-000000000000", "ghost@acme.com")
    resp = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_forged_refresh_for_unknown_user_rejected(client: AsyncClient):
    token = create_jwt("00000000-0000-0000-0000-000000000000", "ghost@acme.com", REFRESH_TOKEN)
    resp = await client.post("/v1/auth/refresh", json={"refresh_token": token})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_singer_cannot_use_customer_routes(client: AsyncClient):
    data = await _signup(client, "nosy-singer@example.com", "singer")
    headers = {"Authorization": f"Bearer {data['tokens']['access_token']}"}
    resp = await client.get("/v1/customer/venues", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Customer profile not found"
