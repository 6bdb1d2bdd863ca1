"""Password reset: token issue, one-time use, expiry and session invalidation."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.base import utcnow
from app.models.verification_token import VerificationToken
from app.services import accounts


async def _signup(client: AsyncClient, email: str) -> dict:
    resp = await client.post("/v1/auth/signup", json={
        "email": email,
        "password": "supersecret123",
        "account_type": "singer",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["tokens"]


@pytest.mark.asyncio
async def test_forgot_password_answers_alike(client: AsyncClient, session: AsyncSession):
    await _signup(client, "known@example.com")

    known = await client.post("/v1/auth/forgot-password", json={"email": "Known@example.com"})
    unknown = await client.post("/v1/auth/forgot-password", json={"email": "nobody@example.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json() == {
        "message": "If the email exists, a password reset link has been sent",
    }

    rows = (await session.execute(select(VerificationToken))).scalars().all()
    assert [r.identifier for r in rows] == ["reset:known@example.com"]
    # Only the digest is stored
    assert len(rows[0].token_hash) == 64


@pytest.mark.asyncio
async def test_reset_replaces_password_and_ends_sessions(client: AsyncClient, session: AsyncSession):
    old = await _signup(client, "reset@example.com")
    token = await accounts.forgot_password(session, "reset@example.com")
    assert token

    resp = await client.post("/v1/auth/reset-password", json={
        "token": token, "new_password": "brandnew456",
    })
    assert resp.status_code == 200, resp.text
    assert resp.json() == {"message": "Password reset successfully"}

    resp = await client.get(
        "/v1/auth/me", headers={"Authorization": f"Bearer {old['access_token']}"},
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token has been revoked"

    resp = await client.post("/v1/auth/refresh", json={"refresh_token": old["refresh_token"]})
    assert resp.status_code == 401

    resp = await client.post("/v1/auth/signin", json={
        "email": "reset@example.com", "password": "supersecret123",
    })
    assert resp.status_code == 401

    resp = await client.post("/v1/auth/signin", json={
        "email": "reset@example.com", "password": "brandnew456",
    })
    assert resp.status_code == 200
    fresh = resp.json()["tokens"]["access_token"]
    resp = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {fresh}"})
    assert resp.status_code == 200

    # The token is spent
    resp = await client.post("/v1/auth/reset-password", json={
        "token": token, "new_password": "another789",
    })
    assert resp.status_code == 400
    assert resp.json()["errors"] == [
        {"field": "token", "message": "Invalid or expired reset token"},
    ]


@pytest.mark.asyncio
async def test_weak_password_keeps_token(client: AsyncClient, session: AsyncSession):
    await _signup(client, "weak@example.com")
    token = await accounts.forgot_password(session, "weak@example.com")

    resp = await client.post("/v1/auth/reset-password", json={"token": token, "new_password": "short"})
    assert resp.status_code == 400
    fields = {e["field"] for e in resp.json()["errors"]}
    assert fields == {"new_password"}

    resp = await client.post("/v1/auth/reset-password", json={
        "token": token, "new_password": "longenough1",
    })
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_expired_token_rejected(client: AsyncClient, session: AsyncSession):
    await _signup(client, "late@example.com")
    token = await accounts.forgot_password(session, "late@example.com")

    record = (await session.execute(select(VerificationToken))).scalar_one()
    record.expires_at = utcnow() - timedelta(minutes=1)
    session.add(record)
    await session.commit()

    resp = await client.post("/v1/auth/reset-password", json={
        "token": token, "new_password": "longenough1",
    })
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_new_request_replaces_outstanding_token(client: AsyncClient, session: AsyncSession):
    await _signup(client, "twice@example.com")
    first = await accounts.forgot_password(session, "twice@example.com")
    second = await accounts.forgot_password(session, "twice@example.com")

    resp = await client.post("/v1/auth/reset-password", json={
        "token": first, "new_password": "longenough1",
    })
    assert resp.status_code == 400

    resp = await client.post("/v1/auth/reset-password", json={
        "token": second, "new_password": "longenough1",
    })
    assert resp.status_code == 200
