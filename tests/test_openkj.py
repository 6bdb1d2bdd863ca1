"""OpenKJ sync endpoints: API key auth, legacy ids, catalog sync, request queue."""

import pytest
from httpx import AsyncClient

BASE = "/v1/openkj"


async def _setup(client: AsyncClient, email: str) -> dict:
    """Customer with one venue, one system and an API key."""
    resp = await client.post("/v1/auth/signup", json={
        "email": email,
        "password": "supersecret123",
        "account_type": "customer",
    })
    assert resp.status_code == 201, resp.text
    headers = {"Authorization": f"Bearer {resp.json()['tokens']['access_token']}"}
    slug = email.split("@")[0]
    venue = (await client.post("/v1/customer/venues", json={
        "name": "The Stage", "url_name": slug, "city": "Austin", "state": "TX",
    }, headers=headers)).json()
    system = (await client.post("/v1/customer/systems", json={"name": "KJ"}, headers=headers)).json()
    key = (await client.post("/v1/customer/api-keys", json={}, headers=headers)).json()
    return {
        "headers": headers,
        "venue": venue,
        "system": system,
        "key_id": key["id"],
        "api": {"X-API-Key": key["api_key"]},
    }


@pytest.mark.asyncio
async def test_health_needs_no_key(client: AsyncClient):
    resp = await client.get(f"{BASE}/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok", "version": "1.0.0", "service": "OpenKJ Compatibility Layer",
    }


@pytest.mark.asyncio
async def test_missing_key(client: AsyncClient):
    resp = await client.get(f"{BASE}/venues/1")
    assert resp.status_code == 401
    assert resp.json() == {
        "error": "API key required",
        "message": "Provide an API key in the X-API-Key header or Authorization header",
    }


@pytest.mark.asyncio
async def test_invalid_and_revoked_keys(client: AsyncClient):
    ctx = await _setup(client, "revoked-kj@acme.com")

    resp = await client.get(f"{BASE}/venues/1", headers={"X-API-Key": "sk_" + "x" * 43})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid API key"

    await client.delete(f"/v1/customer/api-keys/{ctx['key_id']}", headers=ctx["headers"])
    resp = await client.get(f"{BASE}/venues/1", headers=ctx["api"])
    assert resp.status_code == 401
    assert resp.json() == {
        "error": "Invalid API key",
        "message": "The provided API key is invalid or has been revoked",
    }


@pytest.mark.asyncio
async def test_session_token_is_not_an_api_key(client: AsyncClient):
    ctx = await _setup(client, "token-kj@acme.com")
    resp = await client.get(f"{BASE}/venues/1", headers=ctx["headers"])
    assert resp.status_code == 401
    assert resp.json()["error"] == "API key required"


@pytest.mark.asyncio
async def test_venue_snapshot_with_either_header(client: AsyncClient):
    ctx = await _setup(client, "snapshot-kj@acme.com")
    expected = {
        "venue_id": 1,
        "name": "The Stage",
        "url_name": "snapshot-kj",
        "address": None,
        "city": "Austin",
        "state": "TX",
        "postal_code": None,
        "accepting_requests": True,
    }

    resp = await client.get(f"{BASE}/venues/1", headers=ctx["api"])
    assert resp.status_code == 200
    assert resp.json() == expected

    bearer = {"Authorization": f"Bearer {ctx['api']['X-API-Key']}"}
    resp = await client.get(f"{BASE}/venues/1", headers=bearer)
    assert resp.json() == expected


@pytest.mark.asyncio
async def test_other_tenants_ids_are_not_visible(client: AsyncClient):
    await _setup(client, "tenant-one@acme.com")
    other = await _setup(client, "tenant-two@acme.com")

    # Legacy id 1 in the other tenant is its own venue
    resp = await client.get(f"{BASE}/venues/1", headers=other["api"])
    assert resp.json()["url_name"] == "tenant-two"

    resp = await client.get(f"{BASE}/venues/99", headers=other["api"])
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found", "message": "Venue not found"}


@pytest.mark.asyncio
async def test_sync_and_list_songs(client: AsyncClient):
    ctx = await _setup(client, "sync-kj@acme.com")
    system_id = ctx["system"]["openkj_system_id"]
    songs = [
        {"artist": "Queen", "title": "Under Pressure"},
        {"artist": "ABBA", "title": "Waterloo"},
        {"artist": "abba", "title": "waterloo!"},
        {"artist": "", "title": "Untitled"},
    ]

    resp = await client.post(
        f"{BASE}/systems/{system_id}/songs/sync", json={"songs": songs}, headers=ctx["api"],
    )
    assert resp.status_code == 200, resp.text
    assert resp.json() == {
        "system_id": system_id, "total_submitted": 4, "imported": 2, "skipped": 1,
    }

    resp = await client.get(
        f"{BASE}/systems/{system_id}/songs", params={"limit": 1}, headers=ctx["api"],
    )
    body = resp.json()
    assert body["system_id"] == system_id
    assert body["total"] == 2
    assert len(body["songs"]) == 1
    first = body["songs"][0]
    assert isinstance(first["song_id"], str)
    assert first["combined"] == "ABBA - Waterloo"


@pytest.mark.asyncio
async def test_sync_rejects_empty_batch(client: AsyncClient):
    ctx = await _setup(client, "empty-kj@acme.com")
    resp = await client.post(
        f"{BASE}/systems/{ctx['system']['openkj_system_id']}/songs/sync",
        json={"songs": []},
        headers=ctx["api"],
    )
    assert resp.status_code == 400
    assert resp.json() == {
        "error": "Validation Error",
        "message": "songs array is required and must not be empty",
    }


@pytest.mark.asyncio
async def test_song_list_limit_bounds(client: AsyncClient):
    ctx = await _setup(client, "bounds-kj@acme.com")
    system_id = ctx["system"]["openkj_system_id"]
    resp = await client.get(
        f"{BASE}/systems/{system_id}/songs", params={"limit": 10_001}, headers=ctx["api"],
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Validation Error"


@pytest.mark.asyncio
async def test_request_queue_and_process(client: AsyncClient):
    ctx = await _setup(client, "queue-kj@acme.com")
    for title in ("First", "Second"):
        await client.post(
            "/v1/public/venues/queue-kj/requests",
            json={"artist": "Band", "title": title, "notes": "table 4"},
        )

    resp = await client.get(f"{BASE}/venues/1/requests", headers=ctx["api"])
    assert resp.status_code == 200
    body = resp.json()
    assert body["venue_id"] == 1
    assert body["total"] == 2
    assert [r["title"] for r in body["requests"]] == ["First", "Second"]
    first = body["requests"][0]
    assert isinstance(first["request_id"], str)
    assert first["singer_name"] == "Guest"
    assert first["notes"] == "table 4"

    resp = await client.post(
        f"{BASE}/venues/1/requests/{first['request_id']}/process", headers=ctx["api"],
    )
    assert resp.status_code == 200
    processed = resp.json()
    assert processed["processed"] is True
    assert processed["processed_at"] is not None

    # Processing again keeps the original stamp
    resp = await client.post(
        f"{BASE}/venues/1/requests/{first['request_id']}/process", headers=ctx["api"],
    )
    assert resp.json()["processed_at"] == processed["processed_at"]

    resp = await client.get(f"{BASE}/venues/1/requests", headers=ctx["api"])
    assert [r["title"] for r in resp.json()["requests"]] == ["Second"]
    resp = await client.get(
        f"{BASE}/venues/1/requests", params={"processed": "true"}, headers=ctx["api"],
    )
    assert [r["title"] for r in resp.json()["requests"]] == ["First"]


@pytest.mark.asyncio
async def test_process_unknown_request(client: AsyncClient):
    ctx = await _setup(client, "missing-kj@acme.com")
    resp = await client.post(f"{BASE}/venues/1/requests/12345/process", headers=ctx["api"])
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found", "message": "Request not found"}
