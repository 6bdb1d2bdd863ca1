"""WebSocket venue feed: handshake, keepalive, connection stats."""

import asyncio
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from starlette.websockets import WebSocketDisconnect

from app.api.deps import AuthContext, get_auth_context
from app.core.database import get_session, get_session_factory
from app.core.events import VenueHub, get_publisher
from app.core.redis import get_redis
from app.main import app
from app.models.user import AccountRole


@pytest.fixture
def ws_client(redis, hub):
    """Sync client; the feed only touches the database to resolve a token."""
    app.dependency_overrides[get_redis] = lambda: redis
    app.dependency_overrides[get_publisher] = lambda: hub
    app.dependency_overrides[get_auth_context] = lambda: AuthContext(
        user_id=uuid.uuid4(), email="kj@acme.com", role=AccountRole.CUSTOMER_OWNER,
        jti="test", expires_at=0,
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_connected_frame_and_ping(ws_client: TestClient, hub: VenueHub):
    with ws_client.websocket_connect("/v1/ws?venue_id=venue-1") as ws:
        hello = ws.receive_json()
        assert hello["type"] == "connected"
        assert hello["venue_id"] == "venue-1"
        assert hello["authenticated"] is False
        assert hello["timestamp"]

        ws.send_text("not json")
        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"

        assert hub.stats()["total_connections"] == 1

    assert hub.stats()["total_connections"] == 0


def test_rejected_token_still_connects(ws_client: TestClient):
    with ws_client.websocket_connect("/v1/ws?venue_id=venue-2&token=garbage") as ws:
        assert ws.receive_json()["authenticated"] is False


def test_missing_venue_id_is_refused(ws_client: TestClient):
    with pytest.raises(WebSocketDisconnect) as exc:
        with ws_client.websocket_connect("/v1/ws") as ws:
            ws.receive_json()
    assert exc.value.code == 1008


def test_stats_endpoint(ws_client: TestClient):
    with ws_client.websocket_connect("/v1/ws?venue_id=venue-3") as ws:
        ws.receive_json()
        resp = ws_client.get("/v1/ws/stats")
        assert resp.status_code == 200
        assert resp.json() == {
            "total_connections": 1, "total_venues": 1, "venues": {"venue-3": 1},
        }


async def _create_tables(url: str) -> None:
    setup = create_async_engine(url)
    async with setup.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    await setup.dispose()


def test_authenticated_socket_releases_db_connection(tmp_path, redis, hub: VenueHub):
    url = f"sqlite+aiosqlite:///{tmp_path / 'feed.db'}"
    asyncio.run(_create_tables(url))
    engine = create_async_engine(url, pool_size=1, max_overflow=0)
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _session():
        async with factory() as sess:
            yield sess

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_session_factory] = lambda: factory
    app.dependency_overrides[get_redis] = lambda: redis
    app.dependency_overrides[get_publisher] = lambda: hub
    try:
        client = TestClient(app)
        resp = client.post("/v1/auth/signup", json={
            "email": "feed@acme.com", "password": "supersecret123", "account_type": "customer",
        })
        assert resp.status_code == 201, resp.text
        token = resp.json()["tokens"]["access_token"]

        with client.websocket_connect(f"/v1/ws?venue_id=v1&token={token}") as ws:
            assert ws.receive_json()["authenticated"] is True
            assert engine.pool.checkedout() == 0
            # A one-connection pool must still serve regular requests
            resp = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
            assert resp.status_code == 200
    finally:
        app.dependency_overrides.clear()
