"""Karaoke system CRUD and catalog-aware deletion."""

import pytest
from httpx import AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.core.errors import ConflictError
from app.models.song import SongInput
from app.models.system import System, SystemCreate
from app.models.user import AccountType, UserCreate
from app.services import accounts, catalog, systems


async def _customer(client: AsyncClient, email: str) -> dict:
    resp = await client.post("/v1/auth/signup", json={
        "email": email,
        "password": "supersecret123",
        "account_type": "customer",
    })
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['tokens']['access_token']}"}


@pytest.mark.asyncio
async def test_create_get_and_merge_configuration(client: AsyncClient):
    headers = await _customer(client, "systems@acme.com")

    resp = await client.post("/v1/customer/systems", json={
        "name": "Main KJ", "configuration": {"theme": "dark", "rotation": 3},
    }, headers=headers)
    assert resp.status_code == 201, resp.text
    system = resp.json()
    assert system["openkj_system_id"] == 1
    assert system["song_count"] == 0

    resp = await client.patch(
        f"/v1/customer/systems/{system['id']}",
        json={"configuration": {"rotation": 5, "autoplay": True}},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["configuration"] == {"theme": "dark", "rotation": 5, "autoplay": True}
    assert resp.json()["name"] == "Main KJ"


@pytest.mark.asyncio
async def test_list_by_name_with_counts_and_search(client: AsyncClient):
    headers = await _customer(client, "list-systems@acme.com")
    for name in ("Backroom", "Ahead", "Main"):
        await client.post("/v1/customer/systems", json={"name": name}, headers=headers)

    await client.post("/v1/customer/songdb/import", json={
        "openkj_system_id": 1,
        "songs": [{"artist": "Queen", "title": "Bohemian Rhapsody"}],
    }, headers=headers)

    resp = await client.get("/v1/customer/systems", headers=headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [s["name"] for s in data] == ["Ahead", "Backroom", "Main"]
    assert {s["name"]: s["song_count"] for s in data} == {"Ahead": 0, "Backroom": 1, "Main": 0}

    resp = await client.get("/v1/customer/systems", params={"search": "back"}, headers=headers)
    assert [s["name"] for s in resp.json()["data"]] == ["Backroom"]


@pytest.mark.asyncio
async def test_delete_refused_while_songs_exist(client: AsyncClient):
    headers = await _customer(client, "delete-systems@acme.com")
    system = (await client.post("/v1/customer/systems", json={"name": "KJ"}, headers=headers)).json()
    await client.post("/v1/customer/songdb/import", json={
        "openkj_system_id": system["openkj_system_id"],
        "songs": [{"artist": "ABBA", "title": "Waterloo"}],
    }, headers=headers)

    resp = await client.delete(f"/v1/customer/systems/{system['id']}", headers=headers)
    assert resp.status_code == 409

    resp = await client.delete(f"/v1/customer/systems/{system['id']}/songs", headers=headers)
    assert resp.json() == {"deleted_count": 1}

    resp = await client.delete(f"/v1/customer/systems/{system['id']}", headers=headers)
    assert resp.status_code == 204


@pytest.mark.asyncio
async def test_foreign_system_is_not_found(client: AsyncClient):
    a = await _customer(client, "sys-a@acme.com")
    b = await _customer(client, "sys-b@acme.com")
    system = (await client.post("/v1/customer/systems", json={"name": "Mine"}, headers=a)).json()

    resp = await client.get(f"/v1/customer/systems/{system['id']}", headers=b)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "System not found"


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(client: AsyncClient):
    headers = await _customer(client, "wildcards@acme.com")
    for name in ("100% Rock", "Backroom", "Main_Stage"):
        await client.post("/v1/customer/systems", json={"name": name}, headers=headers)

    resp = await client.get("/v1/customer/systems", params={"search": "%"}, headers=headers)
    assert [s["name"] for s in resp.json()["data"]] == ["100% Rock"]
    assert resp.json()["pagination"]["total"] == 1

    resp = await client.get("/v1/customer/systems", params={"search": "_"}, headers=headers)
    assert [s["name"] for s in resp.json()["data"]] == ["Main_Stage"]


@pytest.fixture
async def fk_session():
    """SQLite session with foreign keys enforced, as on PostgreSQL."""
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(eng.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    factory = sessionmaker(eng, class_=AsyncSession, expire_on_commit=False)
    async with factory() as sess:
        yield sess
    await eng.dispose()


@pytest.mark.asyncio
async def test_delete_keeps_songs_imported_after_the_count(fk_session: AsyncSession, monkeypatch):
    _, profiles, _ = await accounts.signup(fk_session, UserCreate(
        email="race@acme.com", password="supersecret123", account_type=AccountType.CUSTOMER,
    ))
    tenant_id = profiles.customer_profile_id
    system = await systems.create_system(fk_session, tenant_id, SystemCreate(name="KJ"))
    system_id = system.id
    await catalog.bulk_import_songs(
        fk_session, tenant_id, system.openkj_system_id,
        [SongInput(artist="ABBA", title="Waterloo")],
    )

    # The catalog looked empty when checked; a sync landed before the delete
    async def _stale_count(_session, _system_id):
        return 0

    monkeypatch.setattr(systems, "song_count", _stale_count)
    with pytest.raises(ConflictError):
        await systems.delete_system(fk_session, system_id, tenant_id)

    assert await fk_session.get(System, system_id) is not None
    monkeypatch.undo()
    assert await systems.song_count(fk_session, system_id) == 1
