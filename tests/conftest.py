"""Shared test fixtures: in-memory SQLite, a Redis double and the test client."""

import os
from collections.abc import AsyncGenerator

# Settings are read once at import time
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-the-suite")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

# Import all models so metadata is populated
import app.models  # noqa: F401
from app.core.database import get_session
from app.core.events import VenueHub, get_publisher
from app.core.redis import get_redis
from app.main import app


class InMemoryRedis:
    """The handful of Redis commands the app uses, kept in a dict."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def setex(self, key: str, seconds: int, value) -> bool:
        self.data[key] = str(value)
        self.ttls[key] = seconds
        return True

    async def incr(self, key: str) -> int:
        value = int(self.data.get(key, "0")) + 1
        self.data[key] = str(value)
        return value

    async def expire(self, key: str, seconds: int) -> bool:
        self.ttls[key] = seconds
        return True

    async def ttl(self, key: str) -> int:
        return self.ttls.get(key, -1)

    async def ping(self) -> bool:
        return True


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
def redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def hub() -> VenueHub:
    return VenueHub()


@pytest.fixture
async def client(session, redis, hub) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with DB, Redis and hub overrides."""

    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_redis] = lambda: redis
    app.dependency_overrides[get_publisher] = lambda: hub

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


class RecordingSink:
    """Collects every message published to it."""

    def __init__(self) -> None:
        self.messages: list[dict] = []

    async def send_json(self, data) -> None:
        self.messages.append(data)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
