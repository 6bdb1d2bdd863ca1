"""System health endpoint — checks connectivity to all backing services."""

import logging
import time
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from redis.asyncio import Redis
from sqlalchemy import text

from app.api.deps import Session
from app.core.redis import get_redis

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/system", tags=["system"])


class ServiceHealth(BaseModel):
    status: str  # "ok" or "error"
    latency_ms: int | None = None


class HealthResponse(BaseModel):
    status: str
    database: ServiceHealth
    redis: ServiceHealth


@router.get("/health", response_model=HealthResponse)
async def system_health(
    session: Session,
    redis: Annotated[Redis, Depends(get_redis)],
) -> HealthResponse:
    """Check connectivity to the database and Redis.

    Failures are logged; the response only says which service is down.
    """
    db = await _check_database(session)
    rd = await _check_redis(redis)

    overall = "ok" if all(s.status == "ok" for s in (db, rd)) else "degraded"
    return HealthResponse(status=overall, database=db, redis=rd)


async def _check_database(session) -> ServiceHealth:
    try:
        t0 = time.monotonic()
        await session.execute(text("SELECT 1"))
        latency = int((time.monotonic() - t0) * 1000)
        return ServiceHealth(status="ok", latency_ms=latency)
    except Exception:
        logger.exception("Database health check failed")
        return ServiceHealth(status="error")


async def _check_redis(redis: Redis) -> ServiceHealth:
    try:
        t0 = time.monotonic()
        pong = await redis.ping()
        latency = int((time.monotonic() - t0) * 1000)
        return ServiceHealth(status="ok" if pong else "error", latency_ms=latency)
    except Exception:
        logger.exception("Redis health check failed")
        return ServiceHealth(status="error")
