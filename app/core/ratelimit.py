"""Fixed-window request rate limiting in Redis."""

import logging
from typing import Annotated

from fastapi import Depends, Request
from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.core.config import get_settings
from app.core.errors import RateLimitError
from app.core.redis import get_redis

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60


def _client_key(request: Request) -> str:
    """Bearer credential fingerprint when present, else the client address."""
    auth = request.headers.get("authorization", "")
    api_key = request.headers.get("x-api-key", "")
    credential = api_key or auth.removeprefix("Bearer ").strip()
    if credential:
        # Keyed on the credential tail, never the full secret.
        return f"ratelimit:cred:{credential[-16:]}"
    host = request.client.host if request.client else "unknown"
    return f"ratelimit:ip:{host}"


async def hit(redis: Redis, key: str, limit: int) -> None:
    """Count one request against ``key``; raise once ``limit`` is exceeded."""
    try:
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, WINDOW_SECONDS)
        if count <= limit:
            return
        ttl = await redis.ttl(key)
    except RedisError:
        logger.warning("Rate limit check skipped, Redis unavailable")
        return
    raise RateLimitError(retry_after=ttl if ttl and ttl > 0 else WINDOW_SECONDS)


async def enforce_rate_limit(
    request: Request,
    redis: Annotated[Redis, Depends(get_redis)],
) -> None:
    """Router-level dependency applied to every HTTP route."""
    await hit(redis, _client_key(request), get_settings().rate_limit_per_minute)
