"""Token denylist backed by Redis keys that expire with the token."""

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class TokenDenylist:
    """Revoked JWT ids, each stored only for the token's remaining lifetime."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    @staticmethod
    def _key(jti: str) -> str:
        return f"revoked:{jti}"

    async def revoke(self, jti: str, ttl_seconds: int) -> None:
        """Deny ``jti`` for ``ttl_seconds``. An already expired token needs no entry."""
        if ttl_seconds <= 0:
            return
        await self._redis.setex(self._key(jti), ttl_seconds, "1")
        logger.info("Token %s revoked for %ss", jti, ttl_seconds)

    async def is_revoked(self, jti: str) -> bool:
        # Fails open when Redis is unreachable.
        try:
            return await self._redis.get(self._key(jti)) == "1"
        except RedisError:
            logger.exception("Revocation check failed for token %s", jti)
            return False
