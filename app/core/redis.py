"""Shared Redis connection and the helpers built on it.

Redis backs three optional features: request rate limiting, access
token revocation and the document read cache. When Redis is down at
startup the client stays ``None`` and each feature degrades on its own.
"""

import json
from typing import Any

import redis.asyncio as redis
from redis.asyncio import Redis

from app.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

_redis_client: Redis | None = None


async def init_redis() -> Redis:
    """Connect once at startup. Raises if the server does not answer PING."""
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    client = redis.from_url(
        str(settings.redis_url),
        encoding="utf-8",
        decode_responses=True,
        max_connections=settings.redis_max_connections,
    )
    try:
        await client.ping()
    except Exception as e:
        logger.error("redis_connection_failed", error=str(e))
        await client.aclose()
        raise

    _redis_client = client
    logger.info("redis_connected", url=str(settings.redis_url).split("@")[-1])
    return _redis_client


async def close_redis() -> None:
    global _redis_client

    if _redis_client is None:
        return
    await _redis_client.aclose()
    _redis_client = None
    logger.info("redis_disconnected")


def get_redis_client() -> Redis | None:
    return _redis_client


async def check_redis_connection() -> bool:
    if _redis_client is None:
        return False
    try:
        return bool(await _redis_client.ping())
    except Exception as e:
        logger.warning("redis_unreachable", error=str(e))
        return False


class RateLimiter:
    """Fixed-window counter: the first hit in a window starts its TTL."""

    KEY_PREFIX = "rl:"

    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    async def is_allowed(
        self,
        key: str,
        max_requests: int,
        window_seconds: int,
    ) -> tuple[bool, int, int]:
        """Count one hit on ``key``.

        Returns (allowed, remaining, seconds until the window resets).
        """
        full_key = f"{self.KEY_PREFIX}{key}"

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.incr(full_key)
            pipe.expire(full_key, window_seconds, nx=True)
            pipe.ttl(full_key)
            current, _, ttl = await pipe.execute()

        if ttl < 0:
            ttl = window_seconds
        return current <= max_requests, max(0, max_requests - current), ttl


class TokenBlacklist:
    """Revoked JWT ids, each kept until its token would have expired."""

    KEY_PREFIX = "bl:"

    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    async def add(self, jti: str, expires_in: int) -> None:
        await self.redis.setex(f"{self.KEY_PREFIX}{jti}", max(expires_in, 1), "1")

    async def is_blacklisted(self, jti: str) -> bool:
        return await self.redis.exists(f"{self.KEY_PREFIX}{jti}") > 0


async def get_token_blacklist() -> TokenBlacklist | None:
    if _redis_client is None:
        return None
    return TokenBlacklist(_redis_client)


class CacheClient:
    """JSON values under the ``cache:`` namespace."""

    KEY_PREFIX = "cache:"

    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    async def get_json(self, key: str) -> Any | None:
        raw = await self.redis.get(f"{self.KEY_PREFIX}{key}")
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("cache_entry_corrupt", key=key)
            await self.delete(key)
            return None

    async def set_json(self, key: str, value: Any, ttl: int) -> None:
        payload = json.dumps(value, default=str, ensure_ascii=False)
        await self.redis.setex(f"{self.KEY_PREFIX}{key}", ttl, payload)

    async def delete(self, key: str) -> None:
        await self.redis.delete(f"{self.KEY_PREFIX}{key}")

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern; returns how many went."""
        keys = [key async for key in self.redis.scan_iter(match=f"{self.KEY_PREFIX}{pattern}")]
        if not keys:
            return 0
        return await self.redis.delete(*keys)
