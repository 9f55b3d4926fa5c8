"""Redis client for the rate limit counters.

Learn: Redis is optional. If it isn't reachable at startup the client
stays unset, get_redis() raises, and every caller treats that as
"no rate limiting" instead of an error.
"""

from typing import Optional

import redis.asyncio as aioredis

from authgate.config import settings

_redis: Optional[aioredis.Redis] = None


async def init_redis(url: Optional[str] = None) -> aioredis.Redis:
    """Connect and ping. Leaves the client unset if the ping fails."""
    global _redis
    client = aioredis.from_url(
        url or settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=2,
    )
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise
    _redis = client
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Return the shared client. Raises RuntimeError when Redis is off."""
    if _redis is None:
        raise RuntimeError("Redis is not connected")
    return _redis
