"""Rate limiting — Redis-based fixed window per IP per minute.

Learn: Each IP gets a counter key like "authgate:rl:{ip}:{bucket}:{minute}".
Two buckets:
- "api": every HTTP request, enforced by RateLimitMiddleware (HTTP 429)
- "auth": register/login attempts, enforced inside those resolvers
  (RateLimitedError). GraphQL sends every operation to the same path,
  so the middleware can't tell a login from a profile update.

Gracefully skips rate limiting if Redis is unavailable (e.g., in tests).
"""

import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import HTTPConnection, Request
from starlette.responses import JSONResponse, Response

from authgate.config import settings
from authgate.errors import RateLimitedError


def _client_ip(conn: Optional[HTTPConnection]) -> str:
    if conn is None or conn.client is None:
        return "unknown"
    return conn.client.host


async def _hit(redis, client_ip: str, bucket: str) -> int:
    """Count one request in the current window. Returns the new count."""
    window = int(time.time() // 60)
    key = f"authgate:rl:{client_ip}:{bucket}:{window}"
    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, 120)  # 2-min TTL for safety
    return count


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting per IP per minute."""

    def __init__(self, app, default_rpm: int = 100):
        super().__init__(app)
        self.default_rpm = default_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        # No Redis, no rate limiting
        try:
            from authgate.redis_pool import get_redis

            redis = get_redis()
        except Exception:
            return await call_next(request)

        rpm = self.default_rpm
        try:
            count = await _hit(redis, _client_ip(request), "api")
        except Exception:
            # Redis error, let the request through
            return await call_next(request)

        if count > rpm:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response


async def enforce_auth_rate_limit(
    conn: Optional[HTTPConnection], rpm: Optional[int] = None
) -> None:
    """Stricter per-IP budget for register/login. Raises RateLimitedError."""
    try:
        from authgate.redis_pool import get_redis

        redis = get_redis()
    except Exception:
        return

    try:
        count = await _hit(redis, _client_ip(conn), "auth")
    except Exception:
        return

    if count > (rpm or settings.rate_limit_auth_rpm):
        raise RateLimitedError()
