"""Health check endpoint.

Learn: Postgres is required, Redis is optional (rate limiting only), so
a missing Redis reports "degraded" rather than failing the check.
"""

from fastapi import APIRouter
from sqlalchemy import text

from authgate import __version__
from authgate.db.engine import engine

router = APIRouter()


async def _check_postgres() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return "ok"
    except Exception as e:
        return f"error: {e}"


async def _check_redis() -> str:
    try:
        from authgate.redis_pool import get_redis

        await get_redis().ping()
        return "ok"
    except Exception as e:
        return f"error: {e}"


@router.get("/health")
async def health_check():
    """Check server health and dependency connectivity."""
    checks = {
        "server": "ok",
        "postgres": await _check_postgres(),
        "redis": await _check_redis(),
    }
    if checks["postgres"] != "ok":
        status = "unhealthy"
    elif checks["redis"] != "ok":
        status = "degraded"
    else:
        status = "healthy"
    return {"status": status, "version": __version__, **checks}
