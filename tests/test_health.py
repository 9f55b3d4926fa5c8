"""Health endpoint tests.

Learn: The dependency probes are swapped out with monkeypatch, so the
three statuses can be checked without a live Postgres or Redis.
"""

import pytest

from authgate import __version__
from authgate.api import health


def _probes(monkeypatch, postgres: str, redis: str):
    async def check_postgres():
        return postgres

    async def check_redis():
        return redis

    monkeypatch.setattr(health, "_check_postgres", check_postgres)
    monkeypatch.setattr(health, "_check_redis", check_redis)


@pytest.mark.asyncio
async def test_healthy(client, monkeypatch):
    _probes(monkeypatch, "ok", "ok")
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.json() == {
        "status": "healthy",
        "version": __version__,
        "server": "ok",
        "postgres": "ok",
        "redis": "ok",
    }


@pytest.mark.asyncio
async def test_degraded_without_redis(client, monkeypatch):
    _probes(monkeypatch, "ok", "error: connection refused")
    r = await client.get("/api/v1/health")
    assert r.json()["status"] == "degraded"


@pytest.mark.asyncio
async def test_unhealthy_without_postgres(client, monkeypatch):
    _probes(monkeypatch, "error: connection refused", "ok")
    r = await client.get("/api/v1/health")
    assert r.json()["status"] == "unhealthy"
