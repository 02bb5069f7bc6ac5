"""Upload rate limiter and DB readiness check."""
import pytest
from httpx import AsyncClient

from scanvault import main
from scanvault.core.rate_limit import SlidingWindowLimiter
from scanvault.db.session import ping


def test_limiter_blocks_at_limit_per_key():
    limiter = SlidingWindowLimiter(window_seconds=60)
    assert limiter.hit("u1", 2, now=0.0) is False
    assert limiter.hit("u1", 2, now=1.0) is False
    assert limiter.hit("u1", 2, now=2.0) is True
    assert limiter.hit("u2", 2, now=2.0) is False


def test_limiter_window_slides():
    limiter = SlidingWindowLimiter(window_seconds=60)
    limiter.hit("u1", 1, now=0.0)
    assert limiter.hit("u1", 1, now=30.0) is True
    assert limiter.hit("u1", 1, now=60.5) is False


def test_limiter_drops_idle_keys():
    limiter = SlidingWindowLimiter(window_seconds=60)
    for i in range(100):
        limiter.hit(f"user-{i}", 5, now=float(i) / 10)
    assert len(limiter) == 100
    limiter.hit("late", 5, now=500.0)
    assert len(limiter) == 1
    limiter.clear()
    assert len(limiter) == 0


@pytest.mark.asyncio
async def test_ping_runs_against_engine(engine):
    await ping(engine)


@pytest.mark.asyncio
async def test_readyz_reports_unreachable_database(client: AsyncClient, monkeypatch):
    async def unreachable(bind=None):
        raise OSError("connection refused")

    monkeypatch.setattr(main, "ping", unreachable)
    r = await client.get("/readyz")
    assert r.status_code == 503
    assert r.json() == {"status": "unavailable", "detail": "database unreachable"}


@pytest.mark.asyncio
async def test_readyz_ok(client: AsyncClient, engine, monkeypatch):
    monkeypatch.setattr(main, "ping", lambda bind=None: ping(engine))
    r = await client.get("/readyz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
