"""In-memory rate limiter tests."""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from conftest import FakeClock

from app.services.rate_limiter import InMemoryRateLimiter


def test_allows_max_then_denies_until_window_passes():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(3, 3600, clock=clock)

    assert [limiter.check("u1").allowed for _ in range(3)] == [True, True, True]
    denied = limiter.check("u1")
    assert not denied.allowed
    assert denied.retry_after == 3600

    clock.advance(3600)
    assert limiter.check("u1").allowed


def test_remaining_counts_down():
    limiter = InMemoryRateLimiter(3, 60, clock=FakeClock())
    assert [limiter.check("k").remaining for _ in range(4)] == [2, 1, 0, 0]


def test_denial_does_not_extend_window():
    clock = FakeClock(0)
    limiter = InMemoryRateLimiter(2, 100, clock=clock)
    limiter.check("u1")
    limiter.check("u1")

    for _ in range(10):
        clock.advance(9)
        assert not limiter.check("u1").allowed

    assert limiter.check("u1").retry_after == 10
    clock.advance(10)
    assert limiter.check("u1").allowed


def test_keys_are_independent():
    limiter = InMemoryRateLimiter(1, 60, clock=FakeClock())
    assert limiter.check("a").allowed
    assert not limiter.check("a").allowed
    assert limiter.check("b").allowed


def test_prune_drops_only_expired_windows():
    clock = FakeClock(0)
    limiter = InMemoryRateLimiter(5, 100, clock=clock)
    limiter.check("old")
    clock.advance(50)
    limiter.check("new")
    clock.advance(60)

    assert limiter.prune() == 1
    assert len(limiter) == 1


def test_prune_threshold_bounds_memory():
    clock = FakeClock(0)
    limiter = InMemoryRateLimiter(5, 10, clock=clock, prune_threshold=3)
    for key in ("a", "b", "c"):
        limiter.check(key)
    clock.advance(10)
    limiter.check("d")
    assert len(limiter) == 1


def test_reset_clears_state():
    limiter = InMemoryRateLimiter(1, 60, clock=FakeClock())
    limiter.check("a")
    limiter.reset()
    assert limiter.check("a").allowed


@pytest.mark.parametrize("max_requests, window", [(0, 60), (3, 0)])
def test_rejects_invalid_config(max_requests, window):
    with pytest.raises(ValueError):
        InMemoryRateLimiter(max_requests, window)


def test_concurrent_threads_never_exceed_limit():
    limiter = InMemoryRateLimiter(3, 3600)
    barrier = threading.Barrier(32)

    def hit():
        barrier.wait()
        return limiter.check("u1").allowed

    with ThreadPoolExecutor(max_workers=32) as pool:
        results = list(pool.map(lambda _: hit(), range(32)))

    assert results.count(True) == 3
    assert results.count(False) == 29


@pytest.mark.asyncio
async def test_concurrent_tasks_never_exceed_limit():
    limiter = InMemoryRateLimiter(20, 3600)

    async def hit():
        await asyncio.sleep(0)
        return limiter.check("key-hash").allowed

    results = await asyncio.gather(*(hit() for _ in range(50)))
    assert results.count(True) == 20
