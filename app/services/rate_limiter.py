"""Fixed-window rate limiters for bot key reveals and webhook submissions.

Counters live in process memory and reset on restart or redeploy. Anything
that needs limits to hold across several server instances should implement
``RateLimiter`` on top of a shared counter store instead.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int  # seconds until the window resets, 0 when allowed


class RateLimiter(Protocol):
    def check(self, key: str) -> RateLimitDecision: ...


@dataclass
class _Window:
    count: int
    reset_at: float


class InMemoryRateLimiter:
    """Allow at most ``max_requests`` per ``window_seconds`` for each key.

    The read-modify-write on a counter happens under a lock, so concurrent
    checks for the same key can never both slip under the limit. A denied
    check leaves the counter and its window untouched.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        name: str = "rate-limit",
        clock: Callable[[], float] = time.monotonic,
        prune_threshold: int = 10_000,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.name = name
        self._clock = clock
        self._prune_threshold = prune_threshold
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def check(self, key: str) -> RateLimitDecision:
        with self._lock:
            now = self._clock()
            if len(self._windows) >= self._prune_threshold:
                self._prune_expired(now)
            window = self._windows.get(key)

            if window is None or now >= window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
                return RateLimitDecision(True, self.max_requests - 1, 0)

            if window.count < self.max_requests:
                window.count += 1
                return RateLimitDecision(True, self.max_requests - window.count, 0)

            retry_after = math.ceil(window.reset_at - now)

        logger.info("%s: limit of %d reached, retry in %ds", self.name, self.max_requests, retry_after)
        return RateLimitDecision(False, 0, retry_after)

    def prune(self) -> int:
        """Drop counters whose window has elapsed. Returns how many were removed."""
        with self._lock:
            return self._prune_expired(self._clock())

    def _prune_expired(self, now: float) -> int:
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)


reveal_limiter = InMemoryRateLimiter(
    settings.reveal_rate_limit_max,
    settings.reveal_rate_limit_window_seconds,
    name="bot-key-reveal",
)

ingest_limiter = InMemoryRateLimiter(
    settings.ingest_rate_limit_max,
    settings.ingest_rate_limit_window_seconds,
    name="webhook-ingest",
)
