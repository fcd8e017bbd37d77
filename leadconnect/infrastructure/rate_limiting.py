"""Fixed-window rate limiter implementations."""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from limits import RateLimitItemPerSecond
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter as _LimitsFixedWindow

from ..domain.ports.rate_limiting import RateLimitDecision, RateLimiter

logger = logging.getLogger(__name__)


class FixedWindowRateLimiter(RateLimiter):
    """Process-local counters; reset on restart and not shared between workers."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1 or window_seconds < 1:
            raise ValueError("max_requests and window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitDecision:
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            count, reset_at = self._windows.get(key, (0, 0.0))
            if count == 0 or now >= reset_at:
                self._windows[key] = (1, now + self.window_seconds)
                return RateLimitDecision(True, self.max_requests - 1, 0)
            if count >= self.max_requests:
                retry_after = max(1, math.ceil(reset_at - now))
                return RateLimitDecision(False, 0, retry_after)
            self._windows[key] = (count + 1, reset_at)
            return RateLimitDecision(True, self.max_requests - count - 1, 0)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _purge_expired(self, now: float) -> None:
        if len(self._windows) < 1024:
            return
        stale = [key for key, (_, reset_at) in self._windows.items() if now >= reset_at]
        for key in stale:
            del self._windows[key]


class LimitsRateLimiter(RateLimiter):
    """Rate limiter backed by a ``limits`` storage such as ``redis://`` or ``memory://``."""

    def __init__(self, max_requests: int, window_seconds: int, storage_uri: str, namespace: str) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._namespace = namespace
        self._storage = storage_from_string(storage_uri)
        self._strategy = _LimitsFixedWindow(self._storage)
        self._item = RateLimitItemPerSecond(max_requests, window_seconds)

    def hit(self, key: str) -> RateLimitDecision:
        allowed = self._strategy.hit(self._item, self._namespace, key)
        stats = self._strategy.get_window_stats(self._item, self._namespace, key)
        if allowed:
            return RateLimitDecision(True, stats.remaining, 0)
        retry_after = max(1, math.ceil(stats.reset_time - time.time()))
        return RateLimitDecision(False, 0, retry_after)

    def reset(self) -> None:
        self._storage.reset()


def build_rate_limiter(
    max_requests: int,
    window_seconds: int,
    *,
    namespace: str,
    storage_uri: Optional[str] = None,
) -> RateLimiter:
    if storage_uri:
        logger.info("Using %s for %s rate limits", storage_uri.split("://", 1)[0], namespace)
        return LimitsRateLimiter(max_requests, window_seconds, storage_uri, namespace)
    return FixedWindowRateLimiter(max_requests, window_seconds)
