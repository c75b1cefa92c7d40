"""Fixed-window request limiter keyed by client IP or identity id."""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    retry_after: int  # seconds until the window resets; 0 when allowed


class RateLimiter:
    """Fixed-window rate limiter.

    Every key gets its own window which opens on its first hit. A hit only
    looks at its own key; stale windows of idle keys are dropped by
    ``prune()``, which the background sweeper calls periodically.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window = window_seconds
        self._timer = timer
        self._windows: dict[str, tuple[float, int]] = {}

    def hit(self, key: str, limit: int | None = None) -> RateDecision:
        """Count one request for ``key`` and decide whether it may proceed."""
        limit = self.max_requests if limit is None else limit
        now = self._timer()

        start, count = self._windows.get(key, (now, 0))
        if now - start >= self.window:
            start, count = now, 0

        if count >= limit:
            self._windows[key] = (start, count)
            retry_after = max(1, math.ceil(start + self.window - now))
            return RateDecision(allowed=False, retry_after=retry_after)

        self._windows[key] = (start, count + 1)
        return RateDecision(allowed=True, retry_after=0)

    def prune(self) -> int:
        """Drop windows that have ended. Returns the number removed."""
        now = self._timer()
        expired = [k for k, (start, _) in self._windows.items() if now - start >= self.window]
        for k in expired:
            del self._windows[k]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)
