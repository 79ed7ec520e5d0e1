"""
Fixed-window rate limiting.

One counter per (bucket, client) key, reset when its window elapses. The
limiter is owned by the app instance; nothing here is process-global.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from starlette.requests import Request

logger = logging.getLogger(__name__)

# Expired windows are swept once the table grows past this
SWEEP_THRESHOLD = 10_000


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at_ms: int
    retry_after: int = 0

    def headers(self) -> Dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at_ms),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimiter(Protocol):
    def check(self, key: str, limit: int, window_ms: int) -> RateLimitDecision:
        ...

    def allow(self, key: str, limit: int, window_ms: int) -> bool:
        ...


@dataclass
class _Window:
    count: int
    reset_at_ms: int


class FixedWindowRateLimiter:
    """In-memory fixed-window counter."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self.clock = clock or time.time
        self._windows: Dict[str, _Window] = {}

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def check(self, key: str, limit: int, window_ms: int) -> RateLimitDecision:
        now = self._now_ms()
        window = self._windows.get(key)
        if window is None or now >= window.reset_at_ms:
            window = _Window(count=0, reset_at_ms=now + window_ms)
            self._windows[key] = window
            if len(self._windows) > SWEEP_THRESHOLD:
                self._sweep(now)

        if window.count >= limit:
            retry_after = max(1, math.ceil((window.reset_at_ms - now) / 1000))
            logger.warning(
                "Rate limit exceeded",
                extra={"key": key, "count": window.count, "limit": limit, "reset_at_ms": window.reset_at_ms},
            )
            return RateLimitDecision(False, limit, 0, window.reset_at_ms, retry_after)

        window.count += 1
        if window.count > limit * 0.8:
            logger.info("Rate limit nearly reached", extra={"key": key, "count": window.count, "limit": limit})
        return RateLimitDecision(True, limit, limit - window.count, window.reset_at_ms)

    def allow(self, key: str, limit: int, window_ms: int) -> bool:
        return self.check(key, limit, window_ms).allowed

    def _sweep(self, now: int) -> None:
        for key in [k for k, w in self._windows.items() if now >= w.reset_at_ms]:
            del self._windows[key]


def client_key(request: Request) -> str:
    """Best-effort client address, proxy headers first."""
    headers = request.headers
    for name in ("CF-Connecting-IP", "X-Real-IP"):
        value = headers.get(name)
        if value:
            return value.strip()
    forwarded = headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
