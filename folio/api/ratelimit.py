"""
Per-client request limiting for the /api routes.

Fixed windows kept in process memory: each client address gets
`max_requests` per `window_seconds`, after which requests are answered
with 429 until the window ends. State is not shared between workers.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

RATE_LIMITED_MESSAGE = "Too many requests from this IP, please try again later."


class FixedWindowRateLimiter:
    """Counts hits per key; a key's window expires `window_seconds` after its first hit."""

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: int = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[int, float]] = {}
        self._next_sweep = 0.0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        """Number of keys currently tracked."""
        with self._lock:
            return len(self._windows)

    def _sweep(self, now: float) -> None:
        """Forget expired windows; runs at most once per window length."""
        if now < self._next_sweep:
            return
        self._windows = {
            key: window for key, window in self._windows.items() if window[1] > now
        }
        self._next_sweep = now + self.window_seconds

    def hit(self, key: str) -> bool:
        """Record a request. Returns False once the key is over its limit."""
        now = self._clock()
        with self._lock:
            self._sweep(now)
            count, expires_at = self._windows.get(key, (0, 0.0))
            if now >= expires_at:
                count, expires_at = 0, now + self.window_seconds
            count += 1
            self._windows[key] = (count, expires_at)
        return count <= self.max_requests

    def retry_after(self, key: str) -> int:
        with self._lock:
            _, expires_at = self._windows.get(key, (0, 0.0))
        return max(0, int(expires_at - self._clock()) + 1)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._next_sweep = 0.0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies a limiter to every request whose path starts with `prefix`."""

    def __init__(self, app, limiter: FixedWindowRateLimiter, prefix: str = "/api"):
        super().__init__(app)
        self.limiter = limiter
        self.prefix = prefix

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.prefix):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        if not self.limiter.hit(client):
            logger.warning(f"Rate limit exceeded for {client}")
            return JSONResponse(
                status_code=429,
                content={"error": RATE_LIMITED_MESSAGE},
                headers={"Retry-After": str(self.limiter.retry_after(client))},
            )
        return await call_next(request)
