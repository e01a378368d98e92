"""
HTTP middleware: request logging, security headers and a fixed-window rate limit.

The rate limiter keeps its counters in process memory, so the limit is per
worker process. It only guards /api routes; /health is never limited.
"""

import logging
import time
from typing import Awaitable, Callable, Dict, Tuple

from fastapi import Request, Response

from app.exceptions import RateLimitError, error_response

logger = logging.getLogger("app.access")

CallNext = Callable[[Request], Awaitable[Response]]

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-XSS-Protection": "0",
}

# Stale windows are swept once this many clients are tracked
_PRUNE_THRESHOLD = 10_000


class FixedWindowRateLimiter:
    """Allow max_requests per key within each window_seconds window."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}

    def allow(self, key: str) -> bool:
        now = self._clock()
        started, count = self._windows.get(key, (now, 0))
        if now - started >= self.window_seconds:
            started, count = now, 0
        if count >= self.max_requests:
            return False
        self._windows[key] = (started, count + 1)
        if len(self._windows) > _PRUNE_THRESHOLD:
            self._prune(now)
        return True

    def _prune(self, now: float) -> None:
        self._windows = {
            k: v for k, v in self._windows.items() if now - v[0] < self.window_seconds
        }


async def rate_limit(request: Request, call_next: CallNext) -> Response:
    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
    if request.url.path.startswith("/api") and request.method != "OPTIONS":
        client = request.client.host if request.client else "unknown"
        if not limiter.allow(client):
            logger.warning("Rate limit exceeded for %s", client)
            return error_response(RateLimitError())
    return await call_next(request)


async def security_headers(request: Request, call_next: CallNext) -> Response:
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


async def log_requests(request: Request, call_next: CallNext) -> Response:
    started = time.perf_counter()
    # Unhandled errors surface here and are turned into a 500 further out
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s %d %.1fms",
            request.method,
            request.url.path,
            status_code,
            elapsed_ms,
        )
