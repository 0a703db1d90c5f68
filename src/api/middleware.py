"""Transport-level middleware: request logging, security headers, rate limiting."""

import logging
import math
import time
from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response


logger = logging.getLogger(__name__)


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        logger.debug(f"request_started {request.method} {request.url.path}")
        try:
            response: Response = await call_next(request)
        except Exception as exc:
            logger.error(f"request_exception {request.url.path}: {exc.__class__.__name__}")
            raise
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            f"request_ended {request.url.path} status={response.status_code} "
            f"elapsed_ms={elapsed_ms:.0f}"
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds conservative security headers to every response."""

    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request limit per client address.

    Window state lives on the event loop thread only, so no lock is needed.
    A limit of 0 disables the check.

    Attributes:
        limit: Requests allowed per client per window
        window_seconds: Window length
    """

    # Expired windows are pruned once the table grows past this size.
    PRUNE_THRESHOLD = 10_000

    def __init__(
        self,
        app,
        limit: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(app)
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}

    async def dispatch(self, request: Request, call_next):
        if self.limit <= 0:
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        now = self._clock()

        window_start, count = self._windows.get(client, (now, 0))
        if now - window_start >= self.window_seconds:
            window_start, count = now, 0
        count += 1
        self._windows[client] = (window_start, count)

        if len(self._windows) > self.PRUNE_THRESHOLD:
            self._prune(now)

        remaining = max(0, self.limit - count)
        reset_seconds = max(0, math.ceil(window_start + self.window_seconds - now))

        if count > self.limit:
            logger.warning(f"Rate limit exceeded for {client}")
            return JSONResponse(
                {"error": "Too many requests, please try again later."},
                status_code=429,
                headers={
                    "Retry-After": str(reset_seconds),
                    "RateLimit-Limit": str(self.limit),
                    "RateLimit-Remaining": "0",
                    "RateLimit-Reset": str(reset_seconds),
                },
            )

        response: Response = await call_next(request)
        response.headers["RateLimit-Limit"] = str(self.limit)
        response.headers["RateLimit-Remaining"] = str(remaining)
        response.headers["RateLimit-Reset"] = str(reset_seconds)
        return response

    def _prune(self, now: float) -> None:
        expired = [
            client
            for client, (start, _) in self._windows.items()
            if now - start >= self.window_seconds
        ]
        for client in expired:
            del self._windows[client]
