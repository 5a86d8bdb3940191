"""App factory plus the request guards every babbler app is wrapped in."""

from __future__ import annotations

import math
import threading
import time
from typing import Any, Iterable, Optional

from cachetools import TTLCache
from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .config_schema import SecurityConfig
from .errors import error_response, register_error_handlers
from .observability import ObservabilitySettings, configure_observability

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
    "X-Frame-Options": "DENY",
}
HSTS_VALUE = "max-age=31536000; includeSubDomains"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request budget per client address.

    A window opens on a client's first request and lives in a TTL cache, so
    idle clients age out on their own. ``max_requests=0`` turns the limiter
    off, and ``exempt_paths`` are never counted.
    """

    def __init__(
        self,
        app: FastAPI,
        max_requests: int,
        window_seconds: int,
        exempt_paths: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.exempt_paths = frozenset(exempt_paths)
        self._windows: TTLCache[str, list[float]] = TTLCache(
            maxsize=10000, ttl=window_seconds, timer=time.monotonic
        )
        self._lock = threading.Lock()

    def _retry_after(self, client: str) -> Optional[int]:
        """Seconds until ``client`` may call again, or None if it may now."""
        now = time.monotonic()
        with self._lock:
            window = self._windows.get(client)
            if window is None:
                self._windows[client] = [now, 1]
                return None
            opened, used = window
            if used >= self.max_requests:
                return max(1, math.ceil(opened + self.window_seconds - now))
            # Mutating in place keeps the entry's original expiry.
            window[1] = used + 1
            return None

    async def dispatch(self, request: Request, call_next):
        if self.max_requests <= 0 or request.url.path in self.exempt_paths:
            return await call_next(request)
        client = request.client.host if request.client else "unknown"
        retry_after = self._retry_after(client)
        if retry_after is not None:
            return error_response(
                request, 429, "Too many requests", {"Retry-After": str(retry_after)}
            )
        return await call_next(request)


def add_security_middleware(
    app: FastAPI, settings: SecurityConfig, exempt_paths: Iterable[str] = ()
) -> None:
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window,
        exempt_paths=tuple(exempt_paths),
    )
    headers = dict(SECURITY_HEADERS)
    if settings.enable_https:
        headers["Strict-Transport-Security"] = HSTS_VALUE

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in headers.items():
            response.headers.setdefault(name, value)
        return response


def create_app(
    *,
    security_settings: Optional[SecurityConfig] = None,
    observability_settings: Optional[ObservabilitySettings] = None,
    **kwargs: Any,
) -> FastAPI:
    """FastAPI app with rate limiting, security headers, logging and errors.

    Health and metrics routes are exempt from rate limiting so probes keep
    working while crawlers are being throttled.
    """
    observability_settings = observability_settings or ObservabilitySettings()
    app = FastAPI(**kwargs)
    add_security_middleware(
        app,
        security_settings or SecurityConfig(),
        exempt_paths=(observability_settings.health_path, observability_settings.metrics_path),
    )
    configure_observability(app, observability_settings)
    register_error_handlers(app)
    return app
