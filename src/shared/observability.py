"""Logging, request correlation, health and metrics endpoints.

Crawlers walk an unbounded set of URLs, so request metrics are labelled with
the matched route template and never with the raw path.
"""
from __future__ import annotations

import inspect
import json
import logging
import os
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Iterator, Optional, Union

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from .log_filter import SensitiveDataFilter
from .metrics import REQUEST_LATENCY, get_metrics, record_request

UNMATCHED_ROUTE = "<unmatched>"

HealthCallable = Callable[[], Union[Awaitable["HealthCheckResult"], "HealthCheckResult"]]

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

logger = logging.getLogger(__name__)


@dataclass
class HealthCheckResult:
    status: str
    detail: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def healthy(cls, detail: Optional[dict[str, Any]] = None) -> "HealthCheckResult":
        return cls("ok", detail or {})

    @classmethod
    def degraded(cls, detail: Optional[dict[str, Any]] = None) -> "HealthCheckResult":
        return cls("degraded", detail or {})

    @classmethod
    def unhealthy(cls, detail: Optional[dict[str, Any]] = None) -> "HealthCheckResult":
        return cls("error", detail or {})


@dataclass
class HealthCheck:
    name: str
    check: HealthCallable
    critical: bool = True


@dataclass
class ObservabilitySettings:
    service_name: Optional[str] = None
    metrics_path: str = "/metrics"
    health_path: str = "/health"
    request_id_header: str = "X-Request-ID"
    log_level: Optional[str] = None


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()


def route_label(request: Request) -> str:
    """Template of the route that served ``request``.

    Only meaningful once routing has happened; before that, and for paths no
    route matched, every request shares one label.
    """
    return getattr(request.scope.get("route"), "path", None) or UNMATCHED_ROUTE


class JsonFormatter(logging.Formatter):
    """One JSON object per record, tagged with the service and request id."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": self._service_name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            payload["request_id"] = request_id
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        payload.update(getattr(record, "extra_fields", {}))
        return json.dumps(payload, default=str)


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


def configure_logging(settings: ObservabilitySettings) -> None:
    level_name = (settings.log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    for handler in root.handlers:
        for filter_class in (RequestContextFilter, SensitiveDataFilter):
            if not any(isinstance(f, filter_class) for f in handler.filters):
                handler.addFilter(filter_class())
        if not isinstance(handler.formatter, JsonFormatter):
            handler.setFormatter(JsonFormatter(settings.service_name or "babbler"))
        handler.setLevel(level)
    root.setLevel(level)


@contextmanager
def trace_span(name: str, *, attributes: Optional[dict[str, Any]] = None) -> Iterator[dict[str, Any]]:
    """Time a block of work and log the outcome as one structured record."""
    span: dict[str, Any] = {"span": name, **(attributes or {})}
    start = time.perf_counter()
    span["status"] = "ok"
    try:
        yield span
    except Exception as e:
        span["status"] = "error"
        span["error"] = repr(e)
        raise
    finally:
        span["duration_seconds"] = round(time.perf_counter() - start, 6)
        logger.info(f"Span {name} finished", extra={"extra_fields": span})


async def _evaluate(check: HealthCheck) -> HealthCheckResult:
    try:
        result = check.check()
        if inspect.isawaitable(result):
            result = await result
        return result
    except Exception as e:
        logger.exception(f"Health check '{check.name}' raised")
        return HealthCheckResult.unhealthy({"error": str(e)})


def _overall_status(results: list[tuple[HealthCheck, HealthCheckResult]]) -> str:
    if any(r.status == "error" and c.critical for c, r in results):
        return "error"
    if any(r.status != "ok" for _, r in results):
        return "degraded"
    return "ok"


def _health_checks(app: FastAPI) -> list[HealthCheck]:
    checks = getattr(app.state, "health_checks", None)
    if checks is None:
        raise RuntimeError("Observability not configured for this app")
    return checks


def _add_routes(app: FastAPI, settings: ObservabilitySettings) -> None:
    @app.get(settings.metrics_path, include_in_schema=False)
    async def metrics_endpoint() -> PlainTextResponse:
        return PlainTextResponse(get_metrics(), media_type="text/plain; version=0.0.4")

    @app.get(settings.health_path, include_in_schema=False)
    async def health_endpoint() -> JSONResponse:
        checks = _health_checks(app) or [
            HealthCheck("startup", lambda: HealthCheckResult.healthy())
        ]
        results = [(check, await _evaluate(check)) for check in checks]
        status = _overall_status(results)
        return JSONResponse(
            {
                "status": status,
                "service": settings.service_name,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "checks": {
                    c.name: {"status": r.status, "detail": r.detail} for c, r in results
                },
            },
            status_code=200 if status == "ok" else 503,
        )


def configure_observability(
    app: FastAPI, settings: Optional[ObservabilitySettings] = None
) -> ObservabilitySettings:
    settings = settings or ObservabilitySettings()
    settings.service_name = (
        settings.service_name or os.getenv("SERVICE_NAME") or app.title or "babbler"
    )
    configure_logging(settings)
    app.state.observability = settings
    app.state.health_checks = []
    _add_routes(app, settings)

    access_log = logging.getLogger(settings.service_name)
    header = settings.request_id_header

    @app.middleware("http")
    async def observe_request(request: Request, call_next):
        request_id = request.headers.get(header) or uuid.uuid4().hex
        token = _request_id_ctx.set(request_id)
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers.setdefault(header, request_id)
            return response
        except Exception:
            access_log.exception(f"Unhandled exception for {request.method} request")
            raise
        finally:
            duration = time.perf_counter() - start
            # The router fills in scope["route"] during call_next.
            endpoint = route_label(request)
            record_request(request.method, endpoint, status_code)
            REQUEST_LATENCY.labels(method=request.method, endpoint=endpoint).observe(
                duration
            )
            access_log.info(
                "Handled request",
                extra={
                    "extra_fields": {
                        "method": request.method,
                        "route": endpoint,
                        "status_code": status_code,
                        "duration_seconds": round(duration, 6),
                        "client_ip": request.client.host if request.client else None,
                    }
                },
            )
            _request_id_ctx.reset(token)

    return settings


def register_health_check(
    app: FastAPI, name: str, *, critical: bool = True
) -> Callable[[HealthCallable], HealthCallable]:
    checks = _health_checks(app)

    def decorator(func: HealthCallable) -> HealthCallable:
        checks.append(HealthCheck(name, func, critical))
        return func

    return decorator
