"""JSON error bodies for everything that is not a generated page."""

from __future__ import annotations

import logging
import uuid
from http import HTTPStatus
from typing import Any, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .observability import get_request_id

logger = logging.getLogger(__name__)

ERROR_CODES = {
    404: "not_found",
    405: "method_not_allowed",
    429: "rate_limited",
    500: "internal_error",
    503: "service_unavailable",
}


def error_code(status_code: int) -> str:
    return ERROR_CODES.get(status_code, f"http_{status_code}")


def build_error_payload(
    status_code: int, message: str, request_id: str, details: Any = None
) -> dict[str, Any]:
    error: dict[str, Any] = {"code": error_code(status_code), "message": message}
    if details is not None:
        error["details"] = details
    return {"error": error, "request_id": request_id}


def error_response(
    request: Request,
    status_code: int,
    message: str,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """Error envelope carrying the request id of the failed request.

    Handlers that run outside the request middleware no longer see the
    request id context, so the incoming header is the fallback.
    """
    settings = getattr(request.app.state, "observability", None)
    header = settings.request_id_header if settings else "X-Request-ID"
    request_id = get_request_id() or request.headers.get(header) or uuid.uuid4().hex
    response = JSONResponse(
        build_error_payload(status_code, message, request_id),
        status_code=status_code,
        headers=dict(headers or {}),
    )
    response.headers.setdefault(header, request_id)
    return response


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if isinstance(exc.detail, str):
            message = exc.detail
        else:
            message = HTTPStatus(exc.status_code).phrase
        return error_response(request, exc.status_code, message, exc.headers)

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return error_response(request, 500, "Internal server error")
