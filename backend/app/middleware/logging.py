from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import uuid4

from fastapi import Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..metrics import REQUEST_COUNT, REQUEST_ERRORS, REQUEST_LATENCY

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one structured log line per request and feed Prometheus metrics."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self._logger = logging.getLogger("daybook.request")
        if self._logger.level == logging.NOTSET:
            self._logger.setLevel(logging.INFO)

    async def dispatch(  # type: ignore[override]
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        start = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception:
            self._finish(request, request_id, 500, start, exc_info=True)
            raise

        self._finish(request, request_id, response.status_code, start)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    def _finish(
        self,
        request: Request,
        request_id: str,
        status: int,
        start: float,
        *,
        exc_info: bool = False,
    ) -> None:
        duration_ms = (time.perf_counter() - start) * 1000
        # route is only resolved once the router has run
        path = _resolve_path_template(request)
        _observe_metrics(request.method, path, status, duration_ms)
        extra: dict[str, Any] = {
            "request_id": request_id,
            "path": path,
            "method": request.method,
            "status": status,
            "duration_ms": round(duration_ms, 3),
            "user": getattr(request.state, "telemetry_user", None),
        }
        if status >= 500:
            self._logger.error("request error", extra=extra, exc_info=exc_info)
        else:
            self._logger.info("request complete", extra=extra)


def _resolve_path_template(request: Request) -> str:
    route = request.scope.get("route")
    if route is not None and hasattr(route, "path"):
        return str(route.path)
    return request.url.path


def _observe_metrics(method: str, path: str, status: int, duration_ms: float) -> None:
    status_str = str(status)
    REQUEST_COUNT.labels(method=method, path=path, status=status_str).inc()
    REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
    if status >= 500:
        REQUEST_ERRORS.labels(method=method, path=path, status=status_str).inc()
