"""Logging setup: JSON or plain formatting, plus per-request IDs and timing."""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Record attributes passed via ``extra=`` that end up in JSON entries
_EXTRA_FIELDS = (
    "method", "path", "status_code", "duration_ms", "client_ip",
    "command", "mode", "connected", "t_s", "duty",
)

# Polled by dashboards and probes; logged at DEBUG
_QUIET_PATHS = frozenset({"/health", "/api/v1/telemetry", "/api/v1/simulation"})


class JSONFormatter(logging.Formatter):
    """One JSON object per line, tagged with the current request ID."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        rid = request_id_var.get()
        if rid:
            entry["request_id"] = rid
        entry.update(
            (key, getattr(record, key))
            for key in _EXTRA_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Sets X-Request-ID on HTTP responses and logs each request's duration.

    Only HTTP requests pass through here. WebSocket sessions do not.
    """

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
        token = request_id_var.set(rid)
        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        finally:
            request_id_var.reset(token)
        duration_ms = round((time.perf_counter() - start) * 1000, 1)
        response.headers["X-Request-ID"] = rid

        path = request.url.path
        level = logging.DEBUG if path in _QUIET_PATHS and response.status_code < 400 else logging.INFO
        logging.getLogger("mppt.access").log(
            level,
            "%s %s -> %s (%.1fms)",
            request.method, path, response.status_code, duration_ms,
            extra={
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "client_ip": request.client.host if request.client else "unknown",
            },
        )
        return response


def setup_logging(json_format: bool = False, debug: bool = False) -> None:
    """Configure the root logger. Use json_format=True in production."""
    handler = logging.StreamHandler()
    handler.setFormatter(
        JSONFormatter()
        if json_format
        else logging.Formatter(
            "%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
