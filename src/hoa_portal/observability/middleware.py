"""
hoa_portal.observability.middleware

Request-scoped logging context for the API.

Responsibilities:
- Accept or mint an `x-request-id` and echo it on the response.
- Bind request id, method and path into structlog contextvars for the duration
  of the request.
- Emit one access line per request (`request.completed` / `request.failed`);
  liveness/readiness probes are logged at debug level.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from hoa_portal.observability.logging import get_logger

log = get_logger(__name__)

_PROBE_PATHS = frozenset({"/healthz", "/readyz"})
REQUEST_ID_HEADER = "x-request-id"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        path = request.url.path
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id, method=request.method, path=path
        )
        started = time.perf_counter()

        def elapsed_ms() -> float:
            return round((time.perf_counter() - started) * 1000, 2)

        try:
            response = await call_next(request)
        except Exception:
            log.exception("request.failed", duration_ms=elapsed_ms())
            raise
        else:
            emit = log.debug if path in _PROBE_PATHS else log.info
            emit("request.completed", status_code=response.status_code, duration_ms=elapsed_ms())
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
