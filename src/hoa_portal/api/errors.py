"""
hoa_portal.api.errors

Exception → HTTP mapping.

Responsibilities:
- Render every handled error as `{"error": message}` (plus `conflicts` for 409s).
- Map service-layer exceptions to status codes in one place.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from hoa_portal.observability.logging import get_logger
from hoa_portal.services.data_api import DataAccessDenied
from hoa_portal.services.errors import (
    ConfigurationError,
    RateNotFoundError,
    ServiceError,
    UnitConflictError,
)

log = get_logger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[ServiceError], int], ...] = (
    (ConfigurationError, HTTP_500_INTERNAL_SERVER_ERROR),
    (UnitConflictError, HTTP_409_CONFLICT),
    (RateNotFoundError, HTTP_404_NOT_FOUND),
    (DataAccessDenied, HTTP_403_FORBIDDEN),
)


def status_for(exc: ServiceError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return HTTP_400_BAD_REQUEST


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    status_code = status_for(exc)
    body: dict[str, object] = {"error": str(exc)}
    if isinstance(exc, UnitConflictError):
        body["conflicts"] = list(exc.unit_numbers)
    log.info("request.rejected", status_code=status_code, error=str(exc), kind=type(exc).__name__)
    return JSONResponse(body, status_code=status_code)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        {"error": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)  # type: ignore[arg-type]
