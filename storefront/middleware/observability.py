from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.core.config import CART_SESSION_HEADER
from storefront.core.request_context import clear_request_context, set_request_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_QUIET_PATHS = {"/", "/health"}


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Gera/propaga o request id e registra uma linha por requisição."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        set_request_context(request_id=request_id, cart_session=request.headers.get(CART_SESSION_HEADER))

        try:
            response = await call_next(request)
        except Exception:
            _log_request(request, status_code=500, started=started)
            clear_request_context()
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        _log_request(request, status_code=response.status_code, started=started)
        clear_request_context()
        return response


def _log_request(request: Request, *, status_code: int, started: float) -> None:
    level = logging.DEBUG if request.url.path in _QUIET_PATHS else logging.INFO
    logger.log(
        level,
        "request completed",
        extra={
            "tenant_id": getattr(request.state, "tenant_slug", None),
            "endpoint": request.url.path,
            "method": request.method,
            "status_code": status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )
