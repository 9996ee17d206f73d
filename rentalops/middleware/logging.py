"""Per-request access logging."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("rentalops.access")

# Session cookies and bearer tokens never reach the logs.
_SENSITIVE_HEADERS: frozenset[str] = frozenset({"authorization", "cookie", "set-cookie", "apikey"})
_MASK = "***"

CORRELATION_HEADER = "X-Correlation-ID"


def _safe_headers(request: Request) -> dict[str, str]:
    return {key: (_MASK if key.lower() in _SENSITIVE_HEADERS else value) for key, value in request.headers.items()}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one ``rentalops.access`` record per request.

    The correlation id comes from the ``X-Correlation-ID`` request header
    (or a fresh UUID-4) and is echoed on the response.  The record level
    follows the status code: ERROR for 5xx, WARNING for 4xx, INFO
    otherwise.  The structured payload travels in ``extra={"request": ...}``
    where :class:`~rentalops.middleware.json_formatter.JSONFormatter` picks
    it up.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        start = time.monotonic()
        response: Response | None = None
        try:
            response = await call_next(request)
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            status_code = response.status_code if response is not None else 500
            payload: dict[str, Any] = {
                "method": request.method,
                "path": request.url.path,
                "query": str(request.url.query) or None,
                "status_code": status_code,
                "duration_ms": round((time.monotonic() - start) * 1000, 2),
                "client": request.client.host if request.client else None,
                "correlation_id": correlation_id,
                "user_id": getattr(request.state, "user_id", None) or "anonymous",
                "headers": _safe_headers(request),
            }
            if status_code >= 500:
                level = logging.ERROR
            elif status_code >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO
            logger.log(level, "%s %s -> %d", request.method, request.url.path, status_code, extra={"request": payload})
