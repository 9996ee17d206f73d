"""Security response headers."""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

# Responses are JSON or redirects; nothing needs to load sub-resources.
_DEFAULT_CSP = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'; form-action 'self'"

# Interactive API docs load their own scripts and styles.
_DOCS_PATHS: frozenset[str] = frozenset({"/docs", "/redoc"})

_STATIC_HEADERS: dict[str, str] = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add clickjacking, sniffing, referrer and CSP headers to every response."""

    def __init__(self, app: ASGIApp, *, csp_policy: str | None = None) -> None:
        super().__init__(app)
        self._csp = csp_policy or _DEFAULT_CSP

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in _STATIC_HEADERS.items():
            response.headers[name] = value
        if request.url.path not in _DOCS_PATHS:
            response.headers["Content-Security-Policy"] = self._csp
        return response
