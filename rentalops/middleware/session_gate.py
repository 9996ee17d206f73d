"""Session gate: cookie session resolution and route-level access control.

Every request goes through two steps, in this order:

1. **Resolve** the session from the request cookies.  The identity
   provider validates the access token and, when it is about to expire or
   is rejected, exchanges the refresh token for a new pair.  The result is
   a :class:`SessionResolution`, which also records the cookie changes the
   outgoing response must carry.
2. **Decide** what to do with the request.  :func:`decide` takes the
   resolution as input, so a decision can never be made before the
   session has been resolved.

Provider errors of any kind resolve to "no session" (fail closed).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response
from starlette.types import ASGIApp

from rentalops.services.identity import IdentityClient, IdentityError, Session
from rentalops.services.session_cookies import SessionCookieCodec

logger = logging.getLogger(__name__)

DEFAULT_PROTECTED_ROUTES: tuple[str, ...] = (
    "/",
    "/properties",
    "/rooms",
    "/tenants",
    "/invoices",
    "/receipts",
    "/profile",
    "/admin",
    "/api",
)
DEFAULT_PUBLIC_ROUTES: tuple[str, ...] = ("/auth",)

API_PREFIX = "/api"
CALLBACK_PATH = "/auth/callback"

# Never gated: probes, API docs, static assets.
_EXEMPT_PATHS: frozenset[str] = frozenset({"/health", "/ready", "/docs", "/redoc", "/openapi.json", "/favicon.ico"})
_EXEMPT_SUFFIXES: tuple[str, ...] = (".svg", ".png", ".jpg", ".jpeg", ".gif", ".webp")


# ---------------------------------------------------------------------------
# Route classification
# ---------------------------------------------------------------------------


class RouteClass(str, Enum):
    PROTECTED = "protected"
    PUBLIC = "public"
    UNRESTRICTED = "unrestricted"


def route_matches(route: str, path: str) -> bool:
    """True when *path* is *route* or lies below it.  ``/`` matches only itself."""
    if route == "/":
        return path == "/"
    return path == route or path.startswith(route + "/")


class RouteTable:
    """Static path-prefix classification.

    Protected routes are consulted before public ones and the first match
    wins, so each path has exactly one classification.
    """

    def __init__(
        self,
        protected: Iterable[str] = DEFAULT_PROTECTED_ROUTES,
        public: Iterable[str] = DEFAULT_PUBLIC_ROUTES,
    ) -> None:
        self.protected = tuple(protected)
        self.public = tuple(public)

    def classify(self, path: str) -> RouteClass:
        if any(route_matches(route, path) for route in self.protected):
            return RouteClass.PROTECTED
        if any(route_matches(route, path) for route in self.public):
            return RouteClass.PUBLIC
        return RouteClass.UNRESTRICTED


def is_exempt(path: str) -> bool:
    return path in _EXEMPT_PATHS or path.lower().endswith(_EXEMPT_SUFFIXES)


def safe_return_url(value: str | None) -> str:
    """Accept only same-site absolute paths; anything else becomes ``/``."""
    if not value or not value.startswith("/") or value.startswith("//") or "\\" in value:
        return "/"
    return value


# ---------------------------------------------------------------------------
# Session resolution
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SessionResolution:
    """Outcome of reading the session for one request.

    ``write_cookies`` means the session was refreshed and must be stored;
    ``clear_cookies`` means the browser holds a session that is no longer
    usable and must be expired.
    """

    session: Session | None
    write_cookies: bool = False
    clear_cookies: bool = False

    @property
    def authenticated(self) -> bool:
        return self.session is not None


class SessionResolver:
    """Turn request cookies into a validated (possibly refreshed) session."""

    def __init__(self, identity: IdentityClient | None, codec: SessionCookieCodec, *, refresh_margin: int = 60) -> None:
        self._identity = identity
        self._codec = codec
        self._refresh_margin = refresh_margin

    async def resolve(self, request: Request) -> SessionResolution:
        try:
            session = self._codec.read(request.cookies)
        except IdentityError:
            logger.info("Discarding malformed session cookie")
            return SessionResolution(None, clear_cookies=True)
        if session is None:
            return SessionResolution(None)
        if self._identity is None:
            return SessionResolution(None)

        if not session.expires_within(self._refresh_margin):
            try:
                user = await self._identity.get_user(session.access_token)
            except IdentityError as exc:
                if not exc.is_rejection:
                    logger.warning("Session validation unavailable: %s", exc.message)
                    return SessionResolution(None)
            else:
                return SessionResolution(session.with_user(user))

        return await self._refresh(session)

    async def _refresh(self, session: Session) -> SessionResolution:
        try:
            refreshed = await self._identity.refresh(session.refresh_token)
        except IdentityError as exc:
            if exc.is_rejection:
                logger.info("Session refresh rejected: %s", exc.message)
                return SessionResolution(None, clear_cookies=True)
            logger.warning("Session refresh unavailable: %s", exc.message)
            return SessionResolution(None)
        return SessionResolution(refreshed, write_cookies=True)


# ---------------------------------------------------------------------------
# Decision
# ---------------------------------------------------------------------------


class GateAction(str, Enum):
    ALLOW = "allow"
    REDIRECT = "redirect"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True)
class GateDecision:
    action: GateAction
    location: str | None = None


def decide(
    resolution: SessionResolution,
    path: str,
    *,
    return_url: str | None,
    routes: RouteTable,
    login_path: str = "/auth",
    api_prefix: str = API_PREFIX,
    callback_path: str = CALLBACK_PATH,
) -> GateDecision:
    """Map a resolved session and a path to an action.

    - protected path, no session: 401 for API paths, otherwise a redirect
      to *login_path* carrying the original path as ``returnUrl``
    - public path, session present (callback excluded): redirect to
      ``returnUrl`` or ``/``
    - everything else passes through
    """
    route_class = routes.classify(path)

    if route_class is RouteClass.PROTECTED and not resolution.authenticated:
        if route_matches(api_prefix, path):
            return GateDecision(GateAction.UNAUTHORIZED)
        return GateDecision(GateAction.REDIRECT, f"{login_path}?{urlencode({'returnUrl': path})}")

    if route_class is RouteClass.PUBLIC and resolution.authenticated and not route_matches(callback_path, path):
        return GateDecision(GateAction.REDIRECT, safe_return_url(return_url))

    return GateDecision(GateAction.ALLOW)


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Apply :func:`decide` to every non-exempt request.

    The identity client is read from ``app.state.identity`` at request time
    (it is created by the application lifespan); when it is absent no
    session can be resolved and protected routes are refused.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        codec: SessionCookieCodec,
        routes: RouteTable | None = None,
        login_path: str = "/auth",
        refresh_margin: int = 60,
    ) -> None:
        super().__init__(app)
        self._codec = codec
        self._routes = routes or RouteTable()
        self._login_path = login_path
        self._refresh_margin = refresh_margin

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if request.method == "OPTIONS" or is_exempt(path):
            return await call_next(request)

        identity: IdentityClient | None = getattr(request.app.state, "identity", None)
        resolver = SessionResolver(identity, self._codec, refresh_margin=self._refresh_margin)
        resolution = await resolver.resolve(request)

        decision = decide(
            resolution,
            path,
            return_url=request.query_params.get("returnUrl"),
            routes=self._routes,
            login_path=self._login_path,
        )

        if decision.action is GateAction.UNAUTHORIZED:
            logger.info("Rejected unauthenticated API request %s %s", request.method, path)
            response: Response = JSONResponse(status_code=401, content={"success": False, "error": "Unauthorized"})
        elif decision.action is GateAction.REDIRECT:
            response = RedirectResponse(decision.location or "/", status_code=307)
        else:
            session = resolution.session
            if session is not None:
                request.state.user_id = session.user_id
                request.state.user_email = session.email
                request.state.access_token = session.access_token
            response = await call_next(request)

        self._apply_cookies(request, response, resolution)
        return response

    def _apply_cookies(self, request: Request, response: Response, resolution: SessionResolution) -> None:
        # Handlers that sign in or out manage the session cookies themselves.
        prefix = self._codec.cookie_name.encode("latin-1")
        if any(k == b"set-cookie" and v.startswith(prefix) for k, v in response.raw_headers):
            return
        if resolution.write_cookies and resolution.session is not None:
            self._codec.write(response, resolution.session, request.cookies)
        elif resolution.clear_cookies:
            self._codec.clear(response, request.cookies)
