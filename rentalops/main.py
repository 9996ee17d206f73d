"""FastAPI application entry-point for rentalops."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rentalops import __version__
from rentalops.config import load_settings
from rentalops.dependencies import dispose_backend_clients, get_settings, init_backend_clients
from rentalops.middleware.json_formatter import configure_json_logging
from rentalops.middleware.logging import CORRELATION_HEADER, RequestLoggingMiddleware
from rentalops.middleware.security_headers import SecurityHeadersMiddleware
from rentalops.middleware.session_gate import SessionGateMiddleware
from rentalops.routers import (
    admin,
    auth,
    color_themes,
    contracts,
    dashboard,
    debug,
    health,
    invoices,
    properties,
    receipts,
    rooms,
    tenants,
)
from rentalops.services.contract_service import ContractRuleError
from rentalops.services.identity import IdentityError
from rentalops.services.postgrest import PostgrestError
from rentalops.services.receipt_renderer import PlaywrightReceiptRenderer
from rentalops.services.session_cookies import SessionCookieCodec
from rentalops.store.fallback import JsonFileBackend

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup / shutdown lifecycle.

    On startup:
    - Switch to JSON logging when configured.
    - Open the shared HTTP pool and the hosted-backend clients.

    On shutdown:
    - Close the HTTP pool.
    """
    settings = get_settings()

    if settings.structured_logging:
        configure_json_logging()
        logger.info("Structured JSON logging enabled")

    init_backend_clients(app, settings)
    if settings.is_supabase_configured:
        logger.info(
            "Hosted backend clients initialised (%s, service role %s)",
            settings.supabase_url,
            "enabled" if settings.has_service_role else "disabled",
        )
    logger.info("Fallback invoice store at %s", settings.fallback_store_path)

    yield

    await dispose_backend_clients(app)
    logger.info("Application shutdown complete")


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message}, headers=headers)


def _validation_message(errors: list[dict[str, Any]]) -> str:
    missing = [".".join(str(part) for part in err["loc"][1:]) or "body" for err in errors if err["type"] == "missing"]
    if missing:
        return "Missing required fields: " + ", ".join(missing)
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first["loc"][1:])
    return f"{location}: {first['msg']}" if location else first["msg"]


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, _validation_message(list(exc.errors())))

    @app.exception_handler(ContractRuleError)
    async def contract_rule_handler(request: Request, exc: ContractRuleError) -> JSONResponse:
        return _error(exc.status_code, exc.message)

    @app.exception_handler(PostgrestError)
    async def postgrest_error_handler(request: Request, exc: PostgrestError) -> JSONResponse:
        logger.error(
            "Data API error on %s %s: %s (code=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code,
        )
        return _error(500, exc.message)

    @app.exception_handler(IdentityError)
    async def identity_error_handler(request: Request, exc: IdentityError) -> JSONResponse:
        logger.warning("Identity provider error on %s: %s", request.url.path, exc.message)
        return _error(502, "Authentication service error")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "Internal server error")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Construct and configure the FastAPI application."""
    settings = load_settings()

    app = FastAPI(
        title="rentalops",
        description="Rental-property management API: properties, rooms, tenants, contracts and invoices.",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Resources without open connections live for the whole app, not the lifespan.
    app.state.fallback_store = JsonFileBackend(settings.fallback_store_path)
    app.state.receipt_renderer = PlaywrightReceiptRenderer()

    # -- Middleware (innermost first; each call wraps the stack so far) ------

    app.add_middleware(
        SessionGateMiddleware,
        codec=SessionCookieCodec(settings.session_cookie_name, secure=settings.cookie_secure),
        login_path=settings.login_path,
        refresh_margin=settings.session_refresh_margin_seconds,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", CORRELATION_HEADER],
        expose_headers=[CORRELATION_HEADER],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    # -- Routers -------------------------------------------------------------

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(auth.session_router)
    app.include_router(invoices.temp_storage_router)
    app.include_router(invoices.router)
    app.include_router(color_themes.router)
    app.include_router(receipts.router)
    app.include_router(properties.router)
    app.include_router(rooms.router)
    app.include_router(tenants.router)
    app.include_router(contracts.router)
    app.include_router(dashboard.router)
    app.include_router(admin.router)
    app.include_router(debug.router)

    _register_exception_handlers(app)

    return app


app = create_app()
