"""FastAPI dependency injection for settings, backend clients and services.

Long-lived clients are created by the application lifespan and kept on
``app.state``; handlers receive per-request views of them through the
dependencies below, never through module-level singletons.
"""

from __future__ import annotations

import logging
from typing import Annotated

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request

from rentalops.config import RentalSettings, load_settings
from rentalops.services.identity import IdentityClient
from rentalops.services.invoice_service import INVOICE_TABLE, InvoiceService
from rentalops.services.postgrest import PostgrestClient
from rentalops.services.receipt_renderer import PlaywrightReceiptRenderer
from rentalops.services.session_cookies import SessionCookieCodec
from rentalops.store.fallback import JsonFileBackend
from rentalops.store.primary import PostgrestBackend
from rentalops.store.resilient import ResilientRecordStore

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "Supabase is not configured"

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

_settings_cache: RentalSettings | None = None


def get_settings() -> RentalSettings:
    """Return the cached :class:`RentalSettings` singleton."""
    global _settings_cache  # noqa: PLW0603
    if _settings_cache is None:
        _settings_cache = load_settings()
    return _settings_cache


SettingsDep = Annotated[RentalSettings, Depends(get_settings)]

# ---------------------------------------------------------------------------
# Backend clients (lifespan-managed)
# ---------------------------------------------------------------------------


def init_backend_clients(app: FastAPI, settings: RentalSettings) -> None:
    """Open the shared HTTP pool and attach backend clients to ``app.state``.

    When the hosted backend is not configured the clients are left as
    ``None``; invoice routes then use the fallback store only and other
    data routes answer 503.
    """
    app.state.http = None
    app.state.postgrest = None
    app.state.postgrest_admin = None
    app.state.identity = None
    if not settings.is_supabase_configured:
        logger.warning("%s; invoices will use the local fallback store", NOT_CONFIGURED)
        return

    http = httpx.AsyncClient(
        base_url=settings.supabase_url.rstrip("/"),
        timeout=httpx.Timeout(settings.request_timeout),
    )
    anon_key = settings.supabase_anon_key.get_secret_value()
    app.state.http = http
    app.state.postgrest = PostgrestClient(http, anon_key)
    app.state.identity = IdentityClient(http, anon_key)
    if settings.has_service_role:
        app.state.postgrest_admin = PostgrestClient(http, settings.supabase_service_role_key.get_secret_value())


async def dispose_backend_clients(app: FastAPI) -> None:
    """Close the shared HTTP pool (call during shutdown)."""
    http: httpx.AsyncClient | None = getattr(app.state, "http", None)
    if http is not None:
        await http.aclose()
    app.state.http = None
    app.state.postgrest = None
    app.state.postgrest_admin = None
    app.state.identity = None


def get_database(request: Request) -> PostgrestClient:
    """Data API client acting as the signed-in user.

    Raises
    ------
    HTTPException
        503 when the hosted backend is not configured.
    """
    client: PostgrestClient | None = getattr(request.app.state, "postgrest", None)
    if client is None:
        raise HTTPException(status_code=503, detail=NOT_CONFIGURED)
    return client.with_access_token(getattr(request.state, "access_token", None))


def get_admin_database(request: Request) -> PostgrestClient:
    """Data API client holding the service-role key (bypasses row security)."""
    client: PostgrestClient | None = getattr(request.app.state, "postgrest_admin", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Supabase service role key is not configured")
    return client


def get_identity(request: Request) -> IdentityClient:
    identity: IdentityClient | None = getattr(request.app.state, "identity", None)
    if identity is None:
        raise HTTPException(status_code=503, detail=NOT_CONFIGURED)
    return identity


DatabaseDep = Annotated[PostgrestClient, Depends(get_database)]
AdminDatabaseDep = Annotated[PostgrestClient, Depends(get_admin_database)]
IdentityDep = Annotated[IdentityClient, Depends(get_identity)]

# ---------------------------------------------------------------------------
# Session cookies
# ---------------------------------------------------------------------------


def get_cookie_codec(settings: SettingsDep) -> SessionCookieCodec:
    return SessionCookieCodec(settings.session_cookie_name, secure=settings.cookie_secure)


CookieCodecDep = Annotated[SessionCookieCodec, Depends(get_cookie_codec)]

# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------


def get_fallback_backend(request: Request, settings: SettingsDep) -> JsonFileBackend:
    backend: JsonFileBackend | None = getattr(request.app.state, "fallback_store", None)
    if backend is None:
        backend = JsonFileBackend(settings.fallback_store_path)
    return backend


FallbackStoreDep = Annotated[JsonFileBackend, Depends(get_fallback_backend)]


def get_record_store(request: Request, fallback: FallbackStoreDep) -> ResilientRecordStore:
    """Invoice store: the user's hosted table first, the local file second."""
    client: PostgrestClient | None = getattr(request.app.state, "postgrest", None)
    primary = None
    if client is not None:
        scoped = client.with_access_token(getattr(request.state, "access_token", None))
        primary = PostgrestBackend(scoped, INVOICE_TABLE)
    return ResilientRecordStore(primary, fallback)


def get_invoice_service(store: Annotated[ResilientRecordStore, Depends(get_record_store)]) -> InvoiceService:
    return InvoiceService(store)


InvoiceServiceDep = Annotated[InvoiceService, Depends(get_invoice_service)]


def get_temp_storage_service(fallback: FallbackStoreDep) -> InvoiceService:
    """Invoice service bound to the local file only (no hosted backend)."""
    return InvoiceService(ResilientRecordStore(None, fallback))


TempStorageServiceDep = Annotated[InvoiceService, Depends(get_temp_storage_service)]

# ---------------------------------------------------------------------------
# Receipts
# ---------------------------------------------------------------------------


def get_receipt_renderer(request: Request) -> PlaywrightReceiptRenderer:
    renderer: PlaywrightReceiptRenderer | None = getattr(request.app.state, "receipt_renderer", None)
    if renderer is None:
        renderer = PlaywrightReceiptRenderer()
    return renderer


ReceiptRendererDep = Annotated[PlaywrightReceiptRenderer, Depends(get_receipt_renderer)]
