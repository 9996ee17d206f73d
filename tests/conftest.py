"""Shared fixtures for rentalops tests.

Provides a mock data API client, a mock identity provider, a fallback
store in a temporary directory, and async httpx clients bound to the
application with and without a session cookie.
"""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Configure the hosted backend BEFORE importing application modules so the
# session gate is built with a deterministic cookie name.
os.environ.setdefault("RENTAL_SUPABASE_URL", "https://testproj.supabase.co")
os.environ.setdefault("RENTAL_SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("RENTAL_SUPABASE_SERVICE_ROLE_KEY", "test-service-key")

from rentalops.config import RentalSettings
from rentalops.dependencies import get_settings
from rentalops.main import create_app
from rentalops.services.identity import IdentityClient, Session
from rentalops.services.postgrest import PostgrestClient
from rentalops.services.session_cookies import SessionCookieCodec
from rentalops.store.fallback import JsonFileBackend

TEST_USER: dict[str, Any] = {"id": "user-1", "email": "owner@example.com"}
COOKIE_NAME = "sb-testproj-auth-token"


def make_session(expires_in: int = 3600, **overrides: Any) -> Session:
    fields: dict[str, Any] = {
        "access_token": "access-token",
        "refresh_token": "refresh-token",
        "expires_at": int(time.time()) + expires_in,
        "user": dict(TEST_USER),
    }
    fields.update(overrides)
    return Session(**fields)


def session_cookie_header(session: Session | None = None) -> dict[str, str]:
    """``Cookie`` header carrying *session* (sent explicitly; the jar drops secure cookies over http)."""
    value = SessionCookieCodec.encode(session or make_session())
    return {"Cookie": f"{COOKIE_NAME}={value}"}


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture()
def fallback_path(tmp_path: Path) -> Path:
    return tmp_path / "temp-invoices" / "invoices.json"


@pytest.fixture()
def test_settings(fallback_path: Path) -> RentalSettings:
    """Return a settings object suitable for testing."""
    return RentalSettings(
        supabase_url="https://testproj.supabase.co",
        supabase_anon_key="test-anon-key",
        supabase_service_role_key="test-service-key",
        fallback_store_path=str(fallback_path),
        cors_origins=["http://localhost:3000"],
        debug=True,
    )


# ---------------------------------------------------------------------------
# Backend doubles
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_db() -> MagicMock:
    """Mock :class:`PostgrestClient`.

    Every query method is an ``AsyncMock`` returning an empty result;
    ``with_access_token`` returns the same mock so user-scoped views share
    the configured behaviour.
    """
    db = MagicMock(spec=PostgrestClient)
    db.select = AsyncMock(return_value=[])
    db.insert = AsyncMock(return_value=[])
    db.update = AsyncMock(return_value=[])
    db.delete = AsyncMock(return_value=[])
    db.count = AsyncMock(return_value=0)
    db.with_access_token = MagicMock(return_value=db)
    return db


@pytest.fixture()
def mock_identity() -> AsyncMock:
    """Mock identity provider that accepts the default test session."""
    identity = AsyncMock(spec=IdentityClient)
    identity.get_user = AsyncMock(return_value=dict(TEST_USER))
    identity.refresh = AsyncMock(return_value=make_session(access_token="refreshed-token"))
    identity.sign_in_with_password = AsyncMock(return_value=make_session())
    identity.sign_out = AsyncMock(return_value=None)
    identity.health_check = AsyncMock(return_value=True)
    return identity


@pytest.fixture()
def fallback_store(fallback_path: Path) -> JsonFileBackend:
    return JsonFileBackend(fallback_path)


# ---------------------------------------------------------------------------
# Application and clients
# ---------------------------------------------------------------------------


@pytest.fixture()
def app(
    test_settings: RentalSettings,
    mock_db: MagicMock,
    mock_identity: AsyncMock,
    fallback_store: JsonFileBackend,
):
    """FastAPI app wired to the mocks instead of the hosted backend.

    ASGITransport does not run the lifespan, so the clients it would have
    created are placed on ``app.state`` directly.
    """
    application = create_app()
    application.state.postgrest = mock_db
    application.state.postgrest_admin = mock_db
    application.state.identity = mock_identity
    application.state.fallback_store = fallback_store
    application.dependency_overrides[get_settings] = lambda: test_settings
    return application


@pytest_asyncio.fixture()
async def client(app) -> AsyncClient:
    """Async client whose requests carry a valid session cookie."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=session_cookie_header(),
    ) as ac:
        yield ac


@pytest_asyncio.fixture()
async def anon_client(app) -> AsyncClient:
    """Async client without a session."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
