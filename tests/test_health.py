"""Tests for health, landing and debug endpoints.

Covers:
- /health is public and reports backend / fallback state
- degraded status when the identity provider is down or absent
- landing summary for the signed-in user
- debug output never includes cookie values
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from rentalops import __version__
from tests.conftest import COOKIE_NAME


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, anon_client: AsyncClient) -> None:
        resp = await anon_client.get("/health")

        assert resp.status_code == 200
        assert resp.json() == {
            "status": "healthy",
            "version": __version__,
            "supabase_configured": True,
            "backend": "ok",
            "fallback_store": "ok",
        }

    @pytest.mark.asyncio
    async def test_degraded_when_backend_down(self, anon_client: AsyncClient, mock_identity: AsyncMock) -> None:
        mock_identity.health_check.return_value = False

        resp = await anon_client.get("/health")

        assert resp.status_code == 200
        assert resp.json()["status"] == "degraded"
        assert resp.json()["backend"] == "unavailable"

    @pytest.mark.asyncio
    async def test_not_configured(self, app, anon_client: AsyncClient) -> None:
        app.state.identity = None

        resp = await anon_client.get("/health")

        assert resp.json()["backend"] == "not_configured"

    @pytest.mark.asyncio
    async def test_security_headers_present(self, anon_client: AsyncClient) -> None:
        resp = await anon_client.get("/health")

        assert resp.headers["x-frame-options"] == "DENY"
        assert resp.headers["x-content-type-options"] == "nosniff"
        assert "default-src 'none'" in resp.headers["content-security-policy"]


class TestHome:

    @pytest.mark.asyncio
    async def test_signed_in_summary(self, client: AsyncClient) -> None:
        resp = await client.get("/")

        data = resp.json()["data"]
        assert data["user"] == {"id": "user-1", "email": "owner@example.com"}
        assert data["supabase_configured"] is True

    @pytest.mark.asyncio
    async def test_anonymous_is_redirected(self, anon_client: AsyncClient) -> None:
        resp = await anon_client.get("/")
        assert resp.status_code == 307
        assert resp.headers["location"] == "/auth?returnUrl=%2F"


class TestDebug:

    @pytest.mark.asyncio
    async def test_reports_session_and_cookie_names(self, client: AsyncClient) -> None:
        resp = await client.get("/api/debug")

        body = resp.json()
        assert body["session"] == {"exists": True, "userId": "user-1", "email": "owner@example.com"}
        assert body["cookies"][0]["name"] == COOKIE_NAME
        assert body["cookies"][0]["hasValue"] is True
        assert "base64-" not in resp.text
        assert body["env"] == {"hasUrl": True, "hasKey": True, "configured": True}
