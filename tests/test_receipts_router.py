"""Tests for receipt export.

Covers:
- missing markup
- PNG / PDF responses (base64 body, content type, filename)
- renderer failures surface as 500 with the renderer's message
- document wrapping and failure hints
"""

from __future__ import annotations

import base64
import re
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from rentalops.dependencies import get_receipt_renderer
from rentalops.services.receipt_renderer import (
    PlaywrightReceiptRenderer,
    RenderError,
    build_receipt_document,
    describe_render_failure,
)


@pytest.fixture()
def renderer(app) -> AsyncMock:
    mock = AsyncMock(spec=PlaywrightReceiptRenderer)
    mock.render.return_value = b"\x89PNG fake"
    app.dependency_overrides[get_receipt_renderer] = lambda: mock
    return mock


class TestScreenshot:

    @pytest.mark.asyncio
    async def test_missing_html(self, client: AsyncClient, renderer: AsyncMock) -> None:
        resp = await client.post("/api/receipts/screenshot", json={"format": "png"})

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Missing receipt HTML"}
        renderer.render.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_png(self, client: AsyncClient, renderer: AsyncMock) -> None:
        resp = await client.post("/api/receipts/screenshot", json={"receiptHtml": "<div>Phòng 101</div>"})

        body = resp.json()
        assert resp.status_code == 200
        assert body["success"] is True
        assert base64.b64decode(body["data"]) == b"\x89PNG fake"
        assert body["contentType"] == "image/png"
        assert re.fullmatch(r"receipt-\d+\.png", body["filename"])
        renderer.render.assert_awaited_once_with("<div>Phòng 101</div>", "png")

    @pytest.mark.asyncio
    async def test_pdf_with_filename(self, client: AsyncClient, renderer: AsyncMock) -> None:
        renderer.render.return_value = b"%PDF-1.7"

        resp = await client.post(
            "/api/receipts/screenshot",
            json={"receiptHtml": "<div/>", "format": "pdf", "filename": "bien-lai.pdf"},
        )

        body = resp.json()
        assert body["contentType"] == "application/pdf"
        assert body["filename"] == "bien-lai.pdf"

    @pytest.mark.asyncio
    async def test_unknown_format(self, client: AsyncClient, renderer: AsyncMock) -> None:
        resp = await client.post("/api/receipts/screenshot", json={"receiptHtml": "<div/>", "format": "gif"})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_render_failure(self, client: AsyncClient, renderer: AsyncMock) -> None:
        renderer.render.side_effect = RenderError("Chromium binary not found. Run `playwright install chromium`.")

        resp = await client.post("/api/receipts/screenshot", json={"receiptHtml": "<div/>"})

        assert resp.status_code == 500
        assert "playwright install chromium" in resp.json()["error"]


class TestRendererHelpers:

    def test_document_wraps_fragment(self) -> None:
        document = build_receipt_document("<p>Tổng cộng</p>")
        assert document.startswith("<!DOCTYPE html>")
        assert '<meta charset="utf-8">' in document
        assert '<div class="receipt-container">\n<p>Tổng cộng</p>' in document

    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("Executable doesn't exist at /ms-playwright/chromium", "Chromium binary not found"),
            ("Timeout 30000ms exceeded", "Page load timeout"),
            ("Target closed", "Browser communication error"),
            ("something else", "something else"),
            ("", "Unknown error occurred"),
        ],
    )
    def test_failure_hints(self, message: str, expected: str) -> None:
        assert describe_render_failure(message).startswith(expected)
