"""Receipt export endpoint."""

from __future__ import annotations

import base64
import logging
import time

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from rentalops.dependencies import ReceiptRendererDep
from rentalops.services.receipt_renderer import CONTENT_TYPES, ReceiptFormat, RenderError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/receipts", tags=["receipts"])


class ScreenshotRequest(BaseModel):
    """Request body for ``POST /api/receipts/screenshot``."""

    receipt_html: str | None = Field(default=None, alias="receiptHtml", description="Receipt markup fragment.")
    format: ReceiptFormat = "png"
    filename: str | None = None


class ScreenshotResponse(BaseModel):
    success: bool
    data: str
    contentType: str
    filename: str


@router.post("/screenshot", response_model=ScreenshotResponse)
async def screenshot(body: ScreenshotRequest, renderer: ReceiptRendererDep) -> ScreenshotResponse:
    """Render a receipt fragment and return it base64-encoded."""
    if not body.receipt_html:
        raise HTTPException(status_code=400, detail="Missing receipt HTML")
    try:
        image = await renderer.render(body.receipt_html, body.format)
    except RenderError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return ScreenshotResponse(
        success=True,
        data=base64.b64encode(image).decode("ascii"),
        contentType=CONTENT_TYPES[body.format],
        filename=body.filename or f"receipt-{int(time.time() * 1000)}.{body.format}",
    )
