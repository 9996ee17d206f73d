"""Receipt export: HTML fragment to PNG or PDF through headless Chromium.

Playwright is imported lazily so the API runs without the optional
``receipts`` extra; only this endpoint then reports an error.
"""

from __future__ import annotations

import logging
from typing import Literal

logger = logging.getLogger(__name__)

ReceiptFormat = Literal["png", "pdf"]

CONTENT_TYPES: dict[str, str] = {"png": "image/png", "pdf": "application/pdf"}

VIEWPORT = {"width": 800, "height": 1200}
DEVICE_SCALE_FACTOR = 2
PAGE_LOAD_TIMEOUT_MS = 30_000
FONT_WAIT_MS = 3_000

_DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>Receipt</title>
    <style>
      * {{ margin: 0; padding: 0; box-sizing: border-box; }}
      body {{ font-family: Arial, sans-serif; background: #ffffff; padding: 20px; line-height: 1.5; }}
      .receipt-container {{ max-width: 100%; margin: 0 auto; background: white; padding: 20px; }}
      .receipt-container * {{ -webkit-font-smoothing: antialiased; }}
      #receipt-template {{
        background: white; padding: 32px; max-width: 100%; margin: 0 auto;
        font-family: Arial, sans-serif; width: 100%;
      }}
      .flex {{ display: flex; }}
      .grid {{ display: grid; }}
      .grid-cols-2 {{ grid-template-columns: repeat(2, minmax(0, 1fr)); }}
      .justify-between {{ justify-content: space-between; }}
      .items-center {{ align-items: center; }}
      .text-center {{ text-align: center; }}
      .text-right {{ text-align: right; }}
      .font-bold {{ font-weight: 700; }}
      .font-semibold {{ font-weight: 600; }}
      .italic {{ font-style: italic; }}
      .rounded-xl {{ border-radius: 0.75rem; }}
      .rounded-3xl {{ border-radius: 1.5rem; }}
    </style>
  </head>
  <body>
    <div class="receipt-container">
{content}
    </div>
  </body>
</html>
"""

# Substrings of common browser failures mapped to actionable messages.
_ERROR_HINTS: tuple[tuple[str, str], ...] = (
    ("Executable doesn't exist", "Chromium binary not found. Run `playwright install chromium`."),
    ("Timeout", "Page load timeout. The content may be too complex or network issues."),
    ("Target closed", "Browser communication error. This may be due to memory constraints."),
    ("Protocol error", "Browser communication error. This may be due to memory constraints."),
)


class RenderError(Exception):
    """Raised when a receipt cannot be rendered."""


def build_receipt_document(fragment: str) -> str:
    """Wrap a receipt HTML fragment in a standalone, styled document."""
    return _DOCUMENT_TEMPLATE.format(content=fragment)


def describe_render_failure(message: str) -> str:
    for needle, hint in _ERROR_HINTS:
        if needle in message:
            return hint
    return message or "Unknown error occurred"


class PlaywrightReceiptRenderer:
    """Render receipts with a fresh headless Chromium per call.

    Parameters
    ----------
    launch_args:
        Extra Chromium flags.  Containers usually need ``--no-sandbox``.
    """

    def __init__(self, launch_args: list[str] | None = None) -> None:
        self._launch_args = launch_args or ["--no-sandbox", "--disable-dev-shm-usage", "--disable-gpu"]

    async def render(self, fragment: str, fmt: ReceiptFormat = "png") -> bytes:
        """Return PNG or PDF bytes for *fragment*.

        Raises
        ------
        RenderError
            If Playwright is missing or the browser fails.
        """
        try:
            from playwright.async_api import Error as PlaywrightError
            from playwright.async_api import async_playwright
        except ImportError as exc:
            raise RenderError(
                "Receipt export requires Playwright. Install the 'receipts' extra and run `playwright install chromium`."
            ) from exc

        document = build_receipt_document(fragment)
        try:
            async with async_playwright() as pw:
                browser = await pw.chromium.launch(headless=True, args=self._launch_args)
                try:
                    page = await browser.new_page(viewport=VIEWPORT, device_scale_factor=DEVICE_SCALE_FACTOR)
                    await page.set_content(document, wait_until="domcontentloaded", timeout=PAGE_LOAD_TIMEOUT_MS)
                    await page.evaluate(
                        "ms => Promise.race([document.fonts ? document.fonts.ready : null,"
                        " new Promise(r => setTimeout(r, ms))])",
                        FONT_WAIT_MS,
                    )
                    if fmt == "pdf":
                        data = await page.pdf(
                            format="A4",
                            margin={"top": "20mm", "right": "20mm", "bottom": "20mm", "left": "20mm"},
                            print_background=True,
                        )
                    else:
                        height = await page.evaluate(
                            "() => { const c = document.querySelector('.receipt-container');"
                            " return c ? c.scrollHeight + 40 : 1000; }"
                        )
                        data = await page.screenshot(
                            type="png",
                            clip={"x": 0, "y": 0, "width": VIEWPORT["width"], "height": height},
                        )
                finally:
                    await browser.close()
        except PlaywrightError as exc:
            logger.error("Receipt rendering failed: %s", exc, exc_info=True)
            raise RenderError(describe_render_failure(str(exc))) from exc

        logger.info("Rendered %s receipt (%d bytes)", fmt, len(data))
        return data
