"""Single-line JSON log records.

Enabled with ``RENTAL_STRUCTURED_LOGGING=true``; the application then
installs one ``StreamHandler`` using :class:`JSONFormatter` on the root
logger.  Each line looks like::

    {
        "timestamp": "2025-05-15T12:34:56.789012+00:00",
        "level": "INFO",
        "logger": "rentalops.access",
        "message": "GET /api/invoices -> 200",
        "correlation_id": "6f1c...",   // access records only
        "request": { ... },            // access records only
        "exc_info": "Traceback ..."    // exceptions only
    }
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any


class JSONFormatter(logging.Formatter):
    """Render log records as JSON objects, one per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_data = getattr(record, "request", None)
        if isinstance(request_data, dict):
            correlation_id = request_data.get("correlation_id")
            if correlation_id:
                payload["correlation_id"] = correlation_id
        if request_data is not None:
            payload["request"] = request_data

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_json_logging(level: int = logging.INFO) -> None:
    """Replace root handlers with a single JSON ``StreamHandler``."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
