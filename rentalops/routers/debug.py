"""Session and configuration diagnostics.

Cookie values are never echoed; only names and lengths are reported.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request

from rentalops.dependencies import SettingsDep

router = APIRouter(prefix="/api/debug", tags=["debug"])


@router.get("")
async def debug(request: Request, settings: SettingsDep) -> dict[str, Any]:
    user_id = getattr(request.state, "user_id", None)
    return {
        "timestamp": datetime.now(UTC).isoformat(),
        "session": {
            "exists": user_id is not None,
            "userId": user_id,
            "email": getattr(request.state, "user_email", None),
        },
        "cookies": [
            {"name": name, "hasValue": bool(value), "valueLength": len(value)} for name, value in request.cookies.items()
        ],
        "env": {
            "hasUrl": bool(settings.supabase_url),
            "hasKey": bool(settings.supabase_anon_key.get_secret_value()),
            "configured": settings.is_supabase_configured,
        },
    }
