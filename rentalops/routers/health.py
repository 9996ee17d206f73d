"""Liveness endpoint and the signed-in landing summary."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Request

from rentalops import __version__
from rentalops.dependencies import SettingsDep
from rentalops.services.identity import IdentityClient

logger = logging.getLogger(__name__)

# Short timeout so probes respond quickly when the hosted backend hangs.
_BACKEND_HEALTH_TIMEOUT = 2.0

router = APIRouter(tags=["health"])


async def _check_backend(identity: IdentityClient | None) -> str:
    if identity is None:
        return "not_configured"
    try:
        healthy = await asyncio.wait_for(identity.health_check(), timeout=_BACKEND_HEALTH_TIMEOUT)
    except TimeoutError:
        healthy = False
    return "ok" if healthy else "unavailable"


@router.get("/health")
async def health(request: Request, settings: SettingsDep) -> dict[str, Any]:
    """Report service health.

    Always answers 200; ``backend`` and ``fallback_store`` describe the
    dependencies.  A hosted backend outage only degrades the service since
    invoices keep working through the fallback store.
    """
    backend = await _check_backend(getattr(request.app.state, "identity", None))
    fallback = getattr(request.app.state, "fallback_store", None)
    fallback_ok = fallback is not None and fallback.is_writable()
    return {
        "status": "healthy" if backend == "ok" and fallback_ok else "degraded",
        "version": __version__,
        "supabase_configured": settings.is_supabase_configured,
        "backend": backend,
        "fallback_store": "ok" if fallback_ok else "unavailable",
    }


@router.get("/")
async def home(request: Request, settings: SettingsDep) -> dict[str, Any]:
    """Landing summary for the signed-in user."""
    return {
        "success": True,
        "data": {
            "app": "rentalops",
            "version": __version__,
            "user": {
                "id": getattr(request.state, "user_id", None),
                "email": getattr(request.state, "user_email", None),
            },
            "supabase_configured": settings.is_supabase_configured,
        },
    }
