"""Middleware components for the rentalops API."""

from __future__ import annotations

from rentalops.middleware.logging import RequestLoggingMiddleware
from rentalops.middleware.security_headers import SecurityHeadersMiddleware
from rentalops.middleware.session_gate import SessionGateMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "SessionGateMiddleware",
]
