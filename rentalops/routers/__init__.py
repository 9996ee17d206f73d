"""API router modules for rentalops."""

from __future__ import annotations

from rentalops.routers import (
    admin,
    auth,
    color_themes,
    contracts,
    dashboard,
    debug,
    health,
    invoices,
    properties,
    receipts,
    rooms,
    tenants,
)

__all__ = [
    "admin",
    "auth",
    "color_themes",
    "contracts",
    "dashboard",
    "debug",
    "health",
    "invoices",
    "properties",
    "receipts",
    "rooms",
    "tenants",
]
