"""Portfolio summary figures for the dashboard."""

from __future__ import annotations

import asyncio
from typing import Any

from pydantic import BaseModel

from rentalops.services.contract_service import CONTRACT_TABLE
from rentalops.services.postgrest import PostgrestClient, eq
from rentalops.services.rental_service import PROPERTY_TABLE, ROOM_TABLE, TENANT_TABLE


class DashboardStats(BaseModel):
    total_properties: int = 0
    total_rooms: int = 0
    occupied_rooms: int = 0
    available_rooms: int = 0
    total_tenants: int = 0
    active_contracts: int = 0
    monthly_revenue: float = 0
    occupancy_rate: float = 0


class DashboardService:
    def __init__(self, db: PostgrestClient) -> None:
        self._db = db

    async def stats(self) -> DashboardStats:
        """Counts across the portfolio.

        ``monthly_revenue`` is the sum of ``monthly_rent`` over active
        contracts; ``occupancy_rate`` is occupied rooms as a percentage of
        all rooms (0 when there are no rooms).
        """
        properties, rooms, tenants, contracts = await asyncio.gather(
            self._db.count(PROPERTY_TABLE),
            self._db.select(ROOM_TABLE, columns="status"),
            self._db.count(TENANT_TABLE),
            self._db.select(CONTRACT_TABLE, columns="monthly_rent", filters=[eq("status", "active")]),
        )
        rows: list[dict[str, Any]] = rooms or []
        total_rooms = len(rows)
        occupied = sum(1 for room in rows if room.get("status") == "occupied")
        available = sum(1 for room in rows if room.get("status") == "available")
        revenue = sum(float(c.get("monthly_rent") or 0) for c in contracts or [])

        return DashboardStats(
            total_properties=properties,
            total_rooms=total_rooms,
            occupied_rooms=occupied,
            available_rooms=available,
            total_tenants=tenants,
            active_contracts=len(contracts or []),
            monthly_revenue=revenue,
            occupancy_rate=(occupied / total_rooms * 100) if total_rooms else 0,
        )
