"""Properties, rooms and tenants."""

from __future__ import annotations

import logging
from typing import Any

from rentalops.schemas import PropertyCreate, PropertyUpdate, RoomCreate, RoomUpdate, TenantCreate, TenantUpdate
from rentalops.services.postgrest import Filter, PostgrestClient, PostgrestError, eq, gte, ilike_any, lte

logger = logging.getLogger(__name__)

PROPERTY_TABLE = "properties"
ROOM_TABLE = "rooms"
TENANT_TABLE = "tenants"


async def fetch_one(
    db: PostgrestClient, table: str, record_id: str, *, columns: str = "*"
) -> dict[str, Any] | None:
    try:
        return await db.select(table, columns=columns, filters=[eq("id", record_id)], single=True)
    except PostgrestError as exc:
        if exc.is_not_found:
            return None
        raise


async def _update_one(db: PostgrestClient, table: str, record_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
    rows = await db.update(table, changes, filters=[eq("id", record_id)])
    return rows[0] if rows else None


async def _delete_one(db: PostgrestClient, table: str, record_id: str) -> bool:
    rows = await db.delete(table, filters=[eq("id", record_id)])
    return bool(rows)


class PropertyService:
    def __init__(self, db: PostgrestClient) -> None:
        self._db = db

    async def list_properties(
        self,
        *,
        search: str | None = None,
        status: str | None = None,
        city: str | None = None,
        district: str | None = None,
    ) -> list[dict[str, Any]]:
        filters: list[Filter] = []
        if search:
            filters.append(ilike_any(("name", "address"), search))
        if status:
            filters.append(eq("status", status))
        if city:
            filters.append(eq("city", city))
        if district:
            filters.append(eq("district", district))
        return await self._db.select(PROPERTY_TABLE, filters=filters, order="created_at", ascending=False)

    async def get_property(self, property_id: str) -> dict[str, Any] | None:
        return await fetch_one(self._db, PROPERTY_TABLE, property_id)

    async def get_property_with_rooms(self, property_id: str) -> dict[str, Any] | None:
        return await fetch_one(self._db, PROPERTY_TABLE, property_id, columns="*,rooms(*)")

    async def create_property(self, payload: PropertyCreate) -> dict[str, Any]:
        record = {
            **payload.model_dump(),
            "status": "active",
            "total_rooms": 0,
            "occupied_rooms": 0,
            "available_rooms": 0,
            "occupancy_percentage": 0,
        }
        rows = await self._db.insert(PROPERTY_TABLE, record)
        logger.info("Created property %s", payload.name)
        return rows[0]

    async def update_property(self, property_id: str, payload: PropertyUpdate) -> dict[str, Any] | None:
        return await _update_one(self._db, PROPERTY_TABLE, property_id, payload.model_dump(exclude_unset=True))

    async def delete_property(self, property_id: str) -> bool:
        return await _delete_one(self._db, PROPERTY_TABLE, property_id)


class RoomService:
    def __init__(self, db: PostgrestClient) -> None:
        self._db = db

    async def list_rooms(
        self,
        *,
        property_id: str | None = None,
        status: str | None = None,
        rent_min: float | None = None,
        rent_max: float | None = None,
    ) -> list[dict[str, Any]]:
        filters: list[Filter] = []
        if property_id:
            filters.append(eq("property_id", property_id))
        if status:
            filters.append(eq("status", status))
        if rent_min is not None:
            filters.append(gte("rent_amount", rent_min))
        if rent_max is not None:
            filters.append(lte("rent_amount", rent_max))
        return await self._db.select(ROOM_TABLE, filters=filters, order="room_number", ascending=True)

    async def get_room(self, room_id: str) -> dict[str, Any] | None:
        return await fetch_one(self._db, ROOM_TABLE, room_id)

    async def create_room(self, payload: RoomCreate) -> dict[str, Any]:
        rows = await self._db.insert(ROOM_TABLE, payload.model_dump())
        logger.info("Created room %s in property %s", payload.room_number, payload.property_id)
        return rows[0]

    async def update_room(self, room_id: str, payload: RoomUpdate) -> dict[str, Any] | None:
        return await _update_one(self._db, ROOM_TABLE, room_id, payload.model_dump(exclude_unset=True))

    async def rooms_by_property(self) -> list[dict[str, Any]]:
        """Properties, newest first, each with its rooms and their contracts and tenants."""
        return await self._db.select(
            PROPERTY_TABLE,
            columns="*,rooms(*,rental_contracts(*,tenant:tenants(*)))",
            order="created_at",
            ascending=False,
        )

    async def delete_room(self, room_id: str) -> bool:
        return await _delete_one(self._db, ROOM_TABLE, room_id)


class TenantService:
    def __init__(self, db: PostgrestClient) -> None:
        self._db = db

    async def list_tenants(self, *, search: str | None = None) -> list[dict[str, Any]]:
        filters: list[Filter] = []
        if search:
            filters.append(ilike_any(("full_name", "phone", "email"), search))
        return await self._db.select(TENANT_TABLE, filters=filters, order="created_at", ascending=False)

    async def get_tenant(self, tenant_id: str) -> dict[str, Any] | None:
        return await fetch_one(self._db, TENANT_TABLE, tenant_id)

    async def create_tenant(self, payload: TenantCreate) -> dict[str, Any]:
        rows = await self._db.insert(TENANT_TABLE, payload.model_dump())
        return rows[0]

    async def update_tenant(self, tenant_id: str, payload: TenantUpdate) -> dict[str, Any] | None:
        return await _update_one(self._db, TENANT_TABLE, tenant_id, payload.model_dump(exclude_unset=True))

    async def delete_tenant(self, tenant_id: str) -> bool:
        return await _delete_one(self._db, TENANT_TABLE, tenant_id)
