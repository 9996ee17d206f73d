"""Room endpoints, including occupancy changes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from rentalops.dependencies import DatabaseDep
from rentalops.schemas import Amount, ApiResponse, RoomCreate, RoomUpdate
from rentalops.services.contract_service import ContractService
from rentalops.services.postgrest import PostgrestError
from rentalops.services.rental_service import RoomService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rooms", tags=["rooms"])

_NOT_FOUND = "Room not found"


class AssignTenantRequest(BaseModel):
    """Request body for ``POST /api/rooms/{room_id}/assign``."""

    tenant_id: str = Field(..., min_length=1)
    monthly_rent: Amount | None = Field(default=None, description="Defaults to the room's rent.")


class TransferTenantRequest(BaseModel):
    """Request body for ``POST /api/rooms/{room_id}/transfer``."""

    to_room_id: str = Field(..., min_length=1)
    new_monthly_rent: Amount | None = None


@router.get("", response_model=ApiResponse, response_model_exclude_none=True)
async def list_rooms(
    db: DatabaseDep,
    property_id: str | None = Query(default=None),
    status: str | None = Query(default=None),
    rent_min: float | None = Query(default=None),
    rent_max: float | None = Query(default=None),
) -> ApiResponse:
    rows = await RoomService(db).list_rooms(
        property_id=property_id, status=status, rent_min=rent_min, rent_max=rent_max
    )
    return ApiResponse(success=True, data=rows)


@router.get("/occupied", response_model=ApiResponse, response_model_exclude_none=True)
async def list_occupied_rooms(db: DatabaseDep) -> ApiResponse:
    """Occupied rooms with property details and the current contract."""
    try:
        rooms = await ContractService(db).occupied_rooms()
    except PostgrestError as exc:
        logger.error("Occupied room lookup failed: %s", exc.message)
        raise HTTPException(status_code=500, detail="Failed to fetch occupied rooms") from exc
    return ApiResponse(success=True, data=rooms)


@router.get("/grouped", response_model=ApiResponse, response_model_exclude_none=True)
async def list_rooms_by_property(db: DatabaseDep) -> ApiResponse:
    """Every property with its rooms, their contracts and tenants."""
    return ApiResponse(success=True, data=await RoomService(db).rooms_by_property())


@router.post("", response_model=ApiResponse, response_model_exclude_none=True)
async def create_room(body: RoomCreate, db: DatabaseDep) -> ApiResponse:
    row = await RoomService(db).create_room(body)
    return ApiResponse(success=True, data=row, message="Room created successfully")


@router.get("/{room_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_room(room_id: str, db: DatabaseDep) -> ApiResponse:
    row = await RoomService(db).get_room(room_id)
    if row is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return ApiResponse(success=True, data=row)


@router.patch("/{room_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def update_room(room_id: str, body: RoomUpdate, db: DatabaseDep) -> ApiResponse:
    row = await RoomService(db).update_room(room_id, body)
    if row is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return ApiResponse(success=True, data=row, message="Room updated successfully")


@router.delete("/{room_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def delete_room(room_id: str, db: DatabaseDep) -> ApiResponse:
    if not await RoomService(db).delete_room(room_id):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return ApiResponse(success=True, message="Room deleted successfully")


@router.post("/{room_id}/assign", response_model=ApiResponse, response_model_exclude_none=True)
async def assign_tenant(room_id: str, body: AssignTenantRequest, db: DatabaseDep) -> ApiResponse:
    """Open a contract for *tenant_id* in this room, starting today."""
    monthly_rent = body.monthly_rent
    if monthly_rent is None:
        room = await RoomService(db).get_room(room_id)
        monthly_rent = (room or {}).get("rent_amount") or 0
    contract = await ContractService(db).assign_tenant(room_id, body.tenant_id, monthly_rent)
    return ApiResponse(success=True, data=contract, message="Tenant assigned successfully")


@router.post("/{room_id}/unassign", response_model=ApiResponse, response_model_exclude_none=True)
async def unassign_tenant(room_id: str, db: DatabaseDep) -> ApiResponse:
    """Terminate the room's active contract."""
    await ContractService(db).unassign_tenant(room_id)
    return ApiResponse(success=True, message="Tenant unassigned successfully")


@router.post("/{room_id}/transfer", response_model=ApiResponse, response_model_exclude_none=True)
async def transfer_tenant(room_id: str, body: TransferTenantRequest, db: DatabaseDep) -> ApiResponse:
    """Move this room's tenant to another room."""
    contract = await ContractService(db).transfer_tenant(room_id, body.to_room_id, body.new_monthly_rent)
    return ApiResponse(success=True, data=contract, message="Tenant transferred successfully")
