"""Property endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from rentalops.dependencies import DatabaseDep
from rentalops.schemas import ApiResponse, PropertyCreate, PropertyUpdate
from rentalops.services.rental_service import PropertyService

router = APIRouter(prefix="/api/properties", tags=["properties"])

_NOT_FOUND = "Property not found"


@router.get("", response_model=ApiResponse, response_model_exclude_none=True)
async def list_properties(
    db: DatabaseDep,
    search: str | None = Query(default=None, description="Substring of name or address."),
    status: str | None = Query(default=None),
    city: str | None = Query(default=None),
    district: str | None = Query(default=None),
) -> ApiResponse:
    rows = await PropertyService(db).list_properties(search=search, status=status, city=city, district=district)
    return ApiResponse(success=True, data=rows)


@router.post("", response_model=ApiResponse, response_model_exclude_none=True)
async def create_property(body: PropertyCreate, db: DatabaseDep) -> ApiResponse:
    row = await PropertyService(db).create_property(body)
    return ApiResponse(success=True, data=row, message="Property created successfully")


@router.get("/{property_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_property(property_id: str, db: DatabaseDep) -> ApiResponse:
    row = await PropertyService(db).get_property(property_id)
    if row is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return ApiResponse(success=True, data=row)


@router.get("/{property_id}/rooms", response_model=ApiResponse, response_model_exclude_none=True)
async def get_property_with_rooms(property_id: str, db: DatabaseDep) -> ApiResponse:
    """The property with its rooms embedded under ``rooms``."""
    row = await PropertyService(db).get_property_with_rooms(property_id)
    if row is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return ApiResponse(success=True, data=row)


@router.patch("/{property_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def update_property(property_id: str, body: PropertyUpdate, db: DatabaseDep) -> ApiResponse:
    row = await PropertyService(db).update_property(property_id, body)
    if row is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return ApiResponse(success=True, data=row, message="Property updated successfully")


@router.delete("/{property_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def delete_property(property_id: str, db: DatabaseDep) -> ApiResponse:
    if not await PropertyService(db).delete_property(property_id):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return ApiResponse(success=True, message="Property deleted successfully")
