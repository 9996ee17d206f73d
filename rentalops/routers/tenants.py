"""Tenant endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from rentalops.dependencies import DatabaseDep
from rentalops.schemas import ApiResponse, TenantCreate, TenantUpdate
from rentalops.services.rental_service import TenantService

router = APIRouter(prefix="/api/tenants", tags=["tenants"])

_NOT_FOUND = "Tenant not found"


@router.get("", response_model=ApiResponse, response_model_exclude_none=True)
async def list_tenants(
    db: DatabaseDep,
    search: str | None = Query(default=None, description="Substring of name, phone or email."),
) -> ApiResponse:
    return ApiResponse(success=True, data=await TenantService(db).list_tenants(search=search))


@router.post("", response_model=ApiResponse, response_model_exclude_none=True)
async def create_tenant(body: TenantCreate, db: DatabaseDep) -> ApiResponse:
    row = await TenantService(db).create_tenant(body)
    return ApiResponse(success=True, data=row, message="Tenant created successfully")


@router.get("/{tenant_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_tenant(tenant_id: str, db: DatabaseDep) -> ApiResponse:
    row = await TenantService(db).get_tenant(tenant_id)
    if row is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return ApiResponse(success=True, data=row)


@router.patch("/{tenant_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def update_tenant(tenant_id: str, body: TenantUpdate, db: DatabaseDep) -> ApiResponse:
    row = await TenantService(db).update_tenant(tenant_id, body)
    if row is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return ApiResponse(success=True, data=row, message="Tenant updated successfully")


@router.delete("/{tenant_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def delete_tenant(tenant_id: str, db: DatabaseDep) -> ApiResponse:
    if not await TenantService(db).delete_tenant(tenant_id):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return ApiResponse(success=True, message="Tenant deleted successfully")
