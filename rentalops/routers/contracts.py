"""Rental contract endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from rentalops.dependencies import DatabaseDep
from rentalops.schemas import ApiResponse, ContractCreate, ContractUpdate
from rentalops.services.contract_service import ContractService

router = APIRouter(prefix="/api/contracts", tags=["contracts"])


@router.get("", response_model=ApiResponse, response_model_exclude_none=True)
async def list_contracts(db: DatabaseDep, status: str | None = Query(default=None)) -> ApiResponse:
    return ApiResponse(success=True, data=await ContractService(db).list_contracts(status=status))


@router.post("", response_model=ApiResponse, response_model_exclude_none=True)
async def create_contract(body: ContractCreate, db: DatabaseDep) -> ApiResponse:
    """Open a contract; the room becomes occupied."""
    contract = await ContractService(db).create_contract(body)
    return ApiResponse(success=True, data=contract, message="Contract created successfully")


@router.post("/{contract_id}/terminate", response_model=ApiResponse, response_model_exclude_none=True)
async def terminate_contract(contract_id: str, db: DatabaseDep) -> ApiResponse:
    """Terminate a contract; its room becomes available."""
    await ContractService(db).terminate_contract(contract_id)
    return ApiResponse(success=True, message="Contract terminated successfully")


@router.patch("/{contract_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def update_contract(contract_id: str, body: ContractUpdate, db: DatabaseDep) -> ApiResponse:
    """Edit or renew a contract (dates, rent, deposit, renewal count)."""
    contract = await ContractService(db).update_contract(contract_id, body)
    if contract is None:
        raise HTTPException(status_code=404, detail="Hợp đồng không tồn tại")
    return ApiResponse(success=True, data=contract, message="Contract updated successfully")
