"""Dashboard summary endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from rentalops.dependencies import DatabaseDep
from rentalops.schemas import ApiResponse
from rentalops.services.dashboard_service import DashboardService

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=ApiResponse, response_model_exclude_none=True)
async def dashboard_stats(db: DatabaseDep) -> ApiResponse:
    stats = await DashboardService(db).stats()
    return ApiResponse(success=True, data=stats.model_dump())
