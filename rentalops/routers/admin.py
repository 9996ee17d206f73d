"""Dataset maintenance endpoints (service-role key required)."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from rentalops.dependencies import AdminDatabaseDep
from rentalops.schemas import ApiResponse
from rentalops.services.admin_service import AdminService, ClearError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/seed", response_model=ApiResponse, response_model_exclude_none=True)
async def seed(db: AdminDatabaseDep) -> ApiResponse:
    """Insert the sample portfolio."""
    counts = await AdminService(db).seed()
    return ApiResponse(success=True, message="Seeded sample data", details=counts)


@router.post("/clear", response_model=ApiResponse, response_model_exclude_none=True)
async def clear(db: AdminDatabaseDep) -> ApiResponse | JSONResponse:
    """Delete every row of every application table."""
    try:
        details = await AdminService(db).clear_all()
    except ClearError as exc:
        return JSONResponse(
            status_code=500,
            content=ApiResponse(success=False, error=str(exc), details=exc.details).model_dump(exclude_none=True),
        )
    return ApiResponse(success=True, message="Đã xóa thành công toàn bộ dữ liệu", details=details)
