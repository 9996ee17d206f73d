"""Receipt color theme endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from rentalops.dependencies import DatabaseDep
from rentalops.schemas import ApiResponse, ColorThemeCreate
from rentalops.services.postgrest import PostgrestError
from rentalops.services.theme_service import ThemeNotFoundError, ThemeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/color-themes", tags=["color-themes"])


class SetDefaultRequest(BaseModel):
    """Request body for ``POST /api/color-themes/set-default``."""

    theme_id: str | None = Field(default=None, alias="themeId", description="Theme to make the default.")


@router.get("", response_model=ApiResponse, response_model_exclude_none=True)
async def list_themes(db: DatabaseDep) -> ApiResponse:
    """Return all themes, oldest first."""
    themes = await ThemeService(db).list_themes()
    return ApiResponse(success=True, data=themes)


@router.post("", response_model=ApiResponse, response_model_exclude_none=True)
async def create_theme(body: ColorThemeCreate, db: DatabaseDep) -> ApiResponse:
    theme = await ThemeService(db).create_theme(body)
    return ApiResponse(success=True, data=theme, message="Color theme created successfully")


@router.post("/set-default", response_model=ApiResponse, response_model_exclude_none=True)
async def set_default_theme(body: SetDefaultRequest, db: DatabaseDep) -> ApiResponse:
    """Make one theme the default for every receipt."""
    if not body.theme_id:
        raise HTTPException(status_code=400, detail="Theme ID is required")
    try:
        theme = await ThemeService(db).set_default(body.theme_id)
    except ThemeNotFoundError:
        raise HTTPException(status_code=404, detail="Theme not found") from None
    except PostgrestError as exc:
        logger.error("Setting default theme %s failed: %s", body.theme_id, exc.message)
        raise HTTPException(status_code=500, detail="Failed to set default theme") from exc
    return ApiResponse(
        success=True,
        data=theme,
        message=f'Đã đặt "{theme.get("name")}" làm màu mặc định cho tất cả biên lai',
    )
