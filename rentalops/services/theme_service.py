"""Receipt color themes."""

from __future__ import annotations

import logging
from typing import Any

from rentalops.schemas import ColorThemeCreate
from rentalops.services.postgrest import NIL_UUID, PostgrestClient, PostgrestError, eq, neq

logger = logging.getLogger(__name__)

THEME_TABLE = "color_themes"


class ThemeNotFoundError(LookupError):
    pass


class ThemeService:
    """Create and list themes and maintain the single default theme."""

    def __init__(self, db: PostgrestClient) -> None:
        self._db = db

    async def list_themes(self) -> list[dict[str, Any]]:
        return await self._db.select(THEME_TABLE, order="created_at", ascending=True)

    async def _clear_default(self) -> None:
        await self._db.update(THEME_TABLE, {"is_default": False}, filters=[neq("id", NIL_UUID)])

    async def create_theme(self, payload: ColorThemeCreate) -> dict[str, Any]:
        """Insert a theme; a new default theme replaces the previous one."""
        if payload.is_default:
            await self._clear_default()
        rows = await self._db.insert(THEME_TABLE, payload.model_dump())
        if not rows:
            raise PostgrestError("Insert returned no rows")
        logger.info("Created color theme %s", rows[0].get("name"))
        return rows[0]

    async def set_default(self, theme_id: str) -> dict[str, Any]:
        """Make *theme_id* the only default theme.

        Raises
        ------
        ThemeNotFoundError
            If no theme has that id.  Defaults have already been cleared
            at that point.
        """
        await self._clear_default()
        rows = await self._db.update(THEME_TABLE, {"is_default": True}, filters=[eq("id", theme_id)])
        if not rows:
            raise ThemeNotFoundError(theme_id)
        logger.info("Default color theme set to %s", theme_id)
        return rows[0]
