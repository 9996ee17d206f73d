"""Primary backend: one table in the hosted database."""

from __future__ import annotations

import logging
from typing import Any

from rentalops.services.postgrest import PostgrestClient, PostgrestError, eq
from rentalops.store.base import Backend, StoreResult

logger = logging.getLogger(__name__)


class PostgrestBackend:
    """Record operations over a PostgREST table keyed by ``id``.

    Every :class:`PostgrestError` becomes a failed :class:`StoreResult`.
    A keyed operation that touches zero rows is also reported as a failure,
    not as "not found": the hosted table may simply not hold a record that
    the fallback store does.
    """

    backend = Backend.PRIMARY

    def __init__(self, client: PostgrestClient, table: str) -> None:
        self._client = client
        self._table = table

    def _failed(self, action: str, exc: PostgrestError) -> StoreResult:
        logger.debug("Primary %s on %s failed: %s", action, self._table, exc.message)
        return StoreResult.failed(self.backend, exc.message)

    async def list(self, filters: dict[str, Any] | None = None) -> StoreResult:
        conditions = [eq(column, value) for column, value in (filters or {}).items()]
        try:
            rows = await self._client.select(self._table, filters=conditions, order="created_at", ascending=False)
        except PostgrestError as exc:
            return self._failed("list", exc)
        return StoreResult.ok(self.backend, rows)

    async def get(self, record_id: str) -> StoreResult:
        try:
            row = await self._client.select(self._table, filters=[eq("id", record_id)], single=True)
        except PostgrestError as exc:
            return self._failed("get", exc)
        return StoreResult.ok(self.backend, row)

    async def create(self, record: dict[str, Any]) -> StoreResult:
        try:
            rows = await self._client.insert(self._table, record)
        except PostgrestError as exc:
            return self._failed("create", exc)
        if not rows:
            return StoreResult.failed(self.backend, "Insert returned no rows")
        return StoreResult.ok(self.backend, rows[0])

    async def update(self, record_id: str, changes: dict[str, Any]) -> StoreResult:
        try:
            rows = await self._client.update(self._table, changes, filters=[eq("id", record_id)])
        except PostgrestError as exc:
            return self._failed("update", exc)
        if not rows:
            return StoreResult.failed(self.backend, f"No row with id {record_id}")
        return StoreResult.ok(self.backend, rows[0])

    async def delete(self, record_id: str) -> StoreResult:
        try:
            rows = await self._client.delete(self._table, filters=[eq("id", record_id)])
        except PostgrestError as exc:
            return self._failed("delete", exc)
        if not rows:
            return StoreResult.failed(self.backend, f"No row with id {record_id}")
        return StoreResult.ok(self.backend, rows[0])
