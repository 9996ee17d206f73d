"""Primary-then-fallback record store."""

from __future__ import annotations

import logging
from typing import Any

from rentalops.store.base import RecordBackend, StoreResult

logger = logging.getLogger(__name__)


class ResilientRecordStore:
    """Route each operation to the primary backend, falling back on failure.

    The primary result is inspected after every call; an exception or any
    result other than success is logged and the same logical operation is
    replayed on the fallback, whose result is returned as-is.  There is no retry, no
    queueing of failed primary writes, and no reconciliation between the
    two backends.

    Parameters
    ----------
    primary:
        Hosted backend, or ``None`` when the hosted database is not
        configured (every operation then goes straight to *fallback*).
    fallback:
        Local backend used when *primary* is absent or fails.
    """

    def __init__(self, primary: RecordBackend | None, fallback: RecordBackend) -> None:
        self._primary = primary
        self._fallback = fallback

    async def _run(self, action: str, *args: Any) -> StoreResult:
        if self._primary is not None:
            try:
                result: StoreResult = await getattr(self._primary, action)(*args)
            except Exception as exc:
                logger.warning(
                    "Primary backend %s raised; using %s backend",
                    action,
                    self._fallback.backend.value,
                    exc_info=True,
                )
                result = StoreResult.failed(self._primary.backend, str(exc) or type(exc).__name__)
            if result.succeeded:
                return result
            logger.warning(
                "Primary backend %s failed (%s); using %s backend",
                action,
                result.error,
                self._fallback.backend.value,
            )
        return await getattr(self._fallback, action)(*args)

    async def list(self, filters: dict[str, Any] | None = None) -> StoreResult:
        return await self._run("list", filters)

    async def get(self, record_id: str) -> StoreResult:
        return await self._run("get", record_id)

    async def create(self, record: dict[str, Any]) -> StoreResult:
        return await self._run("create", record)

    async def update(self, record_id: str, changes: dict[str, Any]) -> StoreResult:
        return await self._run("update", record_id, changes)

    async def delete(self, record_id: str) -> StoreResult:
        return await self._run("delete", record_id)
