"""Invoice lifecycle over the resilient record store.

The service applies invoice-specific rules (number generation, defaults,
immutable ids) and hands every persistence call to a
:class:`~rentalops.store.resilient.ResilientRecordStore`; callers receive
the store's :class:`~rentalops.store.base.StoreResult` unchanged so they
can report which backend answered.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any

from rentalops.schemas import InvoiceCreate, InvoiceUpdate
from rentalops.store.base import StoreResult
from rentalops.store.resilient import ResilientRecordStore

logger = logging.getLogger(__name__)

INVOICE_TABLE = "rental_invoices"


def generate_invoice_number(now: datetime | None = None, epoch_ms: int | None = None) -> str:
    """Return ``INV-YYYYMM-####``.

    The suffix is the last four digits of the current epoch milliseconds,
    so two invoices created in the same month may collide.  Callers that
    need guaranteed uniqueness must supply their own number.
    """
    current = now or datetime.now()
    millis = epoch_ms if epoch_ms is not None else time.time_ns() // 1_000_000
    return f"INV-{current.year}{current.month:02d}-{str(millis)[-4:]}"


class InvoiceService:
    """CRUD over rental invoices."""

    def __init__(self, store: ResilientRecordStore) -> None:
        self._store = store

    async def list_invoices(self) -> StoreResult:
        return await self._store.list()

    async def list_for_room(self, room_id: str) -> StoreResult:
        return await self._store.list({"room_id": room_id})

    async def get_invoice(self, invoice_id: str) -> StoreResult:
        return await self._store.get(invoice_id)

    async def create_invoice(self, payload: InvoiceCreate) -> StoreResult:
        record: dict[str, Any] = payload.model_dump(mode="json")
        if not record.get("invoice_number"):
            record["invoice_number"] = generate_invoice_number()
        result = await self._store.create(record)
        if result.succeeded:
            logger.info(
                "Created invoice %s for room %s (%s)",
                record["invoice_number"],
                record["room_id"],
                result.source,
            )
        return result

    async def update_invoice(self, invoice_id: str, payload: InvoiceUpdate) -> StoreResult:
        return await self._store.update(invoice_id, payload.changes())

    async def delete_invoice(self, invoice_id: str) -> StoreResult:
        result = await self._store.delete(invoice_id)
        if result.succeeded:
            logger.info("Deleted invoice %s (%s)", invoice_id, result.source)
        return result
