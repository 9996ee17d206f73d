"""Bulk data maintenance run with the service-role key."""

from __future__ import annotations

import logging
from typing import Any

from rentalops.services import seed_data
from rentalops.services.contract_service import CONTRACT_TABLE
from rentalops.services.invoice_service import INVOICE_TABLE
from rentalops.services.postgrest import NIL_UUID, PostgrestClient, PostgrestError, neq
from rentalops.services.rental_service import PROPERTY_TABLE, ROOM_TABLE, TENANT_TABLE

logger = logging.getLogger(__name__)

# Children before parents so foreign keys never block a delete.
CLEAR_ORDER: tuple[str, ...] = (
    INVOICE_TABLE,
    "payment_records",
    "receipts",
    CONTRACT_TABLE,
    ROOM_TABLE,
    TENANT_TABLE,
    PROPERTY_TABLE,
)


class ClearError(Exception):
    """Deleting rows from *table* failed; earlier tables are already empty."""

    def __init__(self, table: str, message: str, details: dict[str, str]) -> None:
        super().__init__(f"Lỗi xóa {table}: {message}")
        self.table = table
        self.details = details


class AdminService:
    """Seed and wipe the whole dataset.

    The client must carry the service-role key: both operations touch rows
    owned by every user.
    """

    def __init__(self, db: PostgrestClient) -> None:
        self._db = db

    async def clear_all(self) -> dict[str, str]:
        """Delete every row from :data:`CLEAR_ORDER` tables, in order.

        Returns
        -------
        dict
            ``table -> "cleared (N remaining)"`` for each table.

        Raises
        ------
        ClearError
            On the first table that cannot be cleared.
        """
        details: dict[str, str] = {}
        for table in CLEAR_ORDER:
            try:
                await self._db.delete(table, filters=[neq("id", NIL_UUID)])
                remaining = await self._db.count(table)
            except PostgrestError as exc:
                logger.error("Clearing %s failed: %s", table, exc.message)
                raise ClearError(table, exc.message, details) from exc
            details[table] = f"cleared ({remaining} remaining)"
            logger.info("Cleared %s (%d remaining)", table, remaining)
        return details

    async def seed(self) -> dict[str, int]:
        """Insert the sample portfolio and return inserted row counts per table."""
        properties = await self._db.insert(PROPERTY_TABLE, seed_data.PROPERTIES)
        tenants = await self._db.insert(TENANT_TABLE, seed_data.TENANTS)

        room_rows: list[dict[str, Any]] = []
        for room in seed_data.ROOMS:
            row = {k: v for k, v in room.items() if k != "property"}
            row["property_id"] = properties[room["property"]]["id"]
            room_rows.append(row)
        rooms = await self._db.insert(ROOM_TABLE, room_rows)

        contract_rows: list[dict[str, Any]] = []
        for contract in seed_data.CONTRACTS:
            room = rooms[contract["room"]]
            contract_rows.append(
                {
                    "room_id": room["id"],
                    "tenant_id": tenants[contract["tenant"]]["id"],
                    "start_date": contract["start_date"],
                    "monthly_rent": room["rent_amount"],
                    "deposit_amount": room.get("deposit_amount"),
                    "renewal_count": contract["renewal_count"],
                    "status": contract["status"],
                }
            )
        contracts = await self._db.insert(CONTRACT_TABLE, contract_rows)

        invoice_rows: list[dict[str, Any]] = []
        for invoice in seed_data.INVOICES:
            contract = contracts[invoice["contract"]]
            row = {k: v for k, v in invoice.items() if k != "contract"}
            row.update(room_id=contract["room_id"], tenant_id=contract["tenant_id"], contract_id=contract["id"])
            invoice_rows.append(row)
        invoices = await self._db.insert(INVOICE_TABLE, invoice_rows)

        counts = {
            PROPERTY_TABLE: len(properties),
            TENANT_TABLE: len(tenants),
            ROOM_TABLE: len(rooms),
            CONTRACT_TABLE: len(contracts),
            INVOICE_TABLE: len(invoices),
        }
        logger.info("Seeded sample data: %s", counts)
        return counts
