"""Rental contracts and the room occupancy they drive.

A room is ``occupied`` exactly while it has an ``active`` contract; every
operation here updates the room status alongside the contract.  The hosted
data API offers no multi-statement transactions, so a failure between the
two writes can leave them out of step.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from rentalops.schemas import Amount, ContractCreate, ContractUpdate
from rentalops.services.postgrest import PostgrestClient, PostgrestError, eq, in_
from rentalops.services.rental_service import ROOM_TABLE, fetch_one

logger = logging.getLogger(__name__)

CONTRACT_TABLE = "rental_contracts"

_ROOM_SUMMARY_COLUMNS = "id,room_number,rent_amount,status,property:properties(id,name,address)"
_CONTRACT_SUMMARY_COLUMNS = (
    "id,room_id,monthly_rent,start_date,end_date,status,tenant:tenants(id,full_name,phone,email)"
)
_CONTRACT_DETAIL_COLUMNS = "*,room:rooms(*,property:properties(*)),tenant:tenants(*)"


class ContractRuleError(Exception):
    """A contract operation violates an occupancy rule.

    The message is user-facing.  ``status_code`` is the HTTP status the
    API reports for it.
    """

    def __init__(self, message: str, *, status_code: int = 409) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ContractService:
    def __init__(self, db: PostgrestClient) -> None:
        self._db = db

    async def list_contracts(self, *, status: str | None = None) -> list[dict[str, Any]]:
        filters = [eq("status", status)] if status else []
        return await self._db.select(
            CONTRACT_TABLE,
            columns=_CONTRACT_DETAIL_COLUMNS,
            filters=filters,
            order="created_at",
            ascending=False,
        )

    async def _set_room_status(self, room_id: str, status: str) -> None:
        await self._db.update(ROOM_TABLE, {"status": status}, filters=[eq("id", room_id)])

    async def _active_contract(self, column: str, value: str, error_message: str) -> dict[str, Any] | None:
        try:
            rows = await self._db.select(
                CONTRACT_TABLE, filters=[eq(column, value), eq("status", "active")], limit=1
            )
        except PostgrestError as exc:
            logger.warning("Active contract lookup on %s=%s failed: %s", column, value, exc.message)
            raise ContractRuleError(error_message, status_code=502) from exc
        return rows[0] if rows else None

    async def create_contract(self, payload: ContractCreate) -> dict[str, Any]:
        """Open a contract and mark its room occupied.

        Raises
        ------
        ContractRuleError
            If the room does not exist, is already occupied, or the tenant
            already holds an active contract.
        """
        room = await fetch_one(self._db, ROOM_TABLE, payload.room_id)
        if room is None:
            raise ContractRuleError("Không tìm thấy phòng", status_code=404)
        if room.get("status") == "occupied":
            raise ContractRuleError("Phòng này đã có người thuê")

        existing = await self._active_contract("tenant_id", payload.tenant_id, "Không thể kiểm tra hợp đồng")
        if existing:
            raise ContractRuleError("Người thuê này đã có hợp đồng đang hoạt động")

        rows = await self._db.insert(CONTRACT_TABLE, payload.model_dump())
        contract = rows[0]
        await self._set_room_status(payload.room_id, "occupied")
        logger.info("Contract %s opened for tenant %s in room %s", contract.get("id"), payload.tenant_id, payload.room_id)
        return contract

    async def terminate_contract(self, contract_id: str) -> None:
        contract = await fetch_one(self._db, CONTRACT_TABLE, contract_id)
        if contract is None:
            raise ContractRuleError("Hợp đồng không tồn tại", status_code=404)
        await self._db.update(CONTRACT_TABLE, {"status": "terminated"}, filters=[eq("id", contract_id)])
        await self._set_room_status(contract["room_id"], "available")
        logger.info("Contract %s terminated; room %s available", contract_id, contract["room_id"])

    async def update_contract(self, contract_id: str, payload: ContractUpdate) -> dict[str, Any] | None:
        """Apply an edit or renewal; returns the contract with room, property and tenant, or ``None``."""
        rows = await self._db.update(
            CONTRACT_TABLE,
            payload.model_dump(exclude_unset=True),
            filters=[eq("id", contract_id)],
            columns=_CONTRACT_DETAIL_COLUMNS,
        )
        return rows[0] if rows else None

    async def assign_tenant(self, room_id: str, tenant_id: str, monthly_rent: Amount) -> dict[str, Any]:
        """Open a contract starting today."""
        return await self.create_contract(
            ContractCreate(
                room_id=room_id,
                tenant_id=tenant_id,
                start_date=date.today().isoformat(),
                monthly_rent=monthly_rent,
            )
        )

    async def unassign_tenant(self, room_id: str) -> None:
        contract = await self._active_contract("room_id", room_id, "Không thể kiểm tra hợp đồng")
        if contract is None:
            raise ContractRuleError("Không tìm thấy hợp đồng đang hoạt động cho phòng này", status_code=404)
        await self.terminate_contract(contract["id"])

    async def transfer_tenant(
        self,
        from_room_id: str,
        to_room_id: str,
        new_monthly_rent: Amount | None = None,
    ) -> dict[str, Any]:
        """Move the tenant of *from_room_id* into *to_room_id*.

        The old contract is terminated and a new one starting today is
        opened; the deposit carries over and the rent defaults to the
        destination room's rent.
        """
        current = await self._active_contract("room_id", from_room_id, "Không thể kiểm tra hợp đồng hiện tại")
        if current is None:
            raise ContractRuleError("Không tìm thấy hợp đồng đang hoạt động", status_code=404)

        target = await fetch_one(self._db, ROOM_TABLE, to_room_id)
        if target is None:
            raise ContractRuleError("Không tìm thấy phòng đích", status_code=404)
        if target.get("status") == "occupied":
            raise ContractRuleError("Phòng đích đã có người thuê")

        await self.terminate_contract(current["id"])
        return await self.create_contract(
            ContractCreate(
                room_id=to_room_id,
                tenant_id=current["tenant_id"],
                start_date=date.today().isoformat(),
                monthly_rent=(
                    new_monthly_rent if new_monthly_rent is not None else target.get("rent_amount") or 0
                ),
                deposit_amount=current.get("deposit_amount"),
            )
        )

    async def occupied_rooms(self) -> list[dict[str, Any]]:
        """Occupied rooms with their property and current contract.

        A failed contract lookup degrades to rooms without contract
        details rather than failing the whole listing.
        """
        rooms = await self._db.select(ROOM_TABLE, columns=_ROOM_SUMMARY_COLUMNS, filters=[eq("status", "occupied")])
        if not rooms:
            return []

        try:
            contracts = await self._db.select(
                CONTRACT_TABLE,
                columns=_CONTRACT_SUMMARY_COLUMNS,
                filters=[in_("room_id", [room["id"] for room in rooms]), eq("status", "active")],
            )
        except PostgrestError as exc:
            logger.warning("Contract lookup for occupied rooms failed: %s", exc.message)
            contracts = []

        by_room: dict[str, dict[str, Any]] = {}
        for contract in contracts:
            by_room.setdefault(contract["room_id"], contract)

        result: list[dict[str, Any]] = []
        for room in rooms:
            prop = room.get("property") or {}
            contract = by_room.get(room["id"])
            result.append(
                {
                    "id": room["id"],
                    "room_number": room.get("room_number"),
                    "rent_amount": room.get("rent_amount"),
                    "status": room.get("status"),
                    "property": {
                        "id": prop.get("id"),
                        "name": prop.get("name") or "Unknown Property",
                        "address": prop.get("address") or "No address",
                    },
                    "current_contract": (
                        {
                            "id": contract["id"],
                            "monthly_rent": contract.get("monthly_rent"),
                            "start_date": contract.get("start_date"),
                            "end_date": contract.get("end_date"),
                            "status": contract.get("status"),
                            "tenant": contract.get("tenant"),
                        }
                        if contract
                        else None
                    ),
                }
            )
        return result
