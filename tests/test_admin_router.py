"""Tests for dataset seeding and clearing.

Covers:
- clear order (children before parents) and per-table details
- first failing table stops the run and is reported with partial details
- seed wiring of foreign keys between inserted rows
- 503 without a service-role client
"""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient

from rentalops.services import seed_data
from rentalops.services.admin_service import CLEAR_ORDER
from rentalops.services.postgrest import PostgrestError


def _echo_insert(table: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{**row, "id": f"{table}-{i}"} for i, row in enumerate(rows)]


class TestClear:
    """POST /api/admin/clear."""

    @pytest.mark.asyncio
    async def test_clears_in_dependency_order(self, client: AsyncClient, mock_db: MagicMock) -> None:
        resp = await client.post("/api/admin/clear")

        body = resp.json()
        assert resp.status_code == 200
        assert body["message"] == "Đã xóa thành công toàn bộ dữ liệu"
        assert list(body["details"]) == list(CLEAR_ORDER)
        assert body["details"]["rooms"] == "cleared (0 remaining)"
        deleted = [call.args[0] for call in mock_db.delete.await_args_list]
        assert deleted == list(CLEAR_ORDER)
        assert deleted.index("rental_invoices") < deleted.index("rental_contracts") < deleted.index("rooms")

    @pytest.mark.asyncio
    async def test_failure_stops_and_reports_table(self, client: AsyncClient, mock_db: MagicMock) -> None:
        async def delete(table: str, *, filters):
            if table == "rental_contracts":
                raise PostgrestError("permission denied")
            return []

        mock_db.delete.side_effect = delete

        resp = await client.post("/api/admin/clear")

        body = resp.json()
        assert resp.status_code == 500
        assert body["success"] is False
        assert body["error"] == "Lỗi xóa rental_contracts: permission denied"
        assert list(body["details"]) == ["rental_invoices", "payment_records", "receipts"]
        assert "rooms" not in [call.args[0] for call in mock_db.delete.await_args_list]

    @pytest.mark.asyncio
    async def test_without_service_role_is_503(self, app, client: AsyncClient) -> None:
        app.state.postgrest_admin = None

        resp = await client.post("/api/admin/clear")

        assert resp.status_code == 503
        assert resp.json()["error"] == "Supabase service role key is not configured"


class TestSeed:
    """POST /api/admin/seed."""

    @pytest.mark.asyncio
    async def test_seed_links_rows(self, client: AsyncClient, mock_db: MagicMock) -> None:
        mock_db.insert.side_effect = _echo_insert

        resp = await client.post("/api/admin/seed")

        body = resp.json()
        assert body["success"] is True
        assert body["details"]["properties"] == len(seed_data.PROPERTIES)
        assert body["details"]["rental_invoices"] == len(seed_data.INVOICES)

        inserted = {call.args[0]: call.args[1] for call in mock_db.insert.await_args_list}
        assert list(inserted) == ["properties", "tenants", "rooms", "rental_contracts", "rental_invoices"]
        assert all(room["property_id"].startswith("properties-") for room in inserted["rooms"])
        assert all("property" not in room for room in inserted["rooms"])
        first_contract = inserted["rental_contracts"][0]
        assert first_contract["room_id"].startswith("rooms-")
        assert first_contract["tenant_id"].startswith("tenants-")
        assert all(inv["contract_id"].startswith("rental_contracts-") for inv in inserted["rental_invoices"])
