"""Tests for the primary-then-fallback record store and the primary backend.

Covers:
- primary success is returned without touching the fallback
- primary errors and not-found results replay on the fallback
- a missing primary routes everything to the fallback
- PostgrestBackend maps client errors and empty mutations to failures
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from rentalops.services.postgrest import PostgrestClient, PostgrestError
from rentalops.store.base import Backend, StoreResult
from rentalops.store.fallback import JsonFileBackend
from rentalops.store.primary import PostgrestBackend
from rentalops.store.resilient import ResilientRecordStore


def _backend(kind: Backend) -> MagicMock:
    backend = MagicMock()
    backend.backend = kind
    for name in ("list", "get", "create", "update", "delete"):
        setattr(backend, name, AsyncMock())
    return backend


class TestResilientRecordStore:
    """Routing between backends."""

    @pytest.mark.asyncio
    async def test_primary_success_skips_fallback(self) -> None:
        primary = _backend(Backend.PRIMARY)
        fallback = _backend(Backend.FALLBACK)
        primary.create.return_value = StoreResult.ok(Backend.PRIMARY, {"id": "p1"})

        result = await ResilientRecordStore(primary, fallback).create({"room_id": "r1"})

        assert result.source == "supabase"
        assert result.data == {"id": "p1"}
        fallback.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_primary_error_replays_on_fallback(self) -> None:
        primary = _backend(Backend.PRIMARY)
        fallback = _backend(Backend.FALLBACK)
        primary.update.return_value = StoreResult.failed(Backend.PRIMARY, "boom")
        fallback.update.return_value = StoreResult.ok(Backend.FALLBACK, {"id": "x"})

        result = await ResilientRecordStore(primary, fallback).update("x", {"status": "paid"})

        assert result.source == "temporary"
        fallback.update.assert_awaited_once_with("x", {"status": "paid"})

    @pytest.mark.asyncio
    async def test_primary_not_found_replays_on_fallback(self) -> None:
        primary = _backend(Backend.PRIMARY)
        fallback = _backend(Backend.FALLBACK)
        primary.get.return_value = StoreResult.not_found(Backend.PRIMARY)
        fallback.get.return_value = StoreResult.not_found(Backend.FALLBACK)

        result = await ResilientRecordStore(primary, fallback).get("x")

        assert result.is_not_found
        assert result.backend is Backend.FALLBACK

    @pytest.mark.asyncio
    async def test_primary_exception_replays_on_fallback(self) -> None:
        primary = _backend(Backend.PRIMARY)
        fallback = _backend(Backend.FALLBACK)
        primary.create.side_effect = RuntimeError("boom")
        fallback.create.return_value = StoreResult.ok(Backend.FALLBACK, {"id": "f1"})

        result = await ResilientRecordStore(primary, fallback).create({"room_id": "r1"})

        assert result.source == "temporary"
        assert result.data == {"id": "f1"}
        fallback.create.assert_awaited_once_with({"room_id": "r1"})

    @pytest.mark.asyncio
    async def test_without_primary_uses_fallback(self, tmp_path: Path) -> None:
        fallback = JsonFileBackend(tmp_path / "invoices.json")
        store = ResilientRecordStore(None, fallback)

        created = await store.create({"room_id": "r1"})
        listed = await store.list({"room_id": "r1"})

        assert created.source == "temporary"
        assert [r["id"] for r in listed.data] == [created.data["id"]]


@pytest.fixture()
def client() -> MagicMock:
    db = MagicMock(spec=PostgrestClient)
    db.select = AsyncMock(return_value=[])
    db.insert = AsyncMock(return_value=[])
    db.update = AsyncMock(return_value=[])
    db.delete = AsyncMock(return_value=[])
    return db


class TestPostgrestBackend:
    """Primary backend result mapping."""

    @pytest.mark.asyncio
    async def test_list_orders_newest_first_with_filters(self, client: MagicMock) -> None:
        client.select.return_value = [{"id": "a"}]
        result = await PostgrestBackend(client, "rental_invoices").list({"room_id": "r1"})

        assert result.succeeded
        assert result.data == [{"id": "a"}]
        client.select.assert_awaited_once_with(
            "rental_invoices", filters=[("room_id", "eq.r1")], order="created_at", ascending=False
        )

    @pytest.mark.asyncio
    async def test_get_uses_single_row(self, client: MagicMock) -> None:
        client.select.return_value = {"id": "a"}
        result = await PostgrestBackend(client, "rental_invoices").get("a")

        assert result.data == {"id": "a"}
        assert client.select.await_args.kwargs["single"] is True

    @pytest.mark.asyncio
    async def test_client_error_is_failed_result(self, client: MagicMock) -> None:
        client.insert.side_effect = PostgrestError("relation does not exist", status_code=404, code="42P01")
        result = await PostgrestBackend(client, "rental_invoices").create({"room_id": "r1"})

        assert not result.succeeded
        assert not result.is_not_found
        assert result.error == "relation does not exist"

    @pytest.mark.asyncio
    async def test_create_returns_first_row(self, client: MagicMock) -> None:
        client.insert.return_value = [{"id": "new"}]
        result = await PostgrestBackend(client, "rental_invoices").create({"room_id": "r1"})
        assert result.data == {"id": "new"}
        assert result.source == "supabase"

    @pytest.mark.asyncio
    async def test_update_of_zero_rows_fails(self, client: MagicMock) -> None:
        result = await PostgrestBackend(client, "rental_invoices").update("x", {"status": "paid"})
        assert not result.succeeded

    @pytest.mark.asyncio
    async def test_delete_of_zero_rows_fails(self, client: MagicMock) -> None:
        result = await PostgrestBackend(client, "rental_invoices").delete("x")
        assert not result.succeeded
