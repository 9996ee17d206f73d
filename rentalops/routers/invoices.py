"""Invoice endpoints backed by the resilient record store.

Every response names the backend that served it in ``source``:
``"supabase"`` for the hosted database, ``"temporary"`` for the local
fallback file.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query

from rentalops.dependencies import InvoiceServiceDep, TempStorageServiceDep
from rentalops.schemas import ApiResponse, InvoiceCreate, InvoiceUpdate, InvoiceUpdateWithId
from rentalops.store.base import Backend, StoreResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invoices", tags=["invoices"])

_NOT_FOUND = "Invoice not found"


def _raise_for_result(result: StoreResult, action: str) -> None:
    if result.is_not_found:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    if not result.succeeded:
        logger.error("Invoice %s failed on %s backend: %s", action, result.source, result.error)
        raise HTTPException(status_code=500, detail=f"Failed to {action} invoice")


def _list_message(result: StoreResult, empty: str, found: str) -> str | None:
    if result.backend is not Backend.FALLBACK:
        return None
    return empty if not result.data else found.format(count=len(result.data))


@router.get("", response_model=ApiResponse, response_model_exclude_none=True)
async def list_invoices(service: InvoiceServiceDep) -> ApiResponse:
    """Return every invoice, newest first."""
    result = await service.list_invoices()
    if not result.succeeded:
        _raise_for_result(result, "fetch")
    return ApiResponse(
        success=True,
        data=result.data,
        source=result.source,
        message=_list_message(
            result,
            "No invoices found. Create your first invoice!",
            "Found {count} invoices in temporary storage",
        ),
    )


@router.post("", response_model=ApiResponse, response_model_exclude_none=True)
async def create_invoice(body: InvoiceCreate, service: InvoiceServiceDep) -> ApiResponse:
    """Create an invoice, generating ``INV-YYYYMM-####`` when no number is given."""
    result = await service.create_invoice(body)
    _raise_for_result(result, "create")
    message = (
        "Invoice saved to database successfully!"
        if result.backend is Backend.PRIMARY
        else "Invoice saved to temporary storage successfully! (Database not available)"
    )
    return ApiResponse(success=True, data=result.data, source=result.source, message=message)


@router.put("", response_model=ApiResponse, response_model_exclude_none=True)
async def replace_invoice(body: InvoiceUpdateWithId, service: InvoiceServiceDep) -> ApiResponse:
    """Update the invoice whose ``id`` is carried in the body."""
    if not body.id:
        raise HTTPException(status_code=400, detail="Invoice ID is required")
    result = await service.update_invoice(body.id, body)
    _raise_for_result(result, "update")
    return ApiResponse(success=True, data=result.data, source=result.source, message="Invoice updated successfully")


@router.get("/by-room/{room_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def list_invoices_for_room(room_id: str, service: InvoiceServiceDep) -> ApiResponse:
    result = await service.list_for_room(room_id)
    if not result.succeeded:
        _raise_for_result(result, "fetch")
    return ApiResponse(
        success=True,
        data=result.data,
        source=result.source,
        message=_list_message(
            result,
            "No invoices found for this room. Create your first invoice!",
            "Found {count} invoices for this room in temporary storage",
        ),
    )


@router.get("/{invoice_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_invoice(invoice_id: str, service: InvoiceServiceDep) -> ApiResponse:
    result = await service.get_invoice(invoice_id)
    _raise_for_result(result, "fetch")
    return ApiResponse(success=True, data=result.data, source=result.source)


@router.patch("/{invoice_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def update_invoice(invoice_id: str, body: InvoiceUpdate, service: InvoiceServiceDep) -> ApiResponse:
    result = await service.update_invoice(invoice_id, body)
    _raise_for_result(result, "update")
    return ApiResponse(success=True, data=result.data, source=result.source, message="Invoice updated successfully")


@router.delete("/{invoice_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def delete_invoice(invoice_id: str, service: InvoiceServiceDep) -> ApiResponse:
    result = await service.delete_invoice(invoice_id)
    _raise_for_result(result, "delete")
    where = "database" if result.backend is Backend.PRIMARY else "temporary storage"
    return ApiResponse(success=True, source=result.source, message=f"Invoice deleted successfully from {where}")


# ---------------------------------------------------------------------------
# Direct access to the local fallback file
# ---------------------------------------------------------------------------

temp_storage_router = APIRouter(prefix="/api/invoices/temp-storage", tags=["invoices"])


@temp_storage_router.get("", response_model=ApiResponse, response_model_exclude_none=True)
async def list_temp_invoices(
    service: TempStorageServiceDep,
    room_id: str | None = Query(default=None),
) -> ApiResponse:
    """Invoices held in the local file, optionally for one room."""
    result = await (service.list_for_room(room_id) if room_id else service.list_invoices())
    if not result.succeeded:
        _raise_for_result(result, "read")
    return ApiResponse(
        success=True,
        data=result.data,
        source=result.source,
        message=f"Found {len(result.data)} invoices",
    )


@temp_storage_router.post("", response_model=ApiResponse, response_model_exclude_none=True)
async def create_temp_invoice(body: InvoiceCreate, service: TempStorageServiceDep) -> ApiResponse:
    result = await service.create_invoice(body)
    _raise_for_result(result, "create")
    return ApiResponse(success=True, data=result.data, source=result.source, message="Invoice created successfully")


@temp_storage_router.put("", response_model=ApiResponse, response_model_exclude_none=True)
async def update_temp_invoice(body: InvoiceUpdateWithId, service: TempStorageServiceDep) -> ApiResponse:
    if not body.id:
        raise HTTPException(status_code=400, detail="Invoice ID is required")
    result = await service.update_invoice(body.id, body)
    _raise_for_result(result, "update")
    return ApiResponse(success=True, data=result.data, source=result.source, message="Invoice updated successfully")


@temp_storage_router.delete("", response_model=ApiResponse, response_model_exclude_none=True)
async def delete_temp_invoice(
    service: TempStorageServiceDep,
    invoice_id: str | None = Query(default=None, alias="id"),
) -> ApiResponse:
    if not invoice_id:
        raise HTTPException(status_code=400, detail="Invoice ID required")
    result = await service.delete_invoice(invoice_id)
    _raise_for_result(result, "delete")
    return ApiResponse(success=True, source=result.source, message="Invoice deleted successfully")
