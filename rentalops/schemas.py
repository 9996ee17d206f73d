"""Shared Pydantic models: the response envelope and record schemas.

Request bodies are validated against these models at the HTTP boundary so
that every record reaching a backend already has its defaults applied.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

InvoiceStatus = Literal["draft", "sent", "paid", "overdue", "cancelled"]
TemplateType = Literal["simple", "professional"]
RoomStatus = Literal["available", "occupied", "maintenance"]
ContractStatus = Literal["active", "expired", "terminated"]
PropertyStatus = Literal["active", "inactive"]

# Integer amounts stay integers; fractional amounts stay floats.
Amount = int | float

# Days between issue date and default due date.
DEFAULT_PAYMENT_TERM_DAYS = 7


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class ApiResponse(BaseModel):
    """Uniform JSON body returned by every ``/api`` endpoint.

    ``source`` names the backend that served an invoice operation
    (``"supabase"`` or ``"temporary"``).
    """

    success: bool
    data: Any = None
    error: str | None = None
    message: str | None = None
    source: str | None = None
    details: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------

_AMOUNT_FIELDS = (
    "rent_amount",
    "electricity_previous_reading",
    "electricity_current_reading",
    "electricity_unit_price",
    "electricity_amount",
    "water_previous_reading",
    "water_current_reading",
    "water_unit_price",
    "water_amount",
    "internet_amount",
    "trash_amount",
    "total_amount",
)

_NOTE_FIELDS = ("electricity_note", "water_note", "internet_note", "trash_note", "notes")


def _blank_to_zero(value: Any) -> Any:
    return 0 if value is None or value == "" else value


def _none_to_empty(value: Any) -> Any:
    return "" if value is None else value


class OtherFee(BaseModel):
    """Free-form line item added to an invoice."""

    name: str
    amount: Amount = 0
    note: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Any:
        return _blank_to_zero(value)


class InvoiceUpdate(BaseModel):
    """Partial invoice change.  Only fields present in the body are applied."""

    room_id: str | None = None
    tenant_id: str | None = None
    contract_id: str | None = None
    invoice_number: str | None = None
    period_start: str | None = None
    period_end: str | None = None
    issue_date: str | None = None
    due_date: str | None = None
    template_type: TemplateType | None = None
    status: InvoiceStatus | None = None

    rent_amount: Amount | None = None
    electricity_previous_reading: Amount | None = None
    electricity_current_reading: Amount | None = None
    electricity_unit_price: Amount | None = None
    electricity_amount: Amount | None = None
    electricity_note: str | None = None
    water_previous_reading: Amount | None = None
    water_current_reading: Amount | None = None
    water_unit_price: Amount | None = None
    water_amount: Amount | None = None
    water_note: str | None = None
    internet_amount: Amount | None = None
    internet_note: str | None = None
    trash_amount: Amount | None = None
    trash_note: str | None = None
    other_fees: list[OtherFee] | None = None
    total_amount: Amount | None = None
    notes: str | None = None
    color_settings: dict[str, Any] | None = None
    pdf_url: str | None = None

    @field_validator(*_AMOUNT_FIELDS, mode="before")
    @classmethod
    def _coerce_amounts(cls, value: Any) -> Any:
        return _blank_to_zero(value)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class InvoiceUpdateWithId(InvoiceUpdate):
    """Body of ``PUT /api/invoices``, which carries the target id inline."""

    id: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True, exclude={"id"})


class InvoiceCreate(BaseModel):
    """New invoice.  Everything except the room and tenant has a default."""

    room_id: str = Field(..., min_length=1)
    tenant_id: str = Field(..., min_length=1)
    contract_id: str | None = None
    invoice_number: str | None = Field(
        default=None,
        description="Generated as INV-YYYYMM-#### when omitted.",
    )
    period_start: str | None = None
    period_end: str | None = None
    issue_date: str = Field(default_factory=lambda: date.today().isoformat())
    due_date: str = Field(
        default_factory=lambda: (date.today() + timedelta(days=DEFAULT_PAYMENT_TERM_DAYS)).isoformat()
    )
    template_type: TemplateType = "professional"
    status: InvoiceStatus = "draft"

    rent_amount: Amount = 0
    electricity_previous_reading: Amount = 0
    electricity_current_reading: Amount = 0
    electricity_unit_price: Amount = 0
    electricity_amount: Amount = 0
    electricity_note: str = ""
    water_previous_reading: Amount = 0
    water_current_reading: Amount = 0
    water_unit_price: Amount = 0
    water_amount: Amount = 0
    water_note: str = ""
    internet_amount: Amount = 0
    internet_note: str = ""
    trash_amount: Amount = 0
    trash_note: str = ""
    other_fees: list[OtherFee] = Field(default_factory=list)
    total_amount: Amount = 0
    notes: str = ""
    color_settings: dict[str, Any] | None = None
    pdf_url: str | None = None

    @field_validator(*_AMOUNT_FIELDS, mode="before")
    @classmethod
    def _coerce_amounts(cls, value: Any) -> Any:
        return _blank_to_zero(value)

    @field_validator(*_NOTE_FIELDS, mode="before")
    @classmethod
    def _coerce_notes(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @field_validator("other_fees", mode="before")
    @classmethod
    def _coerce_fees(cls, value: Any) -> Any:
        return [] if value is None else value


# ---------------------------------------------------------------------------
# Color themes
# ---------------------------------------------------------------------------


class ColorThemeCreate(BaseModel):
    """Receipt color theme.  Colors are CSS color strings."""

    name: str = Field(..., min_length=1)
    header_bg: str = Field(..., min_length=1)
    header_text: str = Field(..., min_length=1)
    total_bg: str = Field(..., min_length=1)
    total_text: str = Field(..., min_length=1)
    is_default: bool = False


# ---------------------------------------------------------------------------
# Rental entities
# ---------------------------------------------------------------------------


class PropertyCreate(BaseModel):
    name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    district: str | None = None
    city: str = ""
    description: str | None = None


class PropertyUpdate(BaseModel):
    name: str | None = None
    address: str | None = None
    district: str | None = None
    city: str | None = None
    description: str | None = None
    status: PropertyStatus | None = None


class RoomCreate(BaseModel):
    property_id: str = Field(..., min_length=1)
    room_number: str = Field(..., min_length=1)
    floor: str | None = None
    area_sqm: Amount | None = None
    rent_amount: Amount = 0
    deposit_amount: Amount | None = None
    utilities: list[str] = Field(default_factory=list)
    description: str | None = None
    status: RoomStatus = "available"


class RoomUpdate(BaseModel):
    room_number: str | None = None
    floor: str | None = None
    area_sqm: Amount | None = None
    rent_amount: Amount | None = None
    deposit_amount: Amount | None = None
    utilities: list[str] | None = None
    description: str | None = None
    status: RoomStatus | None = None


class TenantCreate(BaseModel):
    full_name: str = Field(..., min_length=1)
    phone: str | None = None
    email: str | None = None
    id_number: str | None = None
    birth_date: str | None = None
    address: str | None = None
    occupation: str | None = None
    emergency_contact: str | None = None
    emergency_phone: str | None = None
    notes: str | None = None


class TenantUpdate(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    email: str | None = None
    id_number: str | None = None
    birth_date: str | None = None
    address: str | None = None
    occupation: str | None = None
    emergency_contact: str | None = None
    emergency_phone: str | None = None
    notes: str | None = None


class ContractCreate(BaseModel):
    room_id: str = Field(..., min_length=1)
    tenant_id: str = Field(..., min_length=1)
    start_date: str = Field(default_factory=lambda: date.today().isoformat())
    end_date: str | None = None
    monthly_rent: Amount = 0
    deposit_amount: Amount | None = None
    renewal_count: int = 0
    status: ContractStatus = "active"


class ContractUpdate(BaseModel):
    """Contract edit or renewal.  Only fields present in the body are applied."""

    start_date: str | None = None
    end_date: str | None = None
    monthly_rent: Amount | None = None
    deposit_amount: Amount | None = None
    renewal_count: int | None = None
    status: ContractStatus | None = None
