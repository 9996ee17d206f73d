"""Sample portfolio inserted by ``POST /api/admin/seed``.

Rows that reference other rows use the index of the referenced row in its
own list; :mod:`rentalops.services.admin_service` swaps in the real ids
after each insert.
"""

from __future__ import annotations

from typing import Any

PROPERTIES: list[dict[str, Any]] = [
    {
        "name": "Nhà trọ Minh Trầm",
        "address": "325/16/9 đường Bach Đằng, Phường Gia Định",
        "district": "Gò Vấp",
        "city": "TP.HCM",
        "description": "Nhà trọ cao cấp với đầy đủ tiện nghi",
        "status": "active",
    },
    {
        "name": "Chung cư mini ABC",
        "address": "123 Nguyễn Văn Cừ, Phường 4",
        "district": "Quận 5",
        "city": "TP.HCM",
        "description": "Chung cư mini tiện nghi",
        "status": "active",
    },
]

TENANTS: list[dict[str, Any]] = [
    {
        "full_name": "Nguyễn Văn A",
        "phone": "0901234567",
        "email": "nguyenvana@email.com",
        "id_number": "123456789",
        "birth_date": "1995-01-01",
        "address": "123 Nguyen Van Linh, Q7, TP.HCM",
        "occupation": "Nhân viên IT",
        "emergency_contact": "Nguyễn Thị B",
        "emergency_phone": "0907654321",
        "notes": "Người thuê tốt, thanh toán đúng hạn",
    },
    {
        "full_name": "Trần Thị C",
        "phone": "0912345678",
        "email": "tranthic@email.com",
        "id_number": "987654321",
        "birth_date": "1992-05-15",
        "address": "456 Le Van Sy, Q3, TP.HCM",
        "occupation": "Kế toán",
        "emergency_contact": "Trần Văn D",
        "emergency_phone": "0909876543",
    },
]

# ``property`` indexes PROPERTIES.
ROOMS: list[dict[str, Any]] = [
    {
        "property": 0,
        "room_number": "Phòng 101",
        "floor": "1",
        "area_sqm": 20,
        "rent_amount": 3500000,
        "deposit_amount": 7000000,
        "status": "occupied",
        "utilities": ["electricity", "water", "internet"],
        "description": "Phòng trọ đầy đủ tiện nghi, có điều hòa",
    },
    {
        "property": 0,
        "room_number": "Phòng 102",
        "floor": "1",
        "area_sqm": 18,
        "rent_amount": 3200000,
        "deposit_amount": 6400000,
        "status": "occupied",
        "utilities": ["electricity", "water", "internet"],
        "description": "Phòng trọ sạch sẽ, thoáng mát",
    },
    {
        "property": 1,
        "room_number": "A301",
        "floor": "3",
        "area_sqm": 25,
        "rent_amount": 4000000,
        "deposit_amount": 8000000,
        "status": "occupied",
        "utilities": ["electricity", "water", "internet", "cable_tv"],
        "description": "Studio mini có ban công",
    },
]

# ``room`` and ``tenant`` index ROOMS and TENANTS; rent and deposit are
# copied from the room.
CONTRACTS: list[dict[str, Any]] = [
    {"room": 0, "tenant": 0, "start_date": "2024-01-01", "renewal_count": 0, "status": "active"},
    {"room": 1, "tenant": 1, "start_date": "2024-02-01", "renewal_count": 0, "status": "active"},
]

# ``contract`` indexes CONTRACTS; room and tenant follow the contract.
INVOICES: list[dict[str, Any]] = [
    {
        "contract": 0,
        "invoice_number": "INV-202412-001",
        "period_start": "2024-12-01",
        "period_end": "2024-12-31",
        "issue_date": "2024-12-01",
        "due_date": "2024-12-10",
        "template_type": "professional",
        "status": "sent",
        "rent_amount": 3500000,
        "electricity_previous_reading": 150,
        "electricity_current_reading": 205,
        "electricity_unit_price": 3500,
        "electricity_amount": 192500,
        "electricity_note": "Điện tháng 12/2024",
        "water_previous_reading": 25,
        "water_current_reading": 32,
        "water_unit_price": 25000,
        "water_amount": 175000,
        "water_note": "Nước tháng 12/2024",
        "internet_amount": 200000,
        "internet_note": "Wifi FPT",
        "trash_amount": 50000,
        "trash_note": "Phí vệ sinh chung",
        "other_fees": [{"name": "Tiền bảo trì", "amount": 100000, "note": "Bảo trì thiết bị chung"}],
        "total_amount": 4217500,
        "notes": "Hóa đơn tháng 12/2024. Vui lòng thanh toán trước ngày 10/12.",
    },
    {
        "contract": 1,
        "invoice_number": "INV-202412-002",
        "period_start": "2024-12-01",
        "period_end": "2024-12-31",
        "issue_date": "2024-12-01",
        "due_date": "2024-12-10",
        "template_type": "professional",
        "status": "draft",
        "rent_amount": 3200000,
        "electricity_previous_reading": 120,
        "electricity_current_reading": 165,
        "electricity_unit_price": 3500,
        "electricity_amount": 157500,
        "electricity_note": "Điện tháng 12/2024",
        "water_previous_reading": 18,
        "water_current_reading": 24,
        "water_unit_price": 25000,
        "water_amount": 150000,
        "water_note": "Nước tháng 12/2024",
        "internet_amount": 200000,
        "internet_note": "Wifi Viettel",
        "trash_amount": 50000,
        "trash_note": "Phí vệ sinh",
        "other_fees": [],
        "total_amount": 3757500,
        "notes": "Hóa đơn tháng 12/2024",
    },
]
