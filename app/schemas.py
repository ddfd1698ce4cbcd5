from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models import BookingStatus, MenuCategory, PaymentStatus


class BookingCreate(BaseModel):
    room_id: UUID
    # staff book on behalf of a customer; customers may omit it
    customer_id: UUID | None = None
    check_in: date
    check_out: date
    notes: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def validate_interval(self) -> BookingCreate:
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class BookingReschedule(BaseModel):
    check_in: date | None = None
    check_out: date | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)


class BookingCancel(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class BookingResponse(BaseModel):
    id: UUID
    room_id: UUID
    customer_id: UUID
    check_in: date
    check_out: date
    price: Decimal
    status: BookingStatus
    payment_status: PaymentStatus
    notes: str | None
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    cancelled_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingSlot(BaseModel):
    """Occupied interval for a room. Reveals no customer identity."""

    check_in: date
    check_out: date

    model_config = ConfigDict(from_attributes=True)


class BookingFilters(BaseModel):
    """Bind to a FastAPI route via Depends(BookingFilters)."""

    room_id: UUID | None = None
    status: BookingStatus | None = None
    payment_status: PaymentStatus | None = None

    # Pagination
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)


class PaymentCreate(BaseModel):
    # signed: negative entries are refunds or corrections
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    method: str | None = Field(default=None, max_length=32)
    reference: str | None = Field(default=None, max_length=128)


class PaymentResponse(BaseModel):
    id: UUID
    booking_id: UUID
    amount: Decimal
    method: str | None
    reference: str | None
    recorded_by: UUID | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LedgerSummary(BaseModel):
    booking_id: UUID
    price: Decimal
    total_paid: Decimal
    balance: Decimal  # total_paid - price
    payment_status: PaymentStatus


class PaymentRecorded(BaseModel):
    payment: PaymentResponse
    ledger: LedgerSummary


class SystemSettingsResponse(BaseModel):
    allow_manager_delete: bool = False
    updated_by: UUID | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class SystemSettingsUpdate(BaseModel):
    allow_manager_delete: bool


class AmenityCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    icon: str | None = Field(default=None, max_length=64)


class AmenityUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    icon: str | None = Field(default=None, max_length=64)


class AmenityResponse(BaseModel):
    id: UUID
    name: str
    description: str | None
    icon: str | None

    model_config = ConfigDict(from_attributes=True)


class FoodMenuItemCreate(BaseModel):
    property_id: UUID
    category: MenuCategory
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    price: Decimal = Field(ge=0, max_digits=8, decimal_places=2)
    is_available: bool = True


class FoodMenuItemUpdate(BaseModel):
    category: MenuCategory | None = None
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    is_available: bool | None = None


class FoodMenuItemResponse(BaseModel):
    id: UUID
    property_id: UUID
    category: MenuCategory
    name: str
    description: str | None
    price: Decimal
    is_available: bool

    model_config = ConfigDict(from_attributes=True)


class FoodMenuFilters(BaseModel):
    property_id: UUID | None = None
    category: MenuCategory | None = None
    available_only: bool = False
