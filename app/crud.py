from __future__ import annotations

import asyncio
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from uuid import UUID

from loguru import logger
from pydantic import BaseModel
from tortoise.exceptions import IntegrityError
from tortoise.models import Model
from tortoise.transactions import in_transaction

from app import settings
from app.errors import (
    BookingConflict,
    BookingNotFound,
    Duplicate,
    InvalidAmount,
    InvalidInterval,
    InvalidTransition,
    NotFound,
    PaymentTimeout,
    RoomNotFound,
)
from app.models import (
    Amenity,
    Booking,
    BookingStatus,
    FoodMenuItem,
    Payment,
    PaymentStatus,
    Property,
    Room,
    SystemSettings,
)
from app.schemas import (
    AmenityResponse,
    BookingFilters,
    BookingResponse,
    BookingSlot,
    FoodMenuFilters,
    FoodMenuItemCreate,
    FoodMenuItemResponse,
    LedgerSummary,
    PaymentRecorded,
    PaymentResponse,
    SystemSettingsResponse,
    SystemSettingsUpdate,
)

if TYPE_CHECKING:
    from app.deps import Actor

CENTS = Decimal("0.01")
ACTIVE_STATUSES = [BookingStatus.PENDING, BookingStatus.CONFIRMED]
SETTINGS_ID = 1

ModelT = TypeVar("ModelT", bound=Model)
SchemaT = TypeVar("SchemaT", bound=BaseModel)


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _money(value: Decimal | int | str) -> Decimal:
    return Decimal(str(value)).quantize(CENTS)


def _validate_interval(check_in: date, check_out: date, today: date) -> None:
    """Reject malformed or backdated half-open [check_in, check_out) intervals."""
    if check_in >= check_out:
        raise InvalidInterval("check_out must be after check_in")
    if check_in < today:
        raise InvalidInterval("Reservations cannot start in the past")


def derive_payment_status(total_paid: Decimal, price: Decimal) -> PaymentStatus:
    """Pure function of the ledger total against the booking price."""
    balance = total_paid - price
    if balance == 0:
        return PaymentStatus.PAID
    if balance > 0:
        return PaymentStatus.OVERPAID
    if total_paid <= 0:
        return PaymentStatus.UNPAID
    return PaymentStatus.PARTIAL


async def _lock_booking(booking_id: UUID) -> Booking:
    """Row-lock a booking for the rest of the current transaction."""
    inst = await Booking.filter(id=booking_id).select_for_update().first()
    if inst is None:
        raise BookingNotFound(booking_id)
    return inst


async def _lock_room(room_id: UUID) -> Room:
    """Per-room mutual exclusion token, released on commit or rollback."""
    room = await Room.filter(id=room_id).select_for_update().first()
    if room is None:
        raise RoomNotFound(room_id)
    return room


def _booking_out(inst: Booking) -> BookingResponse:
    return BookingResponse.model_validate(inst, from_attributes=True)


class ModelCRUD(Generic[ModelT, SchemaT]):
    """Plain get/list/create/update/delete over one Tortoise model."""

    def __init__(self, model: type[ModelT], schema: type[SchemaT]) -> None:
        self.model = model
        self.schema = schema

    def _out(self, inst: ModelT) -> SchemaT:
        return self.schema.model_validate(inst, from_attributes=True)

    async def list_by(self, **filters: Any) -> list[SchemaT]:
        return [self._out(inst) for inst in await self.model.filter(**filters)]

    async def create(self, payload: BaseModel) -> SchemaT:
        try:
            inst = await self.model.create(**payload.model_dump())
        except IntegrityError:
            raise Duplicate(f"{self.model.__name__} already exists") from None
        return self._out(inst)

    async def update_by(self, payload: BaseModel, **filters: Any) -> SchemaT | None:
        inst = await self.model.get_or_none(**filters)
        if not inst:
            return None
        inst.update_from_dict(payload.model_dump(exclude_unset=True))
        try:
            await inst.save()
        except IntegrityError:
            raise Duplicate(f"{self.model.__name__} already exists") from None
        return self._out(inst)

    async def delete_by(self, **filters: Any) -> bool:
        return await self.model.filter(**filters).delete() > 0


class BookingCRUD:
    async def _find_conflict(
        self,
        room_id: UUID,
        check_in: date,
        check_out: date,
        exclude_id: UUID | None = None,
    ) -> Booking | None:
        """Return an active booking overlapping [check_in, check_out), if any."""
        qs = Booking.filter(
            room_id=room_id,
            status__in=ACTIVE_STATUSES,
            check_in__lt=check_out,
            check_out__gt=check_in,
        )
        if exclude_id is not None:
            qs = qs.exclude(id=exclude_id)
        return await qs.first()

    async def reserve(
        self,
        room_id: UUID,
        customer_id: UUID,
        check_in: date,
        check_out: date,
        price: Decimal | None = None,
        notes: str | None = None,
        today: date | None = None,
    ) -> BookingResponse:
        """
        Persist a new pending booking after validating:
          - the interval is well formed and not backdated
          - no active booking on the room overlaps it (checked under the room lock)

        Price defaults to the room's nightly rate times the number of nights.
        """
        _validate_interval(check_in, check_out, today or _today())

        try:
            async with asyncio.timeout(settings.TRANSACTION_TIMEOUT):
                async with in_transaction():
                    room = await _lock_room(room_id)
                    conflict = await self._find_conflict(room.id, check_in, check_out)
                    if conflict is not None:
                        raise BookingConflict(conflicting_booking_id=conflict.id)

                    if price is None:
                        nights = (check_out - check_in).days
                        price = room.nightly_rate * nights

                    inst = await Booking.create(
                        room_id=room.id,
                        customer_id=customer_id,
                        check_in=check_in,
                        check_out=check_out,
                        price=_money(price),
                        notes=notes,
                    )
        except TimeoutError:
            logger.warning("Reserve timed out: room_id={}", room_id)
            raise BookingConflict(
                retryable=True, detail="Timed out waiting for the room; retry"
            ) from None

        logger.info(
            "Booking reserved: id={} room_id={} [{}, {})",
            inst.id,
            room_id,
            check_in,
            check_out,
        )
        return _booking_out(inst)

    async def get_booking(self, booking_id: UUID) -> BookingResponse | None:
        inst = await Booking.get_or_none(id=booking_id)
        if not inst:
            return None
        return _booking_out(inst)

    async def list_bookings(
        self,
        filters: BookingFilters,
        customer_id: UUID | None = None,
    ) -> list[BookingResponse]:
        qs = Booking.all()

        if customer_id is not None:
            qs = qs.filter(customer_id=customer_id)
        if filters.room_id is not None:
            qs = qs.filter(room_id=filters.room_id)
        if filters.status is not None:
            qs = qs.filter(status=filters.status)
        if filters.payment_status is not None:
            qs = qs.filter(payment_status=filters.payment_status)

        offset = (filters.page - 1) * filters.page_size
        qs = qs.offset(offset).limit(filters.page_size)

        return [_booking_out(b) for b in await qs]

    async def confirm(self, booking_id: UUID) -> BookingResponse:
        async with in_transaction():
            inst = await _lock_booking(booking_id)
            if inst.status != BookingStatus.PENDING:
                raise InvalidTransition(inst.id, inst.status, BookingStatus.CONFIRMED)
            inst.status = BookingStatus.CONFIRMED
            await inst.save(update_fields=["status", "updated_at"])

        logger.info("Booking confirmed: id={}", booking_id)
        return _booking_out(inst)

    async def cancel(
        self,
        booking_id: UUID,
        actor: Actor,
        reason: str | None = None,
    ) -> BookingResponse:
        """
        Move a pending or confirmed booking to cancelled.
        Cancelling an already cancelled booking succeeds without changes.
        Payments are left untouched; refunds are separate negative entries.
        """
        async with in_transaction():
            inst = await _lock_booking(booking_id)
            if inst.status == BookingStatus.CANCELLED:
                return _booking_out(inst)

            inst.status = BookingStatus.CANCELLED
            inst.cancelled_at = datetime.now(timezone.utc)
            inst.cancelled_by = actor.id
            inst.cancellation_reason = reason
            await inst.save(
                update_fields=[
                    "status",
                    "cancelled_at",
                    "cancelled_by",
                    "cancellation_reason",
                    "updated_at",
                ]
            )

        logger.info("Booking cancelled: id={} by={}", booking_id, actor.id)
        return _booking_out(inst)

    async def reschedule(
        self,
        booking_id: UUID,
        check_in: date | None = None,
        check_out: date | None = None,
        price: Decimal | None = None,
        today: date | None = None,
    ) -> BookingResponse:
        """Change dates and/or price of an active booking, keeping both invariants."""
        try:
            async with asyncio.timeout(settings.TRANSACTION_TIMEOUT):
                async with in_transaction():
                    inst = await _lock_booking(booking_id)
                    if inst.status == BookingStatus.CANCELLED:
                        raise InvalidTransition(inst.id, inst.status, "rescheduled")

                    new_in = check_in or inst.check_in
                    new_out = check_out or inst.check_out
                    if (new_in, new_out) != (inst.check_in, inst.check_out):
                        if new_in >= new_out:
                            raise InvalidInterval("check_out must be after check_in")
                        if new_in != inst.check_in and new_in < (today or _today()):
                            raise InvalidInterval("Reservations cannot start in the past")

                        await _lock_room(inst.room_id)
                        conflict = await self._find_conflict(
                            inst.room_id, new_in, new_out, exclude_id=inst.id
                        )
                        if conflict is not None:
                            raise BookingConflict(conflicting_booking_id=conflict.id)
                        inst.check_in, inst.check_out = new_in, new_out

                    if price is not None:
                        inst.price = _money(price)
                    await inst.save(
                        update_fields=["check_in", "check_out", "price", "updated_at"]
                    )
                    if price is not None:
                        await ledger_crud.refresh_payment_status(inst)
        except TimeoutError:
            logger.warning("Reschedule timed out: booking_id={}", booking_id)
            raise BookingConflict(
                retryable=True, detail="Timed out waiting for the room; retry"
            ) from None

        logger.info("Booking rescheduled: id={}", booking_id)
        return _booking_out(inst)

    async def list_occupied_slots(self, room_id: UUID) -> list[BookingSlot]:
        """Return booked intervals for a room; no customer info exposed."""
        bookings = await Booking.filter(
            room_id=room_id,
            status__in=ACTIVE_STATUSES,
        ).only("check_in", "check_out")
        return [BookingSlot.model_validate(b, from_attributes=True) for b in bookings]

    async def delete_booking(self, booking_id: UUID) -> bool:
        """Hard delete, ledger included."""
        async with in_transaction():
            await Payment.filter(booking_id=booking_id).delete()
            deleted = await Booking.filter(id=booking_id).delete()
        if deleted:
            logger.info("Booking hard-deleted: id={}", booking_id)
        return deleted > 0


class LedgerCRUD:
    async def _total_paid(self, booking_id: UUID) -> Decimal:
        amounts = await Payment.filter(booking_id=booking_id).values_list(
            "amount", flat=True
        )
        return sum((_money(a) for a in amounts), Decimal("0.00"))

    def _summary(self, booking: Booking, total_paid: Decimal) -> LedgerSummary:
        price = _money(booking.price)
        return LedgerSummary(
            booking_id=booking.id,
            price=price,
            total_paid=total_paid,
            balance=total_paid - price,
            payment_status=derive_payment_status(total_paid, price),
        )

    async def refresh_payment_status(self, booking: Booking) -> LedgerSummary:
        """Recompute the cached status from the full ledger. Call inside the writing transaction."""
        summary = self._summary(booking, await self._total_paid(booking.id))
        if booking.payment_status != summary.payment_status:
            booking.payment_status = summary.payment_status
            await booking.save(update_fields=["payment_status", "updated_at"])
        return summary

    async def record_payment(
        self,
        booking_id: UUID,
        amount: Decimal,
        method: str | None = None,
        reference: str | None = None,
        recorded_by: UUID | None = None,
    ) -> PaymentRecorded:
        amount = _money(amount)
        if amount == 0:
            raise InvalidAmount("Payment amount must be non-zero", booking_id=booking_id)

        try:
            async with asyncio.timeout(settings.TRANSACTION_TIMEOUT):
                async with in_transaction():
                    booking = await _lock_booking(booking_id)
                    if booking.status == BookingStatus.CANCELLED and amount > 0:
                        raise InvalidAmount(
                            "Cancelled bookings accept refunds (negative amounts) only",
                            booking_id=booking_id,
                        )
                    payment = await Payment.create(
                        booking_id=booking.id,
                        amount=amount,
                        method=method,
                        reference=reference,
                        recorded_by=recorded_by,
                    )
                    summary = await self.refresh_payment_status(booking)
        except TimeoutError:
            logger.warning("Payment timed out: booking_id={}", booking_id)
            raise PaymentTimeout(
                "Timed out recording payment; retry", booking_id=booking_id
            ) from None

        logger.info(
            "Payment recorded: booking_id={} amount={} status={}",
            booking_id,
            amount,
            summary.payment_status,
        )
        return PaymentRecorded(
            payment=PaymentResponse.model_validate(payment, from_attributes=True),
            ledger=summary,
        )

    async def ledger_status(self, booking_id: UUID) -> LedgerSummary:
        """Re-derive the payment status from the ledger without writing."""
        booking = await Booking.get_or_none(id=booking_id)
        if booking is None:
            raise BookingNotFound(booking_id)
        return self._summary(booking, await self._total_paid(booking.id))

    async def list_payments(self, booking_id: UUID) -> list[PaymentResponse]:
        payments = await Payment.filter(booking_id=booking_id)
        return [PaymentResponse.model_validate(p, from_attributes=True) for p in payments]

    async def delete_payment(self, payment_id: UUID) -> LedgerSummary:
        async with in_transaction():
            payment = await Payment.get_or_none(id=payment_id)
            if payment is None:
                raise NotFound("Payment", payment_id)
            booking = await _lock_booking(payment.booking_id)
            await payment.delete()
            summary = await self.refresh_payment_status(booking)

        logger.info("Payment hard-deleted: id={} booking_id={}", payment_id, booking.id)
        return summary


class SettingsCRUD:
    async def get(self) -> SystemSettingsResponse:
        inst, _ = await SystemSettings.get_or_create(id=SETTINGS_ID)
        return SystemSettingsResponse.model_validate(inst, from_attributes=True)

    async def update(
        self, payload: SystemSettingsUpdate, updated_by: UUID
    ) -> SystemSettingsResponse:
        async with in_transaction():
            inst, _ = await SystemSettings.get_or_create(id=SETTINGS_ID)
            inst.allow_manager_delete = payload.allow_manager_delete
            inst.updated_by = updated_by
            await inst.save()

        logger.info(
            "System settings updated by {}: allow_manager_delete={}",
            updated_by,
            payload.allow_manager_delete,
        )
        return SystemSettingsResponse.model_validate(inst, from_attributes=True)


class FoodMenuCRUD(ModelCRUD[FoodMenuItem, FoodMenuItemResponse]):
    async def create(self, payload: FoodMenuItemCreate) -> FoodMenuItemResponse:  # type: ignore[override]
        if not await Property.exists(id=payload.property_id):
            raise NotFound("Property", payload.property_id)
        return await super().create(payload)

    async def list_items(self, filters: FoodMenuFilters) -> list[FoodMenuItemResponse]:
        qs = FoodMenuItem.all()
        if filters.property_id is not None:
            qs = qs.filter(property_id=filters.property_id)
        if filters.category is not None:
            qs = qs.filter(category=filters.category)
        if filters.available_only:
            qs = qs.filter(is_available=True)
        return [self._out(item) for item in await qs]


booking_crud = BookingCRUD()
ledger_crud = LedgerCRUD()
settings_crud = SettingsCRUD()
amenity_crud: ModelCRUD[Amenity, AmenityResponse] = ModelCRUD(Amenity, AmenityResponse)
food_menu_crud = FoodMenuCRUD(FoodMenuItem, FoodMenuItemResponse)
