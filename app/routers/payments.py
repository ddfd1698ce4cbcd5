from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.crud import booking_crud, ledger_crud
from app.deps import (
    Actor,
    can_create_payment,
    can_delete_payment,
    get_current_user,
    get_gateway,
)
from app.errors import BookingNotFound
from app.gateway import AuthorizationGateway
from app.roles import Action, Resource
from app.schemas import LedgerSummary, PaymentCreate, PaymentRecorded, PaymentResponse

router = APIRouter(tags=["payments"])


async def _authorize_ledger_read(
    booking_id: UUID, current_user: Actor, gw: AuthorizationGateway
) -> None:
    """Payments are owned through their booking's customer."""
    booking = await booking_crud.get_booking(booking_id)
    if not booking:
        raise BookingNotFound(booking_id)
    await gw.authorize(current_user, Resource.PAYMENT, Action.READ, target=booking)


@router.get("/bookings/{booking_id}/payments", response_model=list[PaymentResponse])
async def list_payments(
    booking_id: UUID,
    current_user: Actor = Depends(get_current_user),
    gw: AuthorizationGateway = Depends(get_gateway),
) -> list[PaymentResponse]:
    await _authorize_ledger_read(booking_id, current_user, gw)
    return await ledger_crud.list_payments(booking_id)


@router.get("/bookings/{booking_id}/ledger", response_model=LedgerSummary)
async def get_ledger(
    booking_id: UUID,
    current_user: Actor = Depends(get_current_user),
    gw: AuthorizationGateway = Depends(get_gateway),
) -> LedgerSummary:
    await _authorize_ledger_read(booking_id, current_user, gw)
    return await ledger_crud.ledger_status(booking_id)


@router.post(
    "/bookings/{booking_id}/payments",
    response_model=PaymentRecorded,
    status_code=status.HTTP_201_CREATED,
)
async def record_payment(
    booking_id: UUID,
    payload: PaymentCreate,
    current_user: Actor = Depends(can_create_payment),
) -> PaymentRecorded:
    """Append a signed ledger entry. Negative amounts are refunds."""
    return await ledger_crud.record_payment(
        booking_id,
        payload.amount,
        method=payload.method,
        reference=payload.reference,
        recorded_by=current_user.id,
    )


@router.delete(
    "/payments/{payment_id}",
    response_model=LedgerSummary,
    dependencies=[Depends(can_delete_payment)],
)
async def delete_payment(payment_id: UUID) -> LedgerSummary:
    return await ledger_crud.delete_payment(payment_id)
