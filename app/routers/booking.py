from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, status
from loguru import logger

from app.cache import get_slots_cache, invalidate_slots_cache, set_slots_cache
from app.crud import booking_crud
from app.deps import (
    Actor,
    can_delete_booking,
    can_manage_booking,
    get_current_user,
    get_gateway,
)
from app.errors import BookingNotFound
from app.gateway import AuthorizationGateway
from app.roles import Action, Resource, Role, Scope, parse_role
from app.schemas import (
    BookingCancel,
    BookingCreate,
    BookingFilters,
    BookingReschedule,
    BookingResponse,
    BookingSlot,
)

router = APIRouter(prefix="/bookings", tags=["bookings"])


async def _get_or_404(booking_id: UUID) -> BookingResponse:
    booking = await booking_crud.get_booking(booking_id)
    if not booking:
        raise BookingNotFound(booking_id)
    return booking


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/slots", response_model=list[BookingSlot])
async def get_room_slots(
    room_id: UUID,
    _: Actor = Depends(get_current_user),
) -> list[BookingSlot]:
    """
    Returns occupied [check_in, check_out) intervals for a room.
    Any authenticated user can call this. Response contains NO customer identity.
    """
    cached = await get_slots_cache(room_id)
    if cached is not None:
        logger.debug("Cache hit for slots: room_id={}", room_id)
        return [BookingSlot(**s) for s in cached]

    logger.debug("Cache miss for slots: room_id={}", room_id)
    slots = await booking_crud.list_occupied_slots(room_id)
    await set_slots_cache(room_id, [s.model_dump(mode="json") for s in slots])
    return slots


@router.get("/", response_model=list[BookingResponse])
async def list_bookings(
    filters: BookingFilters = Depends(),
    current_user: Actor = Depends(get_current_user),
    gw: AuthorizationGateway = Depends(get_gateway),
) -> list[BookingResponse]:
    granted = await gw.authorize(current_user, Resource.BOOKING, Action.READ)
    if granted == Scope.OWN:
        return await booking_crud.list_bookings(
            filters=filters, customer_id=current_user.id
        )
    return await booking_crud.list_bookings(filters=filters)


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    current_user: Actor = Depends(get_current_user),
    gw: AuthorizationGateway = Depends(get_gateway),
) -> BookingResponse:
    # Customers book for themselves; other roles book on behalf of a named customer.
    if payload.customer_id is None and parse_role(current_user.role) is Role.CUSTOMER:
        payload = payload.model_copy(update={"customer_id": current_user.id})
    await gw.authorize(current_user, Resource.BOOKING, Action.CREATE, target=payload)
    if payload.customer_id is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="customer_id is required when booking on behalf of a customer",
        )

    booking = await booking_crud.reserve(
        room_id=payload.room_id,
        customer_id=payload.customer_id,
        check_in=payload.check_in,
        check_out=payload.check_out,
        notes=payload.notes,
    )
    await invalidate_slots_cache(payload.room_id)
    return booking


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    current_user: Actor = Depends(get_current_user),
    gw: AuthorizationGateway = Depends(get_gateway),
) -> BookingResponse:
    booking = await _get_or_404(booking_id)
    await gw.authorize(current_user, Resource.BOOKING, Action.READ, target=booking)
    return booking


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
async def confirm_booking(
    booking_id: UUID,
    _: Actor = Depends(can_manage_booking),
) -> BookingResponse:
    return await booking_crud.confirm(booking_id)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def reschedule_booking(
    booking_id: UUID,
    payload: BookingReschedule,
    _: Actor = Depends(can_manage_booking),
) -> BookingResponse:
    booking = await booking_crud.reschedule(
        booking_id,
        check_in=payload.check_in,
        check_out=payload.check_out,
        price=payload.price,
    )
    await invalidate_slots_cache(booking.room_id)
    return booking


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: UUID,
    payload: BookingCancel | None = Body(default=None),
    current_user: Actor = Depends(get_current_user),
    gw: AuthorizationGateway = Depends(get_gateway),
) -> BookingResponse:
    """Customers may cancel their own bookings; staff and above any booking."""
    booking = await _get_or_404(booking_id)
    await gw.authorize(current_user, Resource.BOOKING, Action.UPDATE, target=booking)

    cancelled = await booking_crud.cancel(
        booking_id, current_user, reason=payload.reason if payload else None
    )
    await invalidate_slots_cache(booking.room_id)
    return cancelled


@router.delete(
    "/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(can_delete_booking)],
)
async def delete_booking(booking_id: UUID) -> None:
    booking = await _get_or_404(booking_id)
    if not await booking_crud.delete_booking(booking_id):
        raise BookingNotFound(booking_id)
    await invalidate_slots_cache(booking.room_id)
