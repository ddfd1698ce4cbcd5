from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger


class DomainError(Exception):
    """Base for every failure the service reports to callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def extra(self) -> dict[str, Any]:
        return {}


class Denied(DomainError):
    """Authorization failure. Terminal for the request, never retried."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, reason: str) -> None:
        super().__init__(f"Forbidden: {reason}")
        self.reason = reason

    def extra(self) -> dict[str, Any]:
        return {"reason": self.reason}


class BookingConflict(DomainError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(
        self,
        conflicting_booking_id: UUID | None = None,
        retryable: bool = False,
        detail: str | None = None,
    ) -> None:
        if detail is None:
            detail = "Booking conflicts with an existing booking for this room"
        super().__init__(detail)
        self.conflicting_booking_id = conflicting_booking_id
        self.retryable = retryable

    def extra(self) -> dict[str, Any]:
        return {
            "conflicting_booking_id": (
                str(self.conflicting_booking_id) if self.conflicting_booking_id else None
            ),
            "retryable": self.retryable,
        }


class InvalidInterval(DomainError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class RoomNotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, room_id: UUID) -> None:
        super().__init__("Room not found")
        self.room_id = room_id

    def extra(self) -> dict[str, Any]:
        return {"room_id": str(self.room_id)}


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: UUID) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class Duplicate(DomainError):
    status_code = status.HTTP_409_CONFLICT


class PaymentError(DomainError):
    def __init__(self, detail: str, booking_id: UUID | None = None) -> None:
        super().__init__(detail)
        self.booking_id = booking_id

    def extra(self) -> dict[str, Any]:
        return {"booking_id": str(self.booking_id) if self.booking_id else None}


class CancelError(DomainError):
    pass


class InvalidAmount(PaymentError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class PaymentTimeout(PaymentError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def extra(self) -> dict[str, Any]:
        return {**super().extra(), "retryable": True}


class BookingNotFound(PaymentError, CancelError):
    """Raised by every operation addressing a booking that does not exist."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, booking_id: UUID) -> None:
        super().__init__("Booking not found", booking_id=booking_id)


class InvalidTransition(CancelError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, booking_id: UUID, current: str, target: str) -> None:
        super().__init__(f"Cannot transition from '{current}' to '{target}'")
        self.booking_id = booking_id
        self.current = current
        self.target = target

    def extra(self) -> dict[str, Any]:
        return {"booking_id": str(self.booking_id), "current_status": self.current}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        logger.warning(
            "{} on {} {}: {}",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.detail,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, **exc.extra()},
        )
