import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from hostel.api.deps import Principal, get_current_principal
from hostel.core.config import settings
from hostel.core.limiter import limiter
from hostel.db import SessionDep
from hostel.models import BookingStatus
from hostel.schemas import (
    BookingCancel,
    BookingCreate,
    BookingRead,
    BookingResponse,
    BookingsResponse,
)
from hostel.services import allocation, queries, store
from hostel.services.allocation import BookingErrorKind, BookingResult
from hostel.services.notifications import notify_booking_cancelled, notify_booking_confirmed

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_STATUS = {
    BookingErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    BookingErrorKind.ALREADY_BOOKED: status.HTTP_409_CONFLICT,
    BookingErrorKind.BED_UNAVAILABLE: status.HTTP_409_CONFLICT,
    BookingErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    BookingErrorKind.ALREADY_CANCELLED: status.HTTP_409_CONFLICT,
    BookingErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _error_response(kind: BookingErrorKind, message: str | None = None) -> JSONResponse:
    body = BookingResponse(
        success=False,
        error=kind.value,
        message=message or allocation.ERROR_MESSAGES[kind],
    )
    return JSONResponse(
        status_code=ERROR_STATUS[kind],
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


def _forbidden_unless_self(principal: Principal, user_id: str) -> Optional[JSONResponse]:
    if principal.user_id != user_id and not principal.is_admin:
        return _error_response(
            BookingErrorKind.FORBIDDEN, "You can only act on your own bookings"
        )
    return None


def _recipient(principal: Principal, booking) -> Optional[str]:
    # Only the caller's address is known; skip mail sent on someone's behalf.
    if principal.user_id != booking.user_id:
        return None
    return principal.email


def _run(action, **kwargs) -> BookingResult | JSONResponse:
    try:
        return action(**kwargs)
    except allocation.AllocationStorageError:
        return _error_response(BookingErrorKind.INTERNAL)


@router.post(
    "/",
    response_model=BookingResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Book a bed",
)
@limiter.limit(settings.BOOKING_RATE_LIMIT)
def create_booking(
    request: Request,
    payload: BookingCreate,
    session: SessionDep,
    principal: Principal = Depends(get_current_principal),
):
    denied = _forbidden_unless_self(principal, payload.user_id)
    if denied is not None:
        return denied

    result = _run(
        allocation.book_bed,
        session=session,
        user_id=payload.user_id,
        user_name=payload.user_name,
        building_id=payload.building_id,
        room_id=payload.room_id,
        bed_id=payload.bed_id,
    )
    if isinstance(result, JSONResponse):
        return result
    if not result.ok:
        return _error_response(result.error)

    notify_booking_confirmed(result.booking, _recipient(principal, result.booking))
    return BookingResponse(
        success=True,
        message="Booking created successfully",
        booking=BookingRead.model_validate(result.booking),
    )


@router.put(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    response_model_exclude_none=True,
    summary="Cancel a booking",
)
def cancel_booking(
    booking_id: UUID,
    payload: BookingCancel,
    session: SessionDep,
    principal: Principal = Depends(get_current_principal),
):
    denied = _forbidden_unless_self(principal, payload.user_id)
    if denied is not None:
        return denied

    result = _run(
        allocation.cancel_booking,
        session=session,
        user_id=payload.user_id,
        booking_id=booking_id,
    )
    if isinstance(result, JSONResponse):
        return result
    if not result.ok:
        return _error_response(result.error)

    notify_booking_cancelled(result.booking, _recipient(principal, result.booking))
    return BookingResponse(
        success=True,
        message="Booking cancelled successfully",
        booking=BookingRead.model_validate(result.booking),
    )


@router.get(
    "/",
    response_model=BookingsResponse,
    response_model_exclude_none=True,
    summary="List bookings",
)
def list_bookings(
    session: SessionDep,
    principal: Principal = Depends(get_current_principal),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    building_id: Optional[UUID] = Query(default=None, alias="buildingId"),
    room_id: Optional[UUID] = Query(default=None, alias="roomId"),
    status_filter: Optional[BookingStatus] = Query(default=None, alias="status"),
    q: Optional[str] = Query(default=None, description="Search user, building or room"),
):
    """
    With ``userId`` list that user's bookings, newest first. Without it,
    list every booking for administrative review (admins only).
    """
    if user_id is not None:
        denied = _forbidden_unless_self(principal, user_id)
        if denied is not None:
            return denied
        bookings = queries.list_bookings_for_user(session, user_id)
    else:
        if not principal.is_admin:
            return _error_response(
                BookingErrorKind.FORBIDDEN, "Administrator privileges required"
            )
        bookings = queries.list_all_bookings(
            session,
            building_id=building_id,
            room_id=room_id,
            status=status_filter.value if status_filter else None,
            q=q,
        )
    return BookingsResponse(
        success=True,
        bookings=[BookingRead.model_validate(booking) for booking in bookings],
    )


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    response_model_exclude_none=True,
    summary="Get booking by id",
)
def get_booking(
    booking_id: UUID,
    session: SessionDep,
    principal: Principal = Depends(get_current_principal),
):
    booking = store.get_booking_by_id(session, booking_id)
    if booking is None:
        return _error_response(BookingErrorKind.NOT_FOUND, "Booking not found")
    denied = _forbidden_unless_self(principal, booking.user_id)
    if denied is not None:
        return denied
    return BookingResponse(success=True, booking=BookingRead.model_validate(booking))
