"""Allocation engine: the only code path that books or releases beds.

Every decision reads the database inside a per-user/per-bed lock and writes
bed, booking and counters in one transaction. Expected rejections come back
as a ``BookingResult`` with an error kind; storage failures raise
``AllocationStorageError`` and are never retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from hostel.core.cache import invalidate_buildings_cache
from hostel.core.config import settings
from hostel.core.locks import KeyedLock, LockTimeout
from hostel.models import Booking, BookingStatus, booking_id_timestamp, new_booking_id
from hostel.services import store

logger = logging.getLogger(__name__)

_locks = KeyedLock()


class BookingErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    ALREADY_BOOKED = "already_booked"
    BED_UNAVAILABLE = "bed_unavailable"
    FORBIDDEN = "forbidden"
    ALREADY_CANCELLED = "already_cancelled"
    INTERNAL = "internal"


ERROR_MESSAGES = {
    BookingErrorKind.NOT_FOUND: "Building, room, bed or booking not found",
    BookingErrorKind.ALREADY_BOOKED: "You already have an active booking. Cancel it first to book a new bed.",
    BookingErrorKind.BED_UNAVAILABLE: "This bed is already occupied",
    BookingErrorKind.FORBIDDEN: "You can only cancel your own bookings",
    BookingErrorKind.ALREADY_CANCELLED: "Booking is already cancelled",
    BookingErrorKind.INTERNAL: "Booking storage is unavailable",
}


class AllocationStorageError(Exception):
    """The store failed underneath an allocation; nothing was changed."""

    kind = BookingErrorKind.INTERNAL


@dataclass
class BookingResult:
    booking: Optional[Booking] = None
    error: Optional[BookingErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        if self.error is None:
            return ""
        return ERROR_MESSAGES[self.error]

    @classmethod
    def rejected(cls, kind: BookingErrorKind) -> "BookingResult":
        return cls(error=kind)


def _user_key(user_id: str) -> str:
    return f"user:{user_id}"


def _bed_key(bed_id: UUID) -> str:
    return f"bed:{bed_id}"


def _reject(session: Session, kind: BookingErrorKind, action: str, **context) -> BookingResult:
    session.rollback()
    logger.info(f"{action} rejected ({kind.value}): {context}")
    return BookingResult.rejected(kind)


def book_bed(
    session: Session,
    *,
    user_id: str,
    user_name: str,
    building_id: UUID,
    room_id: UUID,
    bed_id: UUID,
) -> BookingResult:
    """
    Book a bed for a user.

    Checks, first failure wins: the bed exists in that room and building,
    the user holds no active booking, the bed is free.
    """
    try:
        with _locks.hold(
            _user_key(user_id),
            _bed_key(bed_id),
            timeout=settings.ALLOCATION_LOCK_TIMEOUT_SECONDS,
        ):
            return _book_bed_locked(
                session,
                user_id=user_id,
                user_name=user_name,
                building_id=building_id,
                room_id=room_id,
                bed_id=bed_id,
            )
    except LockTimeout as exc:
        raise AllocationStorageError(f"Timed out waiting for {exc}") from exc


def _book_bed_locked(
    session: Session,
    *,
    user_id: str,
    user_name: str,
    building_id: UUID,
    room_id: UUID,
    bed_id: UUID,
) -> BookingResult:
    context = {"user_id": user_id, "bed_id": str(bed_id)}
    try:
        building = store.get_building(session, building_id)
        room = store.get_room(session, building_id, room_id)
        bed = store.get_bed(session, building_id, room_id, bed_id)
        if building is None or room is None or bed is None:
            return _reject(session, BookingErrorKind.NOT_FOUND, "Booking", **context)

        if store.get_active_booking_for_user(session, user_id) is not None:
            return _reject(session, BookingErrorKind.ALREADY_BOOKED, "Booking", **context)

        if bed.is_occupied:
            return _reject(session, BookingErrorKind.BED_UNAVAILABLE, "Booking", **context)

        booking_id = new_booking_id()
        booked_at = booking_id_timestamp(booking_id)
        booking = Booking(
            id=booking_id,
            user_id=user_id,
            user_name=user_name,
            building_id=building.id,
            building_name=building.name,
            room_id=room.id,
            room_number=room.number,
            bed_id=bed.id,
            bed_number=bed.number,
            booking_date=booked_at,
            status=BookingStatus.ACTIVE.value,
            created_at=booked_at,
            updated_at=booked_at,
        )
        try:
            store.insert_booking(session, booking)
        except IntegrityError:
            # The partial unique indexes caught a writer outside this process.
            session.rollback()
            kind = (
                BookingErrorKind.ALREADY_BOOKED
                if store.get_active_booking_for_user(session, user_id) is not None
                else BookingErrorKind.BED_UNAVAILABLE
            )
            return _reject(session, kind, "Booking", **context)

        if not store.set_bed_occupancy(session, bed, True, user_id, user_name):
            return _reject(session, BookingErrorKind.BED_UNAVAILABLE, "Booking", **context)

        session.commit()
        session.refresh(booking)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(f"Storage failure while booking bed {bed_id} for {user_id}: {exc}", exc_info=True)
        raise AllocationStorageError(str(exc)) from exc

    invalidate_buildings_cache()
    logger.info(
        f"Booking {booking.id} created: user {user_id} -> "
        f"{booking.building_name} room {booking.room_number} bed {booking.bed_number}"
    )
    return BookingResult(booking=booking)


def cancel_booking(session: Session, *, user_id: str, booking_id: UUID) -> BookingResult:
    """
    Cancel a user's own active booking and free its bed.

    Cancelling twice reports ``already_cancelled`` instead of succeeding.
    """
    try:
        booking = store.get_booking_by_id(session, booking_id)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(f"Storage failure while loading booking {booking_id}: {exc}", exc_info=True)
        raise AllocationStorageError(str(exc)) from exc
    if booking is None:
        return _reject(session, BookingErrorKind.NOT_FOUND, "Cancel", booking_id=str(booking_id))

    lock_keys = (_user_key(booking.user_id), _bed_key(booking.bed_id))
    # The first read only picks the lock keys; decide on a fresh read.
    session.rollback()
    try:
        with _locks.hold(
            *lock_keys,
            timeout=settings.ALLOCATION_LOCK_TIMEOUT_SECONDS,
        ):
            return _cancel_booking_locked(session, user_id=user_id, booking_id=booking_id)
    except LockTimeout as exc:
        raise AllocationStorageError(f"Timed out waiting for {exc}") from exc


def _cancel_booking_locked(session: Session, *, user_id: str, booking_id: UUID) -> BookingResult:
    context = {"user_id": user_id, "booking_id": str(booking_id)}
    try:
        booking = store.get_booking_by_id(session, booking_id)
        if booking is None:
            return _reject(session, BookingErrorKind.NOT_FOUND, "Cancel", **context)

        if booking.user_id != user_id:
            return _reject(session, BookingErrorKind.FORBIDDEN, "Cancel", **context)

        if not booking.is_active:
            return _reject(session, BookingErrorKind.ALREADY_CANCELLED, "Cancel", **context)

        if not store.update_booking_status(session, booking, BookingStatus.CANCELLED):
            return _reject(session, BookingErrorKind.ALREADY_CANCELLED, "Cancel", **context)

        bed = store.get_bed(session, booking.building_id, booking.room_id, booking.bed_id)
        if bed is None or not store.set_bed_occupancy(session, bed, False):
            # An active booking must always point at an occupied bed.
            session.rollback()
            logger.error(f"Booking {booking_id} is active but bed {booking.bed_id} is not occupied")
            raise AllocationStorageError(f"Bed {booking.bed_id} out of sync with booking {booking_id}")

        session.commit()
        session.refresh(booking)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(f"Storage failure while cancelling booking {booking_id}: {exc}", exc_info=True)
        raise AllocationStorageError(str(exc)) from exc

    invalidate_buildings_cache()
    logger.info(f"Booking {booking.id} cancelled by {user_id}; bed {booking.bed_id} released")
    return BookingResult(booking=booking)
