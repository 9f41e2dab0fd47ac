"""Entity store: lookups and mutation primitives for buildings, beds and bookings.

Nothing here commits. Callers own the transaction, so a bed flip, the
booking row change and the counter roll-ups land together or not at all.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import func, update
from sqlmodel import Session, select

from hostel.models import ROOM_TYPE_CAPACITY, Bed, Booking, BookingStatus, Building, Room

logger = logging.getLogger(__name__)


def get_building(session: Session, building_id: UUID) -> Optional[Building]:
    return session.get(Building, building_id)


def get_room(session: Session, building_id: UUID, room_id: UUID) -> Optional[Room]:
    room = session.get(Room, room_id)
    if room is None or room.building_id != building_id:
        return None
    return room


def get_bed(
    session: Session, building_id: UUID, room_id: UUID, bed_id: UUID
) -> Optional[Bed]:
    if get_room(session, building_id, room_id) is None:
        return None
    bed = session.get(Bed, bed_id)
    if bed is None or bed.room_id != room_id:
        return None
    return bed


def get_active_booking_for_user(session: Session, user_id: str) -> Optional[Booking]:
    statement = select(Booking).where(
        Booking.user_id == user_id,
        Booking.status == BookingStatus.ACTIVE.value,
    )
    return session.exec(statement).first()


def get_booking_by_id(session: Session, booking_id: UUID) -> Optional[Booking]:
    return session.get(Booking, booking_id)


def insert_booking(session: Session, booking: Booking) -> None:
    session.add(booking)
    session.flush()


def update_booking_status(session: Session, booking: Booking, status: BookingStatus) -> bool:
    """Move ``booking`` to ``status`` only if it still has the status we read."""
    statement = (
        update(Booking)
        .where(Booking.id == booking.id, Booking.status == booking.status)
        .values(status=status.value, updated_at=datetime.now(timezone.utc))
    )
    result = session.connection().execute(statement)
    session.refresh(booking)
    return result.rowcount == 1


def set_bed_occupancy(
    session: Session,
    bed: Bed,
    occupied: bool,
    occupied_by: Optional[str] = None,
    occupied_by_name: Optional[str] = None,
) -> bool:
    """
    Flip a bed and roll the change up into its room and building.

    The write only matches while the bed is in the opposite state, so a
    concurrent writer that got there first leaves zero rows affected and
    this returns False without touching the counters.
    """
    statement = (
        update(Bed)
        .where(Bed.id == bed.id, Bed.is_occupied == (not occupied))
        .values(
            is_occupied=occupied,
            occupied_by=occupied_by if occupied else None,
            occupied_by_name=occupied_by_name if occupied else None,
        )
    )
    result = session.connection().execute(statement)
    session.refresh(bed)
    if result.rowcount != 1:
        return False

    room = _recompute_room(session, bed.room_id)
    _recompute_building(session, room.building_id)
    return True


def _lock(session: Session, model, ident: UUID):
    # Row lock before counting, so a concurrent flip in the same room or
    # building is committed and visible by the time we count. Always room
    # before building. SQLite ignores FOR UPDATE.
    return session.get(model, ident, with_for_update=True, populate_existing=True)


def _recompute_room(session: Session, room_id: UUID) -> Room:
    room = _lock(session, Room, room_id)
    room.total_beds = session.exec(
        select(func.count()).select_from(Bed).where(Bed.room_id == room.id)
    ).one()
    room.available_beds = session.exec(
        select(func.count())
        .select_from(Bed)
        .where(Bed.room_id == room.id, Bed.is_occupied == False)  # noqa: E712
    ).one()
    room.touch()
    session.add(room)
    session.flush()
    return room


def _recompute_building(session: Session, building_id: UUID) -> None:
    building = _lock(session, Building, building_id)
    totals = session.exec(
        select(
            func.count(Room.id),
            func.coalesce(func.sum(Room.total_beds), 0),
            func.coalesce(func.sum(Room.available_beds), 0),
        ).where(Room.building_id == building_id)
    ).one()
    building.total_rooms, building.total_beds, building.available_beds = (
        int(value) for value in totals
    )
    building.touch()
    session.add(building)
    session.flush()


def recompute_counters(session: Session, building_id: UUID) -> None:
    """Recompute every room and building counter from the bed rows."""
    room_ids = session.exec(select(Room.id).where(Room.building_id == building_id)).all()
    for room_id in room_ids:
        _recompute_room(session, room_id)
    _recompute_building(session, building_id)


def create_building(
    session: Session,
    *,
    name: str,
    description: str = "",
    amenities: Iterable[str] = (),
    image: Optional[str] = None,
    rooms: Iterable[dict] = (),
) -> Building:
    """
    Create a building together with its rooms and beds.

    Each room dict takes ``number``, ``type`` and optionally ``amenities`` and
    ``price``; the room type decides how many beds it gets.
    """
    building = Building(
        name=name,
        description=description,
        image=image,
        amenities=list(amenities),
    )
    session.add(building)
    session.flush()

    for room_data in rooms:
        room_type = str(room_data.get("type", "double"))
        if room_type not in ROOM_TYPE_CAPACITY:
            raise ValueError(f"Unknown room type: {room_type}")
        room = Room(
            building_id=building.id,
            number=str(room_data["number"]),
            type=room_type,
            amenities=list(room_data.get("amenities", [])),
            price=room_data.get("price"),
        )
        session.add(room)
        session.flush()
        for number in range(1, ROOM_TYPE_CAPACITY[room_type] + 1):
            session.add(Bed(room_id=room.id, number=number))
        session.flush()

    recompute_counters(session, building.id)
    logger.info(f"Created building {building.name} ({building.id}) with {building.total_beds} beds")
    return building


def find_inconsistencies(session: Session) -> list[str]:
    """
    Audit the occupancy invariants.

    Returns a human-readable line per violation; an empty list means beds,
    bookings and counters all agree.
    """
    problems: list[str] = []

    active = session.exec(
        select(Booking).where(Booking.status == BookingStatus.ACTIVE.value)
    ).all()
    per_user = Counter(booking.user_id for booking in active)
    for user_id, count in per_user.items():
        if count > 1:
            problems.append(f"user {user_id} has {count} active bookings")

    active_by_bed: dict[UUID, list[Booking]] = {}
    for booking in active:
        active_by_bed.setdefault(booking.bed_id, []).append(booking)

    for bed in session.exec(select(Bed)).all():
        bookings = active_by_bed.get(bed.id, [])
        if len(bookings) > 1:
            problems.append(f"bed {bed.id} has {len(bookings)} active bookings")
        if bed.is_occupied != bool(bookings):
            problems.append(
                f"bed {bed.id} is_occupied={bed.is_occupied} but has "
                f"{len(bookings)} active bookings"
            )
        if bed.is_occupied != (bed.occupied_by is not None):
            problems.append(f"bed {bed.id} occupant does not match is_occupied")
        if bookings and bed.occupied_by != bookings[0].user_id:
            problems.append(
                f"bed {bed.id} occupied by {bed.occupied_by} but booked by {bookings[0].user_id}"
            )

    for building in session.exec(select(Building)).all():
        rooms = session.exec(select(Room).where(Room.building_id == building.id)).all()
        for room in rooms:
            beds = session.exec(select(Bed).where(Bed.room_id == room.id)).all()
            free = sum(1 for bed in beds if not bed.is_occupied)
            if room.total_beds != len(beds):
                problems.append(f"room {room.id} total_beds={room.total_beds}, beds={len(beds)}")
            if room.available_beds != free:
                problems.append(f"room {room.id} available_beds={room.available_beds}, free={free}")
        if building.total_rooms != len(rooms):
            problems.append(f"building {building.id} total_rooms={building.total_rooms}, rooms={len(rooms)}")
        if building.total_beds != sum(room.total_beds for room in rooms):
            problems.append(f"building {building.id} total_beds does not match its rooms")
        if building.available_beds != sum(room.available_beds for room in rooms):
            problems.append(f"building {building.id} available_beds does not match its rooms")

    return problems
