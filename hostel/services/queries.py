"""Read-only projections of buildings, beds and bookings."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlmodel import Session, select

from hostel.core.cache import BUILDINGS_CACHE_KEY, get_cache
from hostel.models import Bed, Booking, Building, Room
from hostel.schemas import (
    BedRead,
    BuildingFilter,
    BuildingRead,
    BuildingSort,
    RoomRead,
)

logger = logging.getLogger(__name__)


def occupancy_rate(total_beds: int, available_beds: int) -> float:
    """Percentage of beds in use; an empty building is 0% occupied."""
    if available_beds < 0 or available_beds > total_beds:
        raise ValueError(
            f"Inconsistent bed counters: available={available_beds}, total={total_beds}"
        )
    if total_beds == 0:
        return 0.0
    return (total_beds - available_beds) / total_beds * 100


def _room_view(room: Room, beds: List[Bed]) -> RoomRead:
    return RoomRead(
        id=room.id,
        building_id=room.building_id,
        number=room.number,
        type=room.type,
        total_beds=room.total_beds,
        available_beds=room.available_beds,
        amenities=list(room.amenities or []),
        price=room.price,
        beds=[BedRead.model_validate(bed) for bed in sorted(beds, key=lambda b: b.number)],
    )


def _building_view(building: Building, rooms: List[RoomRead]) -> BuildingRead:
    return BuildingRead(
        id=building.id,
        name=building.name,
        description=building.description,
        image=building.image,
        total_rooms=building.total_rooms,
        total_beds=building.total_beds,
        available_beds=building.available_beds,
        occupancy_rate=occupancy_rate(building.total_beds, building.available_beds),
        amenities=list(building.amenities or []),
        rooms=rooms,
    )


def _load_building_views(session: Session, building_ids: Optional[List[UUID]] = None) -> List[BuildingRead]:
    building_stmt = select(Building).order_by(Building.name)
    if building_ids is not None:
        building_stmt = building_stmt.where(Building.id.in_(building_ids))
    buildings = session.exec(building_stmt).all()
    if not buildings:
        return []

    ids = [building.id for building in buildings]
    rooms = session.exec(
        select(Room).where(Room.building_id.in_(ids)).order_by(Room.number)
    ).all()
    beds = session.exec(
        select(Bed).where(Bed.room_id.in_([room.id for room in rooms]))
    ).all() if rooms else []

    beds_by_room: dict[UUID, List[Bed]] = defaultdict(list)
    for bed in beds:
        beds_by_room[bed.room_id].append(bed)

    rooms_by_building: dict[UUID, List[RoomRead]] = defaultdict(list)
    for room in rooms:
        rooms_by_building[room.building_id].append(_room_view(room, beds_by_room[room.id]))

    return [_building_view(building, rooms_by_building[building.id]) for building in buildings]


def all_building_views(session: Session) -> List[BuildingRead]:
    """Every building with nested rooms and beds, served through the cache."""
    cached = get_cache().get_or_load(
        BUILDINGS_CACHE_KEY,
        lambda: [view.model_dump(mode="json") for view in _load_building_views(session)],
    )
    return [BuildingRead.model_validate(item) for item in cached]


def _matches(building: BuildingRead, filters: BuildingFilter) -> bool:
    if filters.q and filters.q.strip():
        query = filters.q.strip().lower()
        haystack = [building.name.lower(), building.description.lower()]
        haystack.extend(amenity.lower() for amenity in building.amenities)
        if not any(query in text for text in haystack):
            return False

    if filters.room_types:
        wanted = {room_type.value for room_type in filters.room_types}
        if not any(room.type.value in wanted for room in building.rooms):
            return False

    if filters.amenities:
        offered = set(building.amenities)
        for room in building.rooms:
            offered.update(room.amenities)
        if not all(amenity in offered for amenity in filters.amenities):
            return False

    if building.available_beds < filters.min_available_beds:
        return False
    if filters.max_available_beds is not None and building.available_beds > filters.max_available_beds:
        return False
    return True


def list_buildings(session: Session, filters: Optional[BuildingFilter] = None) -> List[BuildingRead]:
    """
    Filter and sort the building listing.

    Sorting is stable: ``availability`` puts the most free beds first,
    ``occupancy`` the least occupied first, and ties keep name order.
    """
    filters = filters or BuildingFilter()
    buildings = [b for b in all_building_views(session) if _matches(b, filters)]

    if filters.sort_by == BuildingSort.AVAILABILITY:
        buildings.sort(key=lambda b: -b.available_beds)
    elif filters.sort_by == BuildingSort.OCCUPANCY:
        buildings.sort(key=lambda b: b.occupancy_rate)
    else:
        buildings.sort(key=lambda b: b.name)
    return buildings


def get_building_view(session: Session, building_id: UUID) -> Optional[BuildingRead]:
    views = _load_building_views(session, [building_id])
    return views[0] if views else None


def get_room_view(session: Session, building_id: UUID, room_id: UUID) -> Optional[RoomRead]:
    room = session.get(Room, room_id)
    if room is None or room.building_id != building_id:
        return None
    beds = session.exec(select(Bed).where(Bed.room_id == room.id)).all()
    return _room_view(room, list(beds))


def list_amenities(session: Session) -> List[str]:
    amenities: set[str] = set()
    for building in all_building_views(session):
        amenities.update(building.amenities)
        for room in building.rooms:
            amenities.update(room.amenities)
    return sorted(amenities)


def list_beds_for_user(session: Session, user_id: str) -> List[Bed]:
    statement = select(Bed).where(Bed.occupied_by == user_id).order_by(Bed.number)
    return list(session.exec(statement).all())


def list_bookings_for_user(session: Session, user_id: str) -> List[Booking]:
    statement = (
        select(Booking)
        .where(Booking.user_id == user_id)
        .order_by(Booking.booking_date.desc())
    )
    return list(session.exec(statement).all())


def list_all_bookings(
    session: Session,
    *,
    building_id: Optional[UUID] = None,
    room_id: Optional[UUID] = None,
    status: Optional[str] = None,
    q: Optional[str] = None,
) -> List[Booking]:
    """All bookings for administrative review, newest first."""
    statement = select(Booking)
    if building_id:
        statement = statement.where(Booking.building_id == building_id)
    if room_id:
        statement = statement.where(Booking.room_id == room_id)
    if status:
        statement = statement.where(Booking.status == status)
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        statement = statement.where(
            or_(
                Booking.user_name.ilike(pattern),
                Booking.building_name.ilike(pattern),
                Booking.room_number.ilike(pattern),
            )
        )
    statement = statement.order_by(Booking.booking_date.desc())
    return list(session.exec(statement).all())
