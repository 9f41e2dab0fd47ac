from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from hostel.api.deps import Principal, ensure_self_or_admin, get_current_principal, require_admin
from hostel.core.cache import invalidate_buildings_cache
from hostel.db import SessionDep
from hostel.schemas import (
    BedRead,
    BuildingCreate,
    BuildingFilter,
    BuildingRead,
    BuildingSort,
    RoomRead,
    RoomType,
)
from hostel.services import queries, store

router = APIRouter()


@router.get("/", response_model=List[BuildingRead], summary="List buildings")
def list_buildings(
    session: SessionDep,
    q: Optional[str] = Query(default=None, description="Search name, description or amenities"),
    room_types: List[RoomType] = Query(default=[], alias="roomTypes"),
    amenities: List[str] = Query(default=[]),
    min_available_beds: int = Query(default=0, ge=0, alias="minAvailableBeds"),
    max_available_beds: Optional[int] = Query(default=None, ge=0, alias="maxAvailableBeds"),
    sort_by: BuildingSort = Query(default=BuildingSort.NAME, alias="sortBy"),
) -> List[BuildingRead]:
    """Buildings with nested rooms and beds and their live occupancy."""
    filters = BuildingFilter(
        q=q,
        room_types=room_types,
        amenities=amenities,
        min_available_beds=min_available_beds,
        max_available_beds=max_available_beds,
        sort_by=sort_by,
    )
    return queries.list_buildings(session, filters)


@router.get("/amenities", response_model=List[str], summary="List amenities")
def list_amenities(session: SessionDep) -> List[str]:
    return queries.list_amenities(session)


@router.post(
    "/",
    response_model=BuildingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create building",
)
def create_building(
    payload: BuildingCreate,
    session: SessionDep,
    admin: Principal = Depends(require_admin),
) -> BuildingRead:
    building = store.create_building(
        session,
        name=payload.name,
        description=payload.description,
        amenities=payload.amenities,
        image=payload.image,
        rooms=[room.model_dump(mode="json") for room in payload.rooms],
    )
    session.commit()
    invalidate_buildings_cache()
    return queries.get_building_view(session, building.id)


@router.get(
    "/users/{user_id}/beds",
    response_model=List[BedRead],
    summary="Beds occupied by a user",
)
def list_user_beds(
    user_id: str,
    session: SessionDep,
    principal: Principal = Depends(get_current_principal),
) -> List[BedRead]:
    ensure_self_or_admin(principal, user_id)
    return [BedRead.model_validate(bed) for bed in queries.list_beds_for_user(session, user_id)]


@router.get("/{building_id}", response_model=BuildingRead, summary="Get building by id")
def get_building(building_id: UUID, session: SessionDep) -> BuildingRead:
    building = queries.get_building_view(session, building_id)
    if not building:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Building not found"
        )
    return building


@router.get(
    "/{building_id}/rooms/{room_id}",
    response_model=RoomRead,
    summary="Get room with its beds",
)
def get_room(building_id: UUID, room_id: UUID, session: SessionDep) -> RoomRead:
    room = queries.get_room_view(session, building_id, room_id)
    if not room:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Room not found"
        )
    return room
