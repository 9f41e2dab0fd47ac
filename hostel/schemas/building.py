from __future__ import annotations

from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import Field, model_validator

from .base import APIModel


class RoomType(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"
    QUAD = "quad"


class BuildingSort(str, Enum):
    NAME = "name"
    AVAILABILITY = "availability"
    OCCUPANCY = "occupancy"


class BedRead(APIModel):
    id: UUID
    room_id: UUID
    number: int
    is_occupied: bool
    occupied_by: Optional[str] = None
    occupied_by_name: Optional[str] = None


class RoomRead(APIModel):
    id: UUID
    building_id: UUID
    number: str
    type: RoomType
    total_beds: int
    available_beds: int
    amenities: List[str] = Field(default_factory=list)
    price: Optional[float] = None
    beds: List[BedRead] = Field(default_factory=list)


class BuildingRead(APIModel):
    id: UUID
    name: str
    description: str
    image: Optional[str] = None
    total_rooms: int
    total_beds: int
    available_beds: int
    occupancy_rate: float = Field(description="Percentage of beds currently occupied")
    amenities: List[str] = Field(default_factory=list)
    rooms: List[RoomRead] = Field(default_factory=list)


class RoomCreate(APIModel):
    number: str = Field(min_length=1, max_length=50)
    type: RoomType = RoomType.DOUBLE
    amenities: List[str] = Field(default_factory=list)
    price: Optional[float] = Field(default=None, ge=0)


class BuildingCreate(APIModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = Field(default="", max_length=2000)
    image: Optional[str] = Field(default=None, max_length=500)
    amenities: List[str] = Field(default_factory=list)
    rooms: List[RoomCreate] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_room_numbers(self) -> "BuildingCreate":
        numbers = [room.number for room in self.rooms]
        if len(numbers) != len(set(numbers)):
            raise ValueError("Room numbers must be unique within a building")
        return self


class BuildingFilter(APIModel):
    """Search and filter options for the building listing."""

    q: Optional[str] = None
    room_types: List[RoomType] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    min_available_beds: int = Field(default=0, ge=0)
    max_available_beds: Optional[int] = Field(default=None, ge=0)
    sort_by: BuildingSort = BuildingSort.NAME
