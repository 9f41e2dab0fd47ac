from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import JSON, Column, Field, SQLModel

# Beds created for each room type
ROOM_TYPE_CAPACITY = {
    "single": 1,
    "double": 2,
    "triple": 3,
    "quad": 4,
}


class Room(SQLModel, table=True):
    """Room inside a building. ``available_beds`` mirrors its free beds."""

    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("building_id", "number", name="uq_rooms_building_number"),
        CheckConstraint(
            "available_beds >= 0 AND available_beds <= total_beds",
            name="ck_rooms_available_beds",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    building_id: UUID = Field(foreign_key="buildings.id", nullable=False, index=True)
    number: str = Field(max_length=50)
    type: str = Field(default="double", max_length=20)
    total_beds: int = Field(default=0, ge=0)
    available_beds: int = Field(default=0, ge=0)
    amenities: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    price: Optional[float] = Field(default=None, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)
