from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Bed(SQLModel, table=True):
    """Single bed. Occupied exactly while an active booking points at it."""

    __tablename__ = "beds"
    __table_args__ = (
        UniqueConstraint("room_id", "number", name="uq_beds_room_number"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    room_id: UUID = Field(foreign_key="rooms.id", nullable=False, index=True)
    number: int = Field(ge=1)
    is_occupied: bool = Field(default=False, nullable=False)
    occupied_by: Optional[str] = Field(default=None, max_length=255, index=True)
    occupied_by_name: Optional[str] = Field(default=None, max_length=255)
