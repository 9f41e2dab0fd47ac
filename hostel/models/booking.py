from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from enum import Enum
from uuid import UUID, uuid1

from sqlalchemy import Index, text
from sqlmodel import Field, SQLModel

# 100ns intervals between the UUID epoch (1582-10-15) and the Unix epoch
_UUID_EPOCH_OFFSET = 0x01B21DD213814000


class BookingStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


def new_booking_id() -> UUID:
    """Time-based id with a random node instead of the host MAC address."""
    return uuid1(node=secrets.randbits(48) | 0x010000000000)


def booking_id_timestamp(booking_id: UUID) -> datetime:
    """Recover the creation time (aware, UTC) encoded in a booking id."""
    if booking_id.version != 1:
        raise ValueError(f"Booking id {booking_id} is not time-based")
    return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(
        microseconds=(booking_id.time - _UUID_EPOCH_OFFSET) // 10
    )


_ACTIVE_ONLY = text("status = 'active'")


class Booking(SQLModel, table=True):
    """Bed booking with a snapshot of the building/room/bed it was made for."""

    __tablename__ = "bookings"
    __table_args__ = (
        Index(
            "uq_bookings_active_user",
            "user_id",
            unique=True,
            sqlite_where=_ACTIVE_ONLY,
            postgresql_where=_ACTIVE_ONLY,
        ),
        Index(
            "uq_bookings_active_bed",
            "bed_id",
            unique=True,
            sqlite_where=_ACTIVE_ONLY,
            postgresql_where=_ACTIVE_ONLY,
        ),
    )

    id: UUID = Field(default_factory=new_booking_id, primary_key=True, index=True)
    user_id: str = Field(max_length=255, index=True)
    user_name: str = Field(max_length=255)
    building_id: UUID = Field(foreign_key="buildings.id", nullable=False, index=True)
    building_name: str = Field(max_length=255)
    room_id: UUID = Field(foreign_key="rooms.id", nullable=False, index=True)
    room_number: str = Field(max_length=50)
    bed_id: UUID = Field(foreign_key="beds.id", nullable=False, index=True)
    bed_number: int
    booking_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False, index=True)
    status: str = Field(default=BookingStatus.ACTIVE.value, max_length=20, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)

    @property
    def is_active(self) -> bool:
        return self.status == BookingStatus.ACTIVE.value
