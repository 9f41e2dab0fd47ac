from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from hostel.models import BookingStatus

from .base import APIModel


class BookingCreate(APIModel):
    """Booking request.

    The display fields are accepted for compatibility with older clients but
    the stored snapshot is always taken from the building inventory.
    """

    user_id: str = Field(min_length=1, max_length=255)
    user_name: str = Field(min_length=1, max_length=255)
    building_id: UUID
    building_name: Optional[str] = None
    room_id: UUID
    room_number: Optional[str] = None
    bed_id: UUID
    bed_number: Optional[int] = None


class BookingCancel(APIModel):
    user_id: str = Field(min_length=1, max_length=255)


class BookingRead(APIModel):
    id: UUID
    user_id: str
    user_name: str
    building_id: UUID
    building_name: str
    room_id: UUID
    room_number: str
    bed_id: UUID
    bed_number: int
    booking_date: datetime
    status: BookingStatus
    created_at: datetime
    updated_at: datetime


class BookingResponse(APIModel):
    success: bool
    message: Optional[str] = None
    booking: Optional[BookingRead] = None
    error: Optional[str] = None


class BookingsResponse(APIModel):
    success: bool
    bookings: List[BookingRead] = Field(default_factory=list)
    error: Optional[str] = None


class IntegrityReport(APIModel):
    consistent: bool
    problems: List[str] = Field(default_factory=list)
