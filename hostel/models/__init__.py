from .bed import Bed
from .booking import Booking, BookingStatus, booking_id_timestamp, new_booking_id
from .building import Building
from .room import ROOM_TYPE_CAPACITY, Room

__all__ = [
    "Bed",
    "Booking",
    "BookingStatus",
    "Building",
    "ROOM_TYPE_CAPACITY",
    "Room",
    "booking_id_timestamp",
    "new_booking_id",
]
