from .booking import (
    BookingCancel,
    BookingCreate,
    BookingRead,
    BookingResponse,
    BookingsResponse,
    IntegrityReport,
)
from .building import (
    BedRead,
    BuildingCreate,
    BuildingFilter,
    BuildingRead,
    BuildingSort,
    RoomCreate,
    RoomRead,
    RoomType,
)

__all__ = [
    "BedRead",
    "BookingCancel",
    "BookingCreate",
    "BookingRead",
    "BookingResponse",
    "BookingsResponse",
    "BuildingCreate",
    "BuildingFilter",
    "BuildingRead",
    "BuildingSort",
    "IntegrityReport",
    "RoomCreate",
    "RoomRead",
    "RoomType",
]
