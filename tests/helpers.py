from datetime import datetime, timezone

from sqlmodel import Session, select

from hostel.core.security import create_access_token
from hostel.models import Bed, Room


def room_by_number(session: Session, building_id, number: str) -> Room:
    return session.exec(
        select(Room).where(Room.building_id == building_id, Room.number == number)
    ).one()


def bed_by_number(session: Session, room: Room, number: int) -> Bed:
    return session.exec(
        select(Bed).where(Bed.room_id == room.id, Bed.number == number)
    ).one()


def auth_headers(user_id: str, role: str = "student", name: str | None = None, email: str | None = None) -> dict:
    token = create_access_token(user_id, role=role, name=name, email=email)
    return {"Authorization": f"Bearer {token}"}


def as_utc(value: datetime) -> datetime:
    """SQLite hands timestamps back without tzinfo; they are stored in UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
