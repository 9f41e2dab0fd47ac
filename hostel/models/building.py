from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint
from sqlmodel import JSON, Column, Field, SQLModel


class Building(SQLModel, table=True):
    """Hostel building; bed counters are roll-ups of its rooms."""

    __tablename__ = "buildings"
    __table_args__ = (
        CheckConstraint(
            "available_beds >= 0 AND available_beds <= total_beds",
            name="ck_buildings_available_beds",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    name: str = Field(max_length=255, index=True)
    description: str = Field(default="", max_length=2000)
    image: Optional[str] = Field(default=None, max_length=500)
    total_rooms: int = Field(default=0, ge=0)
    total_beds: int = Field(default=0, ge=0)
    available_beds: int = Field(default=0, ge=0)
    amenities: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)
