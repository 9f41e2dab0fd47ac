"""
Seed demo hostel buildings, rooms and beds.

Usage:
    python scripts/seed_buildings.py
"""

import logging

from sqlmodel import Session, select

from hostel.db import engine, init_db
from hostel.models import Building
from hostel.services import store

logger = logging.getLogger(__name__)

BUILDINGS = [
    {
        "name": "Hall A",
        "description": "Quiet hall next to the library",
        "amenities": ["WiFi", "Laundry", "Study Room"],
        "rooms": [
            {"number": "101", "type": "double", "amenities": ["Desk"], "price": 450.0},
            {"number": "102", "type": "single", "amenities": ["Desk", "Balcony"], "price": 600.0},
            {"number": "103", "type": "quad", "price": 300.0},
        ],
    },
    {
        "name": "Hall B",
        "description": "Lively hall by the sports centre",
        "amenities": ["WiFi", "Gym", "Common Kitchen"],
        "rooms": [
            {"number": "201", "type": "triple", "price": 380.0},
            {"number": "202", "type": "double", "amenities": ["Air Conditioning"], "price": 480.0},
        ],
    },
]


def seed_buildings() -> None:
    """Create the demo buildings unless some already exist."""
    init_db()
    with Session(engine) as session:
        existing = session.exec(select(Building)).all()
        if existing:
            logger.info(f"Found {len(existing)} buildings, skipping seed:")
            for building in existing:
                logger.info(f"  - {building.name}")
            return

        try:
            for data in BUILDINGS:
                building = store.create_building(session, **data)
                logger.info(f"  [OK] {building.name}: {building.total_beds} beds")
            session.commit()
        except Exception:
            session.rollback()
            logger.exception("Seeding buildings failed")
            raise

        logger.info(f"Created {len(BUILDINGS)} buildings")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    seed_buildings()
