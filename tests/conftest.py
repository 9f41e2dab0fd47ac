import os

# Settings are read at import time; point everything at local, in-process
# backends before the application package is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_CACHE_URL"] = "redis://127.0.0.1:6390/15"
os.environ["RATE_LIMIT_STORAGE_URI"] = "memory://"
os.environ["BOOKING_RATE_LIMIT"] = "1000/minute"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASSWORD"] = ""
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import hostel.models  # noqa: F401
from hostel.core.cache import get_cache
from hostel.db import get_session
from hostel.main import app
from hostel.services import store


@pytest.fixture(autouse=True)
def _clear_cache():
    get_cache().clear()
    yield
    get_cache().clear()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def hall_a(session):
    """Hall A with a free double room 101 and a single room 102."""
    building = store.create_building(
        session,
        name="Hall A",
        description="Quiet hall next to the library",
        amenities=["WiFi", "Laundry"],
        rooms=[
            {"number": "101", "type": "double", "amenities": ["Desk"]},
            {"number": "102", "type": "single", "amenities": ["Balcony"]},
        ],
    )
    session.commit()
    session.refresh(building)
    return building


@pytest.fixture
def hall_b(session):
    building = store.create_building(
        session,
        name="Hall B",
        description="Lively hall by the sports centre",
        amenities=["Gym"],
        rooms=[{"number": "201", "type": "triple"}],
    )
    session.commit()
    session.refresh(building)
    return building


@pytest.fixture
def client(engine):
    def get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    yield TestClient(app)
    app.dependency_overrides.clear()

