"""
Shared test fixtures

- in-memory SQLite DB with foreign keys enforced (isolated per test)
- FastAPI TestClient wired to that DB
- helpers for building reference rows
"""

import os

# Must be set before the package creates its engine.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENABLE_SCHEDULER", "false")

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fisheries_service import models
from fisheries_service.database import Base, enable_sqlite_foreign_keys, get_db
from fisheries_service.main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def reference_data(db):
    """One customer and two fish types with ids 1 and 2, plus an inactive one."""
    user = models.User(id=1, full_name="Nimal Perera", email="nimal@example.com", phone_number="0771234567")
    tuna = models.FishType(id=1, fish_name="Yellowfin Tuna", category="pelagic", average_shelf_life_hours=48)
    skipjack = models.FishType(id=2, fish_name="Skipjack", category="pelagic", average_shelf_life_hours=36)
    retired = models.FishType(id=3, fish_name="Shark", category="demersal", is_active=False)
    db.add_all([user, tuna, skipjack, retired])
    db.commit()
    return {"user": user, "fish_types": [tuna, skipjack, retired]}


@pytest.fixture
def order_payload():
    return {
        "userId": 1,
        "deliveryDate": (date.today() + timedelta(days=2)).isoformat(),
        "deliveryTimeSlot": "morning",
        "deliveryLatitude": 6.9271,
        "deliveryLongitude": 79.8612,
        "deliveryAddress": "No. 12, Galle Road, Colombo 03",
        "orderItems": [
            {"fishTypeId": 1, "quantityKg": 2, "unitPrice": 500},
            {"fishTypeId": 2, "quantityKg": 1, "unitPrice": 1200},
        ],
    }

