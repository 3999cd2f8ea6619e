"""
Shared fixtures

- in-memory stores seeded with three rooms, for engine and service tests
- a FastAPI TestClient running against an in-memory SQLite database
"""

import pytest
from datetime import date
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from innkeeper.config import Settings
from innkeeper.engine.types import Room
from innkeeper.services.stores import InMemoryStores


@pytest.fixture
def settings():
    return Settings(
        environment="test",
        database_url="sqlite://",
        weekend_days="0,6",
        dirty_blocks_booking=False,
        enforce_stay_rules=True,
        max_grid_days=366,
        log_json=False,
    )


@pytest.fixture
def room():
    return Room(id="r101", name="101", room_type="double", base_price=Decimal("100.00"))


@pytest.fixture
def stores(room):
    stores = InMemoryStores()
    stores.rooms.add_room(room)
    stores.rooms.add_room(Room(id="r102", name="102", room_type="double", base_price=Decimal("100.00")))
    stores.rooms.add_room(Room(id="r201", name="201", room_type="suite", base_price=Decimal("300.00")))
    return stores


@pytest.fixture
def reference_date():
    return date(2024, 1, 10)


@pytest.fixture
def db_session_factory():
    from innkeeper.database import Base
    from innkeeper import models  # noqa: F401

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def client(db_session_factory):
    from fastapi.testclient import TestClient
    from innkeeper.database import get_db
    from innkeeper.main import app

    def override_get_db():
        db = db_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
