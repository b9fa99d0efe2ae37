"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.pool import Pool, StaticPool

from pricing_backend.app.main import app
from pricing_backend.app.db.session import Database, get_db
from pricing_backend.app.domain.pricing.fare_calculator import FareCalculator
from pricing_backend.app.models.pricing_enums import MultiplierType
from pricing_backend.app.models.pricing_multiplier import PricingMultiplier
from pricing_backend.app.models.vehicle_type import VehicleType

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# Event handler to enable foreign keys for SQLite
@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture
async def database():
    """Fresh in-memory database per test."""
    database = Database(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await database.create_all()
    yield database
    await database.dispose()


@pytest.fixture
async def db_session(database):
    """Shared session for fixture data creation and direct domain calls."""
    async with database.session_factory() as session:
        yield session


@pytest.fixture
async def client(database):
    """Async client for testing. ASGITransport does not run the lifespan, so state is wired here."""
    async def override_get_db():
        async with database.session_factory() as session:
            yield session

    app.state.database = database
    app.state.fare_calculator = FareCalculator()
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


@pytest.fixture
async def sedan(db_session):
    """Sedan at 2.50/km with fares bounded to [5.00, 100.00]."""
    vehicle_type = VehicleType(
        name="Sedan",
        description="Standard sedan",
        per_km_charges=2.50,
        minimum_fare=5.00,
        maximum_fare=100.00,
        is_active=True,
    )
    db_session.add(vehicle_type)
    await db_session.commit()
    await db_session.refresh(vehicle_type)
    return vehicle_type


@pytest.fixture
async def add_multiplier(db_session):
    """Factory attaching a multiplier to a vehicle type."""
    async def _add(vehicle_type, multiplier_type: MultiplierType, value: float, is_active: bool = True, created_at=None):
        multiplier = PricingMultiplier(
            vehicle_type_id=vehicle_type.id,
            multiplier_type=multiplier_type,
            multiplier_value=value,
            is_active=is_active,
        )
        if created_at is not None:
            multiplier.created_at = created_at
        db_session.add(multiplier)
        await db_session.commit()
        await db_session.refresh(multiplier)
        return multiplier

    return _add
