# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures."""

import os
from datetime import datetime, timezone

import pytest

# In-memory SQLite for every test; must be set before ridelog is imported
os.environ["DATABASE_URL"] = "sqlite://"

from fastapi.testclient import TestClient

from ridelog.Controller import deps
from ridelog.Core.config import settings
from ridelog.Core.timeutils import from_epoch
from ridelog.DB.base import Base
from ridelog.DB.session import SessionLocal, engine
from ridelog.Repositories import motor as motor_repo
from ridelog.Repositories import rider as rider_repo
from ridelog.Schemas.caller import Caller
from ridelog.Services.analytics_cache import AnalyticsCache, TTLCacheStore, default_ttls
from ridelog.Services.fuel_analytics import FuelAnalytics
from ridelog.Services.motor_fuel_state import MotorFuelStateUpdater
from ridelog.Services.record_intake import RecordIntake
from ridelog.Services.trip_lifecycle import TripLifecycleManager


# 2024-01-10T00:00:00Z
DEFAULT_NOW = datetime(2024, 1, 10, tzinfo=timezone.utc).timestamp()


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = DEFAULT_NOW):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def datetime(self) -> datetime:
        return from_epoch(self.now)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db():
    """Fresh schema per test on the shared in-memory engine."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def rider(db):
    return rider_repo.create_rider(db, name="Ana")


@pytest.fixture
def other_rider(db):
    return rider_repo.create_rider(db, name="Ben")


@pytest.fixture
def motor(db, rider):
    return motor_repo.create_motor(db, rider.id, nickname="Daily", brand="Honda", model="Click 125")


@pytest.fixture
def caller(rider):
    return Caller(user_id=rider.id)


@pytest.fixture
def admin():
    return Caller(user_id=999, is_admin=True)


@pytest.fixture
def lifecycle(clock):
    return TripLifecycleManager(clock=clock)


@pytest.fixture
def intake(clock):
    return RecordIntake(
        MotorFuelStateUpdater(settings.DEFAULT_TANK_CAPACITY_L, clock=clock),
        clock=clock,
        cost_tolerance=settings.FUEL_COST_ABS_TOLERANCE
    )


@pytest.fixture
def analytics(clock):
    cache = AnalyticsCache(TTLCacheStore(clock), clock, ttls=default_ttls())
    return FuelAnalytics(cache, clock=clock)


@pytest.fixture
def client(db, lifecycle, intake, analytics):
    from ridelog.main import app

    app.dependency_overrides[deps.get_trip_lifecycle] = lambda: lifecycle
    app.dependency_overrides[deps.get_record_intake] = lambda: intake
    app.dependency_overrides[deps.get_fuel_analytics] = lambda: analytics

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def headers(rider):
    return {"X-User-Id": str(rider.id)}
