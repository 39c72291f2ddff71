#ridelog/Controller/deps.py

from typing import Generator, Optional
from fastapi import Header
from ridelog.Core.errors import ValidationError
from ridelog.DB.session import SessionLocal
from ridelog.Schemas.caller import Caller
from ridelog.Services.fuel_analytics import FuelAnalytics, fuel_analytics
from ridelog.Services.record_intake import RecordIntake, record_intake
from ridelog.Services.trip_lifecycle import TripLifecycleManager, trip_lifecycle


def get_DB() -> Generator:
    DB = SessionLocal()
    try:
        yield DB
    finally:
        DB.close()


def get_current_caller(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None)
) -> Caller:
    # Identity is resolved upstream and forwarded as headers
    if not x_user_id or not x_user_id.strip().isdigit() or int(x_user_id) < 1:
        raise ValidationError("X-User-Id header must be a positive integer", context={"header": "X-User-Id"})

    return Caller(
        user_id=int(x_user_id),
        is_admin=(x_user_role or "").strip().lower() == "admin"
    )


def get_trip_lifecycle() -> TripLifecycleManager:
    return trip_lifecycle


def get_fuel_analytics() -> FuelAnalytics:
    return fuel_analytics


def get_record_intake() -> RecordIntake:
    return record_intake
