# ridelog/Repositories/fuel_log.py
"""
FuelLog Repository - Dedicated fuel purchases.

Read side feeds SqlFuelEventSource (ridelog/Services/fuel_ledger.py);
write side is used by the fuel-log intake service.
"""

from sqlalchemy.orm import Session
from sqlalchemy import and_, func
from datetime import datetime
from typing import Optional

from ridelog.Models.fuel_log import FuelLog
from ridelog.Schemas.records import FuelLog_create
from ridelog.DB.transaction import commit_or_raise


def create_fuel_log(
    DB: Session,
    user_id: int,
    log_data: FuelLog_create,
    total_cost: float,
    date: datetime
) -> FuelLog:
    fields = log_data.model_dump(exclude={'total_cost', 'date'})

    new_log = FuelLog(user_id=user_id, total_cost=total_cost, date=date, **fields)
    DB.add(new_log)
    commit_or_raise(DB, "create fuel log")
    DB.refresh(new_log)

    print(f"[REPO] Fuel log created: {new_log.id} (motor: {new_log.motor_id}, {new_log.liters} L)")

    return new_log


def get_fuel_logs_in_window(
    DB: Session,
    user_id: int,
    start: datetime,
    end: datetime,
    motor_id: Optional[int] = None
) -> list[FuelLog]:
    """
    Fuel logs of a rider dated within [start, end], ordered by id.

    Args:
        DB: SQLAlchemy session
        user_id: Owning rider
        start: Window start (inclusive)
        end: Window end (inclusive)
        motor_id: Restrict to one motorcycle, None for all
    """
    query = DB.query(FuelLog).filter(
        FuelLog.user_id == user_id,
        FuelLog.date >= start,
        FuelLog.date <= end
    )

    if motor_id is not None:
        query = query.filter(FuelLog.motor_id == motor_id)

    return query.order_by(FuelLog.id).all()


def get_latest_readings_before(
    DB: Session,
    user_id: int,
    before: datetime,
    motor_id: Optional[int] = None
) -> list[FuelLog]:
    """
    Latest odometer-bearing fuel log of each motor dated before `before`.

    Seeds the odometer distance of the first reading inside a period window.
    Several rows of one motor are returned when they share the latest date.
    """
    filters = [
        FuelLog.user_id == user_id,
        FuelLog.odometer.isnot(None),
        FuelLog.date < before,
    ]
    if motor_id is not None:
        filters.append(FuelLog.motor_id == motor_id)

    latest = (
        DB.query(FuelLog.motor_id, func.max(FuelLog.date).label('latest_date'))
        .filter(*filters)
        .group_by(FuelLog.motor_id)
        .subquery()
    )

    return (
        DB.query(FuelLog)
        .join(latest, and_(FuelLog.motor_id == latest.c.motor_id, FuelLog.date == latest.c.latest_date))
        .filter(*filters)
        .order_by(FuelLog.id)
        .all()
    )
