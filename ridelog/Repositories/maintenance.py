# ridelog/Repositories/maintenance.py
"""
Maintenance Repository - Maintenance records of every type.

Records with type='refuel' are the second source of the fuel ledger.
"""

from sqlalchemy.orm import Session
from sqlalchemy import and_, func
from datetime import datetime
from typing import Optional

from ridelog.Models.maintenance_record import MaintenanceRecord
from ridelog.Schemas.records import Maintenance_create
from ridelog.DB.transaction import commit_or_raise


def create_maintenance_record(
    DB: Session,
    user_id: int,
    record_data: Maintenance_create,
    timestamp: datetime
) -> MaintenanceRecord:
    fields = record_data.model_dump(exclude={'timestamp'})

    new_record = MaintenanceRecord(user_id=user_id, timestamp=timestamp, **fields)
    DB.add(new_record)
    commit_or_raise(DB, "create maintenance record")
    DB.refresh(new_record)

    print(f"[REPO] Maintenance record created: {new_record.id} "
          f"(motor: {new_record.motor_id}, type: {new_record.type})")

    return new_record


def get_refuels_in_window(
    DB: Session,
    user_id: int,
    start: datetime,
    end: datetime,
    motor_id: Optional[int] = None
) -> list[MaintenanceRecord]:
    """
    Refuel records of a rider timestamped within [start, end], ordered by id.
    """
    query = DB.query(MaintenanceRecord).filter(
        MaintenanceRecord.user_id == user_id,
        MaintenanceRecord.type == 'refuel',
        MaintenanceRecord.timestamp >= start,
        MaintenanceRecord.timestamp <= end
    )

    if motor_id is not None:
        query = query.filter(MaintenanceRecord.motor_id == motor_id)

    return query.order_by(MaintenanceRecord.id).all()


def get_records_by_motor(
    DB: Session,
    motor_id: int,
    since: Optional[datetime] = None
) -> list[MaintenanceRecord]:
    """All maintenance records of a motorcycle, newest first."""
    query = DB.query(MaintenanceRecord).filter(MaintenanceRecord.motor_id == motor_id)

    if since:
        query = query.filter(MaintenanceRecord.timestamp >= since)

    return (
        query.order_by(MaintenanceRecord.timestamp.desc(), MaintenanceRecord.id.desc())
        .all()
    )


def get_latest_readings_before(
    DB: Session,
    user_id: int,
    before: datetime,
    motor_id: Optional[int] = None
) -> list[MaintenanceRecord]:
    """Latest odometer-bearing refuel of each motor timestamped before `before`."""
    filters = [
        MaintenanceRecord.user_id == user_id,
        MaintenanceRecord.type == 'refuel',
        MaintenanceRecord.odometer_reading.isnot(None),
        MaintenanceRecord.timestamp < before,
    ]
    if motor_id is not None:
        filters.append(MaintenanceRecord.motor_id == motor_id)

    latest = (
        DB.query(MaintenanceRecord.motor_id, func.max(MaintenanceRecord.timestamp).label('latest_timestamp'))
        .filter(*filters)
        .group_by(MaintenanceRecord.motor_id)
        .subquery()
    )

    return (
        DB.query(MaintenanceRecord)
        .join(latest, and_(
            MaintenanceRecord.motor_id == latest.c.motor_id,
            MaintenanceRecord.timestamp == latest.c.latest_timestamp
        ))
        .filter(*filters)
        .order_by(MaintenanceRecord.id)
        .all()
    )
