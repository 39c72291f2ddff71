# ridelog/Repositories/motor.py
"""
Motor Repository - Motorcycle lookups, completion counters and fuel state.

Responsibilities:
- Ownership lookups used by trip planning and record intake
- Atomic completion counters (total trips, total distance, last trip date)
- Fuel-level writes issued by MotorFuelStateUpdater
"""

from sqlalchemy.orm import Session
from sqlalchemy import case, literal, DateTime
from datetime import datetime
from typing import Optional

from ridelog.Models.motor import Motor
from ridelog.DB.transaction import commit_or_raise


# ==========================================================
# CREATE / READ
# ==========================================================

def create_motor(
    DB: Session,
    user_id: int,
    nickname: Optional[str] = None,
    brand: Optional[str] = None,
    model: Optional[str] = None,
    fuel_tank: Optional[float] = None,
    current_fuel_level: float = 0.0
) -> Motor:
    motor = Motor(
        user_id=user_id,
        nickname=nickname,
        brand=brand,
        model=model,
        fuel_tank=fuel_tank,
        current_fuel_level=current_fuel_level,
    )
    DB.add(motor)
    commit_or_raise(DB, "create motor")
    DB.refresh(motor)

    print(f"[REPO] Motor created: {motor.id} (owner: {user_id})")
    return motor


def get_motor_by_id(DB: Session, motor_id: int) -> Optional[Motor]:
    return DB.get(Motor, motor_id)


def get_motors_by_user(DB: Session, user_id: int) -> list[Motor]:
    return (
        DB.query(Motor)
        .filter(Motor.user_id == user_id)
        .order_by(Motor.id)
        .all()
    )


# ==========================================================
# ATOMIC COUNTERS
# ==========================================================

def increment_trip_totals(
    DB: Session,
    motor_id: int,
    distance: float,
    trip_date: Optional[datetime]
) -> bool:
    """
    Add one completed trip to the motor's counters.

    Args:
        DB: SQLAlchemy session
        motor_id: Motor identifier
        distance: Actual distance of the completed trip (km)
        trip_date: Trip start time; last_trip_date only moves forward

    Returns:
        bool: True if updated, False if the motor does not exist

    Notes:
        - Single atomic UPDATE; last_trip_date uses a CASE so an older trip
          completed late never moves it backwards
    """
    values = {
        Motor.total_trips: Motor.total_trips + 1,
        Motor.total_distance: Motor.total_distance + distance,
    }

    if trip_date is not None:
        stamp = literal(trip_date, DateTime(timezone=True))
        values[Motor.last_trip_date] = case(
            (Motor.last_trip_date.is_(None), stamp),
            (Motor.last_trip_date < stamp, stamp),
            else_=Motor.last_trip_date
        )

    result = (
        DB.query(Motor)
        .filter(Motor.id == motor_id)
        .update(values, synchronize_session=False)
    )

    commit_or_raise(DB, "increment motor totals")

    if result > 0:
        print(f"[REPO] Motor {motor_id}: total_trips +1, total_distance +{distance:.2f} km")
        return True

    print(f"[REPO] Cannot increment - motor not found: {motor_id}")
    return False


# ==========================================================
# FUEL STATE
# ==========================================================

def update_fuel_level(
    DB: Session,
    motor: Motor,
    fuel_level: float,
    updated_at: datetime
) -> Motor:
    motor.current_fuel_level = fuel_level
    motor.analytics_last_updated = updated_at

    commit_or_raise(DB, "update motor fuel level")
    DB.refresh(motor)

    print(f"[REPO] Motor {motor.id}: fuel level set to {fuel_level:.1f}%")
    return motor
