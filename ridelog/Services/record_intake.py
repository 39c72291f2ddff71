# ridelog/Services/record_intake.py
"""
Record Intake - Creation of the events the fuel ledger consumes.

Responsibilities:
- Fuel logs: ownership check, total cost computed or checked against
  liters × price_per_liter
- Maintenance records: ownership check, refuels forwarded to
  MotorFuelStateUpdater (best effort)
- Maintenance analytics per motorcycle

Only maintenance refuels update the motor fuel level; fuel logs never do.
"""

import math
import time
from collections import Counter
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ridelog.Core.config import settings
from ridelog.Core.errors import ForbiddenError, NotFoundError, ValidationError
from ridelog.Core.timeutils import as_utc, from_epoch
from ridelog.Models.fuel_log import FuelLog
from ridelog.Models.maintenance_record import MaintenanceRecord
from ridelog.Models.motor import Motor
from ridelog.Repositories import fuel_log as fuel_log_repo
from ridelog.Repositories import maintenance as maintenance_repo
from ridelog.Repositories import motor as motor_repo
from ridelog.Schemas.caller import Caller
from ridelog.Schemas.records import FuelLog_create, Maintenance_create
from ridelog.Services.motor_fuel_state import MotorFuelStateUpdater
from ridelog.Services.periods import period_window, resolve_period


RECENT_RECORDS_LIMIT = 5


def _owned_motor(DB: Session, caller: Caller, motor_id: int) -> Motor:
    motor = motor_repo.get_motor_by_id(DB, motor_id)

    if motor is None:
        raise NotFoundError(f"Motor {motor_id} not found", context={"motor_id": motor_id})

    if not caller.can_act_for(motor.user_id):
        raise ForbiddenError(
            "Motor does not belong to the caller",
            context={"motor_id": motor_id, "user_id": caller.user_id}
        )

    return motor


def resolve_total_cost(
    liters: float,
    price_per_liter: float,
    total_cost: Optional[float],
    abs_tolerance: float
) -> float:
    """
    Total cost of a fuel purchase.

    Missing totals are computed. Supplied totals must match
    liters × price_per_liter within 1e-6 relative or abs_tolerance absolute.
    """
    expected = liters * price_per_liter

    if total_cost is None:
        return expected

    if not math.isclose(total_cost, expected, rel_tol=1e-6, abs_tol=abs_tolerance):
        raise ValidationError(
            "total_cost does not match liters × price_per_liter",
            context={"total_cost": total_cost, "expected": round(expected, 2)}
        )

    return total_cost


class RecordIntake:
    """
    Args:
        fuel_state: Updater applied to maintenance refuels
        clock: Zero-argument callable returning epoch seconds (default timestamps)
        cost_tolerance: Absolute slack on fuel-log totals
    """

    def __init__(
        self,
        fuel_state: MotorFuelStateUpdater,
        clock: Callable[[], float] = time.time,
        cost_tolerance: float = 0.01
    ):
        self.fuel_state = fuel_state
        self.clock = clock
        self.cost_tolerance = cost_tolerance

    def create_fuel_log(self, DB: Session, caller: Caller, log_data: FuelLog_create) -> FuelLog:
        motor = _owned_motor(DB, caller, log_data.motor_id)

        total_cost = resolve_total_cost(
            log_data.liters, log_data.price_per_liter, log_data.total_cost, self.cost_tolerance
        )
        date = as_utc(log_data.date) if log_data.date else from_epoch(self.clock())

        fuel_log = fuel_log_repo.create_fuel_log(DB, motor.user_id, log_data, total_cost, date)
        print(f"[FUEL] Fuel log {fuel_log.id} recorded for motor {motor.id}")
        return fuel_log

    def create_maintenance_record(self, DB: Session, caller: Caller, record_data: Maintenance_create) -> MaintenanceRecord:
        """
        Persist a maintenance record; refuels then update the motor fuel level.

        The fuel-level update never fails the request: the record is already
        committed when it runs.
        """
        motor = _owned_motor(DB, caller, record_data.motor_id)

        if record_data.type == 'refuel' and not (record_data.quantity and record_data.quantity > 0):
            raise ValidationError("Refuel records require a positive quantity", context={"field": "quantity"})

        timestamp = as_utc(record_data.timestamp) if record_data.timestamp else from_epoch(self.clock())
        record = maintenance_repo.create_maintenance_record(DB, motor.user_id, record_data, timestamp)

        if record.type == 'refuel':
            self.fuel_state.apply_refuel(DB, motor.id, record.quantity)
            DB.refresh(record)

        return record

    def maintenance_analytics(
        self,
        DB: Session,
        caller: Caller,
        motor_id: int,
        period: Optional[str] = None
    ) -> dict:
        motor = _owned_motor(DB, caller, motor_id)
        period = resolve_period(period)
        since, _ = period_window(period, from_epoch(self.clock()))

        records = maintenance_repo.get_records_by_motor(DB, motor.id, since)
        refuels = [record for record in records if record.type == 'refuel']

        refuel_cost = sum(record.cost or 0.0 for record in refuels)

        return {
            "period": period,
            "motor_id": motor.id,
            "total_records": len(records),
            "total_cost": sum(record.cost or 0.0 for record in records),
            "total_fuel_added": sum(record.quantity or 0.0 for record in refuels),
            "avg_cost_per_refuel": refuel_cost / len(refuels) if refuels else 0.0,
            "refuel_count": len(refuels),
            "records_by_type": dict(Counter(record.type for record in records)),
            "recent_records": records[:RECENT_RECORDS_LIMIT],
        }


# Global instance used by the intake routes
record_intake = RecordIntake(
    MotorFuelStateUpdater(default_tank_capacity=settings.DEFAULT_TANK_CAPACITY_L),
    cost_tolerance=settings.FUEL_COST_ABS_TOLERANCE
)
