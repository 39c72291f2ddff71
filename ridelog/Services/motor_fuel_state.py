# ridelog/Services/motor_fuel_state.py
"""
Motor Fuel State Updater - Recomputes a motorcycle's fuel level after a refuel.

Triggered only by maintenance records of type 'refuel'. Dedicated fuel logs
do not reach this updater, so a motor refuelled only through fuel logs keeps
its previous level.

Formula:
    capacity  = motor.fuel_tank or default_tank_capacity
    new_level = clamp(((current / 100 × capacity) + liters) / capacity × 100, 0, 100)

Runs as a best-effort side effect: a missing motor or a store failure is
logged and the call returns None.
"""

import time
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ridelog.Core import log_ws
from ridelog.Core.timeutils import from_epoch
from ridelog.Models.motor import Motor
from ridelog.Repositories import motor as motor_repo


def compute_fuel_level(current_level: float, liters_added: float, capacity: float) -> float:
    liters_in_tank = (current_level / 100) * capacity
    level = (liters_in_tank + liters_added) / capacity * 100
    return max(0.0, min(100.0, level))


class MotorFuelStateUpdater:
    """
    Args:
        default_tank_capacity: Liters assumed when the motor declares no tank size
        clock: Zero-argument callable returning epoch seconds
    """

    def __init__(self, default_tank_capacity: float, clock: Callable[[], float] = time.time):
        if default_tank_capacity <= 0:
            raise ValueError("default_tank_capacity must be positive")

        self.default_tank_capacity = default_tank_capacity
        self.clock = clock

    def apply_refuel(self, DB: Session, motor_id: int, liters_added: float) -> Optional[Motor]:
        """
        Add liters to the motor's estimated fuel level.

        Returns:
            Motor or None: updated motor, None when nothing was applied
        """
        if liters_added is None or liters_added <= 0:
            return None

        try:
            motor = motor_repo.get_motor_by_id(DB, motor_id)
            if motor is None:
                log_ws.log_from_thread(
                    f"[FUEL-STATE] Motor {motor_id} not found, fuel level not updated",
                    msg_type="warning"
                )
                return None

            capacity = motor.fuel_tank if motor.fuel_tank and motor.fuel_tank > 0 else self.default_tank_capacity
            new_level = compute_fuel_level(motor.current_fuel_level or 0.0, liters_added, capacity)

            return motor_repo.update_fuel_level(DB, motor, new_level, from_epoch(self.clock()))

        except Exception as e:
            DB.rollback()
            log_ws.log_from_thread(
                f"[FUEL-STATE] Could not update fuel level of motor {motor_id}: {e}",
                msg_type="error"
            )
            return None
