# -*- coding: utf-8 -*-
"""Tests for motor fuel-level recomputation and fuel/maintenance record intake."""

from datetime import datetime, timedelta, timezone

import pytest

from ridelog.Core.errors import ForbiddenError, NotFoundError, ValidationError
from ridelog.Core.timeutils import as_utc
from ridelog.Models.motor import Motor
from ridelog.Repositories import motor as motor_repo
from ridelog.Schemas.caller import Caller
from ridelog.Schemas.records import FuelLog_create, Maintenance_create
from ridelog.Services.motor_fuel_state import MotorFuelStateUpdater, compute_fuel_level
from ridelog.Services.record_intake import resolve_total_cost


def _level(db, motor_id):
    db.expire_all()
    return db.get(Motor, motor_id).current_fuel_level


# ==========================================================
# FORMULA
# ==========================================================

class TestComputeFuelLevel:

    @pytest.mark.parametrize("current, liters, capacity, expected", [
        (0.0, 5.0, 15.0, 100 / 3),
        (50.0, 2.5, 10.0, 75.0),
        (50.0, 8.0, 10.0, 100.0),
        (100.0, 1.0, 12.0, 100.0),
        (0.0, 0.0, 15.0, 0.0),
    ])
    def test_formula_and_clamp(self, current, liters, capacity, expected):
        assert compute_fuel_level(current, liters, capacity) == pytest.approx(expected)


# ==========================================================
# UPDATER
# ==========================================================

class TestMotorFuelStateUpdater:

    def test_default_capacity_when_tank_unknown(self, db, motor, clock):
        updater = MotorFuelStateUpdater(15.0, clock=clock)

        updated = updater.apply_refuel(db, motor.id, 5.0)

        assert updated.current_fuel_level == pytest.approx(33.33, abs=0.01)
        assert as_utc(updated.analytics_last_updated) == clock.datetime()

    def test_declared_tank_capacity_wins(self, db, rider, clock):
        motor = motor_repo.create_motor(db, rider.id, fuel_tank=5.0, current_fuel_level=20.0)
        updater = MotorFuelStateUpdater(15.0, clock=clock)

        updater.apply_refuel(db, motor.id, 2.0)

        assert _level(db, motor.id) == pytest.approx(60.0)

    def test_missing_motor_returns_none(self, db, clock):
        assert MotorFuelStateUpdater(15.0, clock=clock).apply_refuel(db, 4242, 5.0) is None

    @pytest.mark.parametrize("liters", [0.0, -1.0, None])
    def test_non_positive_liters_ignored(self, db, motor, clock, liters):
        assert MotorFuelStateUpdater(15.0, clock=clock).apply_refuel(db, motor.id, liters) is None
        assert _level(db, motor.id) == 0.0

    def test_store_failure_is_swallowed(self, db, motor, clock, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(motor_repo, "update_fuel_level", boom)

        assert MotorFuelStateUpdater(15.0, clock=clock).apply_refuel(db, motor.id, 5.0) is None
        assert _level(db, motor.id) == 0.0

    def test_rejects_non_positive_default_capacity(self):
        with pytest.raises(ValueError):
            MotorFuelStateUpdater(0)


# ==========================================================
# RECORD INTAKE
# ==========================================================

class TestResolveTotalCost:

    def test_computed_when_missing(self):
        assert resolve_total_cost(10.0, 50.0, None, 0.01) == pytest.approx(500.0)

    def test_rounding_tolerated(self):
        assert resolve_total_cost(3.333, 61.5, 204.98, 0.01) == 204.98

    def test_mismatch_rejected(self):
        with pytest.raises(ValidationError):
            resolve_total_cost(10.0, 50.0, 450.0, 0.01)


class TestRecordIntake:

    def test_fuel_log_does_not_touch_fuel_level(self, intake, db, caller, motor, clock):
        log = intake.create_fuel_log(db, caller, FuelLog_create(motor_id=motor.id, liters=10.0, price_per_liter=50.0))

        assert log.total_cost == pytest.approx(500.0)
        assert as_utc(log.date) == clock.datetime()
        assert log.user_id == caller.user_id
        assert _level(db, motor.id) == 0.0

    def test_fuel_log_total_mismatch(self, intake, db, caller, motor):
        with pytest.raises(ValidationError):
            intake.create_fuel_log(db, caller, FuelLog_create(
                motor_id=motor.id, liters=10.0, price_per_liter=50.0, total_cost=10.0
            ))

    def test_maintenance_refuel_updates_fuel_level(self, intake, db, caller, motor):
        record = intake.create_maintenance_record(db, caller, Maintenance_create(
            motor_id=motor.id, type='refuel', quantity=5.0, cost=275.0
        ))

        assert record.type == 'refuel'
        assert _level(db, motor.id) == pytest.approx(33.33, abs=0.01)

    def test_non_refuel_leaves_fuel_level(self, intake, db, caller, motor):
        intake.create_maintenance_record(db, caller, Maintenance_create(
            motor_id=motor.id, type='oil_change', cost=450.0, quantity=1.0
        ))

        assert _level(db, motor.id) == 0.0

    def test_refuel_without_quantity_rejected_by_schema(self, motor):
        with pytest.raises(ValueError):
            Maintenance_create(motor_id=motor.id, type='refuel', cost=100.0)

    def test_foreign_motor_forbidden(self, intake, db, motor, other_rider):
        stranger = Caller(user_id=other_rider.id)

        with pytest.raises(ForbiddenError):
            intake.create_fuel_log(db, stranger, FuelLog_create(motor_id=motor.id, liters=1.0, price_per_liter=60.0))
        with pytest.raises(ForbiddenError):
            intake.create_maintenance_record(db, stranger, Maintenance_create(
                motor_id=motor.id, type='refuel', quantity=1.0
            ))

    def test_admin_records_under_motor_owner(self, intake, db, admin, motor, rider):
        log = intake.create_fuel_log(db, admin, FuelLog_create(motor_id=motor.id, liters=2.0, price_per_liter=60.0))

        assert log.user_id == rider.id

    def test_unknown_motor(self, intake, db, caller):
        with pytest.raises(NotFoundError):
            intake.create_fuel_log(db, caller, FuelLog_create(motor_id=777, liters=1.0, price_per_liter=60.0))

    def test_maintenance_analytics(self, intake, db, caller, motor, clock):
        now = clock.datetime()
        entries = [
            ('refuel', 1, 275.0, 5.0),
            ('refuel', 3, 165.0, 3.0),
            ('oil_change', 5, 450.0, None),
            ('tune_up', 8, 900.0, None),
            ('repair', 10, 1200.0, None),
            ('inspection', 12, 0.0, None),
            ('refuel', 45, 500.0, 10.0),
        ]
        for kind, days_ago, cost, quantity in entries:
            intake.create_maintenance_record(db, caller, Maintenance_create(
                motor_id=motor.id, type=kind, cost=cost, quantity=quantity,
                timestamp=now - timedelta(days=days_ago)
            ))

        report = intake.maintenance_analytics(db, caller, motor.id)

        assert report["period"] == '30d'
        assert report["total_records"] == 6
        assert report["total_cost"] == pytest.approx(2990.0)
        assert report["refuel_count"] == 2
        assert report["total_fuel_added"] == pytest.approx(8.0)
        assert report["avg_cost_per_refuel"] == pytest.approx(220.0)
        assert report["records_by_type"] == {
            'refuel': 2, 'oil_change': 1, 'tune_up': 1, 'repair': 1, 'inspection': 1
        }
        assert len(report["recent_records"]) == 5
        assert as_utc(report["recent_records"][0].timestamp) == now - timedelta(days=1)
