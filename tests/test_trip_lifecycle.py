# -*- coding: utf-8 -*-
"""Tests for TripLifecycleManager: state machine, durations and counter propagation."""

from datetime import datetime, timedelta, timezone

import pytest

from ridelog.Core.errors import ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from ridelog.Core.timeutils import as_utc
from ridelog.DB.session import SessionLocal
from ridelog.Models.motor import Motor
from ridelog.Models.rider import Rider
from ridelog.Repositories import motor as motor_repo
from ridelog.Repositories import rider as rider_repo
from ridelog.Schemas.caller import Caller
from ridelog.Schemas.trip import (
    Expense_create,
    Location,
    Note_create,
    RoutePoint_create,
    Route_update,
    Trip_create,
    Trip_final_stats,
    Trip_status_update,
)
from ridelog.Services.trip_lifecycle import round_minutes


T0 = datetime(2024, 1, 9, 8, 0, tzinfo=timezone.utc)


def _plan(lifecycle, db, caller, motor, **overrides):
    data = {
        "motor_id": motor.id,
        "destination": "Tagaytay",
        "distance": 60.0,
        "fuel_used_min": 2.0,
        "fuel_used_max": 3.0,
    }
    data.update(overrides)
    return lifecycle.create_planned(db, caller, Trip_create(**data))


def _started(lifecycle, db, caller, motor, start=T0):
    return _plan(lifecycle, db, caller, motor, trip_start_time=start)


def _counters(db, model, pk):
    db.expire_all()
    return db.get(model, pk)


# ==========================================================
# CREATION
# ==========================================================

class TestCreatePlanned:

    def test_creates_planned_trip(self, lifecycle, db, caller, motor):
        trip = _plan(lifecycle, db, caller, motor, eta="1h 30m",
                     start_location=Location(lat=14.55, lng=121.02, address="Makati"))

        assert trip.status == 'planned'
        assert trip.user_id == caller.user_id
        assert trip.trip_start_time is None
        assert trip.start_address == "Makati"
        assert trip.reroute_count == 0
        assert trip.was_rerouted is False

    def test_start_time_creates_in_progress(self, lifecycle, db, caller, motor):
        trip = _started(lifecycle, db, caller, motor)

        assert trip.status == 'in_progress'
        assert as_utc(trip.trip_start_time) == T0

    def test_missing_motor_is_not_found(self, lifecycle, db, caller, motor):
        with pytest.raises(NotFoundError):
            _plan(lifecycle, db, caller, motor, motor_id=motor.id + 100)

    def test_foreign_motor_is_forbidden(self, lifecycle, db, other_rider, motor):
        with pytest.raises(ForbiddenError):
            _plan(lifecycle, db, Caller(user_id=other_rider.id), motor)

    def test_blank_destination_rejected(self, lifecycle, db, caller, motor):
        with pytest.raises(ValidationError):
            _plan(lifecycle, db, caller, motor, destination="   ")

    def test_fuel_range_must_be_ordered(self):
        with pytest.raises(ValueError):
            Trip_create(motor_id=1, destination="X", fuel_used_min=5.0, fuel_used_max=2.0)


# ==========================================================
# TRAVEL EVENTS
# ==========================================================

class TestTravelEvents:

    def test_start_moves_planned_to_in_progress(self, lifecycle, db, caller, motor, clock):
        trip = _plan(lifecycle, db, caller, motor)

        started = lifecycle.start(db, caller, trip.id)

        assert started.status == 'in_progress'
        assert as_utc(started.trip_start_time) == clock.datetime()

    def test_start_twice_rejected(self, lifecycle, db, caller, motor):
        trip = _started(lifecycle, db, caller, motor)

        with pytest.raises(InvalidStateError):
            lifecycle.start(db, caller, trip.id)

    def test_route_point_requires_in_progress(self, lifecycle, db, caller, motor):
        trip = _plan(lifecycle, db, caller, motor)

        with pytest.raises(InvalidStateError):
            lifecycle.add_route_point(db, caller, trip.id, RoutePoint_create(lat=14.5, lng=121.0))

    def test_route_point_appended(self, lifecycle, db, caller, motor):
        trip = _started(lifecycle, db, caller, motor)

        trip = lifecycle.add_route_point(db, caller, trip.id, RoutePoint_create(lat=14.5, lng=121.0, speed=40.0))

        assert len(trip.route_points) == 1
        assert trip.route_points[0].speed == 40.0

    def test_event_timestamps_follow_epoch_clock(self, lifecycle, db, caller, motor, clock):
        trip = _plan(lifecycle, db, caller, motor)
        lifecycle.start(db, caller, trip.id)
        clock.advance(90)

        trip = lifecycle.add_route_point(db, caller, trip.id, RoutePoint_create(lat=14.5, lng=121.0))

        assert as_utc(trip.route_points[0].timestamp) == clock.datetime()
        assert (as_utc(trip.route_points[0].timestamp) - as_utc(trip.trip_start_time)).total_seconds() == 90

    def test_route_point_rejects_infinite_speed(self, lifecycle, db, caller, motor):
        trip = _started(lifecycle, db, caller, motor)

        with pytest.raises(ValidationError):
            lifecycle.add_route_point(db, caller, trip.id, RoutePoint_create(lat=14.5, lng=121.0, speed=float('inf')))

    def test_route_point_coordinates_validated_by_schema(self):
        with pytest.raises(ValueError):
            RoutePoint_create(lat=91.0, lng=0.0)
        with pytest.raises(ValueError):
            RoutePoint_create(lat=0.0, lng=-180.5)

    def test_reroute_requires_in_progress(self, lifecycle, db, caller, motor):
        trip = _plan(lifecycle, db, caller, motor)

        with pytest.raises(InvalidStateError):
            lifecycle.add_reroute(db, caller, trip.id)

    def test_reroute_counts_up(self, lifecycle, db, caller, motor):
        trip = _started(lifecycle, db, caller, motor)

        lifecycle.add_reroute(db, caller, trip.id)
        trip = lifecycle.add_reroute(db, caller, trip.id)

        assert trip.was_rerouted is True
        assert trip.reroute_count == 2

    def test_expense_allowed_while_planned(self, lifecycle, db, caller, motor):
        trip = _plan(lifecycle, db, caller, motor)

        trip = lifecycle.add_expense(db, caller, trip.id, Expense_create(type='toll', amount=120.0, description="SLEX"))

        assert trip.total_expenses == 120.0
        assert trip.expenses[0].type == 'toll'

    def test_negative_expense_rejected_by_schema(self):
        with pytest.raises(ValueError):
            Expense_create(type='parking', amount=-1.0)

    def test_note_and_route_update(self, lifecycle, db, caller, motor):
        trip = _started(lifecycle, db, caller, motor)

        lifecycle.add_note(db, caller, trip.id, Note_create(content="Coffee stop",
                                                            location=Location(lat=14.1, lng=120.9)))
        trip = lifecycle.update_route(db, caller, trip.id, Route_update(actual_polyline="abc123"))

        assert trip.notes[0].content == "Coffee stop"
        assert trip.notes[0].lat == 14.1
        assert trip.actual_polyline == "abc123"
        assert trip.planned_polyline is None

    def test_events_rejected_on_terminal_trip(self, lifecycle, db, caller, motor):
        trip = _plan(lifecycle, db, caller, motor)
        lifecycle.cancel(db, caller, trip.id)

        with pytest.raises(InvalidStateError):
            lifecycle.add_expense(db, caller, trip.id, Expense_create(type='fuel', amount=10.0))
        with pytest.raises(InvalidStateError):
            lifecycle.add_note(db, caller, trip.id, Note_create(content="late"))


# ==========================================================
# COMPLETION
# ==========================================================

class TestComplete:

    def test_worked_scenario(self, lifecycle, db, caller, motor, rider):
        trip = _started(lifecycle, db, caller, motor, start=T0)

        for lat in (14.50, 14.51, 14.52):
            lifecycle.add_route_point(db, caller, trip.id, RoutePoint_create(lat=lat, lng=121.0))
        lifecycle.add_reroute(db, caller, trip.id)

        trip = lifecycle.complete(
            db, caller, trip.id,
            end_time=T0 + timedelta(minutes=45),
            final_stats=Trip_final_stats(actual_distance=32.5, avg_speed=43.3)
        )

        assert trip.status == 'completed'
        assert trip.reroute_count == 1
        assert trip.was_rerouted is True
        assert trip.duration == 45
        assert trip.actual_distance == 32.5
        assert len(trip.route_points) == 3

        owner = _counters(db, Rider, rider.id)
        assert owner.total_trips == 1
        assert owner.total_distance == pytest.approx(32.5)

        bike = _counters(db, Motor, motor.id)
        assert bike.total_trips == 1
        assert bike.total_distance == pytest.approx(32.5)
        assert as_utc(bike.last_trip_date) == T0

    @pytest.mark.parametrize("elapsed, expected", [
        (timedelta(minutes=44, seconds=30), 45),
        (timedelta(minutes=44, seconds=29), 44),
        (timedelta(seconds=0), 0),
        (timedelta(hours=2, seconds=31), 121),
    ])
    def test_duration_rounds_half_up(self, elapsed, expected):
        assert round_minutes(T0, T0 + elapsed) == expected

    def test_default_end_time_is_now(self, lifecycle, db, caller, motor, clock):
        trip = _started(lifecycle, db, caller, motor, start=clock.datetime() - timedelta(minutes=30))

        trip = lifecycle.complete(db, caller, trip.id)

        assert as_utc(trip.trip_end_time) == clock.datetime()
        assert trip.duration == 30

    def test_end_before_start_rejected(self, lifecycle, db, caller, motor):
        trip = _started(lifecycle, db, caller, motor)

        with pytest.raises(ValidationError):
            lifecycle.complete(db, caller, trip.id, end_time=T0 - timedelta(minutes=1))

        db.expire_all()
        assert lifecycle.get(db, caller, trip.id).status == 'in_progress'

    def test_second_completion_rejected_and_record_unchanged(self, lifecycle, db, caller, motor, rider):
        trip = _started(lifecycle, db, caller, motor)
        lifecycle.complete(db, caller, trip.id, end_time=T0 + timedelta(minutes=20),
                           final_stats=Trip_final_stats(actual_distance=10.0))

        with pytest.raises(InvalidStateError):
            lifecycle.complete(db, caller, trip.id, end_time=T0 + timedelta(minutes=90),
                               final_stats=Trip_final_stats(actual_distance=99.0))

        db.expire_all()
        trip = lifecycle.get(db, caller, trip.id)
        assert trip.duration == 20
        assert trip.actual_distance == 10.0
        assert as_utc(trip.trip_end_time) == T0 + timedelta(minutes=20)
        assert _counters(db, Rider, rider.id).total_trips == 1

    def test_planned_trip_cannot_complete(self, lifecycle, db, caller, motor):
        trip = _plan(lifecycle, db, caller, motor)

        with pytest.raises(InvalidStateError):
            lifecycle.complete(db, caller, trip.id)

    def test_missing_motor_still_updates_rider(self, lifecycle, db, caller, motor, rider):
        trip = _started(lifecycle, db, caller, motor)
        trip.motor_id = None
        db.commit()

        lifecycle.complete(db, caller, trip.id, end_time=T0 + timedelta(minutes=5),
                           final_stats=Trip_final_stats(actual_distance=3.0))

        assert _counters(db, Rider, rider.id).total_trips == 1
        assert _counters(db, Motor, motor.id).total_trips == 0

    def test_counter_failure_does_not_fail_completion(self, lifecycle, db, caller, motor, rider, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("counter store down")

        monkeypatch.setattr(rider_repo, "increment_trip_totals", boom)

        trip = _started(lifecycle, db, caller, motor)
        trip = lifecycle.complete(db, caller, trip.id, end_time=T0 + timedelta(minutes=10),
                                  final_stats=Trip_final_stats(actual_distance=4.0))

        assert trip.status == 'completed'
        assert _counters(db, Rider, rider.id).total_trips == 0
        assert _counters(db, Motor, motor.id).total_trips == 1

    def test_last_trip_date_never_moves_backwards(self, lifecycle, db, caller, motor):
        later = _started(lifecycle, db, caller, motor, start=T0)
        earlier = _started(lifecycle, db, caller, motor, start=T0 - timedelta(days=2))

        lifecycle.complete(db, caller, later.id, end_time=T0 + timedelta(minutes=10))
        lifecycle.complete(db, caller, earlier.id, end_time=T0 - timedelta(days=2) + timedelta(minutes=10))

        bike = _counters(db, Motor, motor.id)
        assert bike.total_trips == 2
        assert as_utc(bike.last_trip_date) == T0


# ==========================================================
# CANCEL / FAIL / STATUS UPDATE
# ==========================================================

class TestOtherClosings:

    def test_cancel_planned_skips_counters(self, lifecycle, db, caller, motor, rider, clock):
        trip = _plan(lifecycle, db, caller, motor)

        trip = lifecycle.cancel(db, caller, trip.id)

        assert trip.status == 'cancelled'
        assert as_utc(trip.trip_end_time) == clock.datetime()
        assert _counters(db, Rider, rider.id).total_trips == 0

    def test_cancelled_trip_is_absorbing(self, lifecycle, db, caller, motor):
        trip = _started(lifecycle, db, caller, motor)
        lifecycle.cancel(db, caller, trip.id)

        with pytest.raises(InvalidStateError):
            lifecycle.complete(db, caller, trip.id)
        with pytest.raises(InvalidStateError):
            lifecycle.cancel(db, caller, trip.id)

    def test_fail_appends_reason(self, lifecycle, db, caller, motor, rider):
        trip = _started(lifecycle, db, caller, motor)

        trip = lifecycle.fail(db, caller, trip.id, reason="Flat tyre")

        assert trip.status == 'failed'
        assert "Flat tyre" in trip.analytics_notes
        assert _counters(db, Rider, rider.id).total_trips == 0

    def test_fail_requires_in_progress(self, lifecycle, db, caller, motor):
        trip = _plan(lifecycle, db, caller, motor)

        with pytest.raises(InvalidStateError):
            lifecycle.fail(db, caller, trip.id)

    def test_update_status_dispatches(self, lifecycle, db, caller, motor):
        trip = _started(lifecycle, db, caller, motor)

        trip = lifecycle.update_status(db, caller, trip.id, Trip_status_update(
            status='completed', trip_end_time=T0 + timedelta(minutes=12)
        ))

        assert trip.status == 'completed'
        assert trip.duration == 12


# ==========================================================
# AUTHORIZATION / QUERIES
# ==========================================================

class TestAccess:

    def test_non_owner_forbidden(self, lifecycle, db, caller, motor, other_rider):
        trip = _started(lifecycle, db, caller, motor)
        stranger = Caller(user_id=other_rider.id)

        with pytest.raises(ForbiddenError):
            lifecycle.add_reroute(db, stranger, trip.id)
        with pytest.raises(ForbiddenError):
            lifecycle.get(db, stranger, trip.id)

    def test_admin_override(self, lifecycle, db, caller, motor, admin):
        trip = _started(lifecycle, db, caller, motor)

        trip = lifecycle.cancel(db, admin, trip.id)

        assert trip.status == 'cancelled'

    def test_unknown_trip(self, lifecycle, db, caller):
        with pytest.raises(NotFoundError):
            lifecycle.get(db, caller, 12345)

    def test_list_for_owner_filters_and_pages(self, lifecycle, db, caller, motor, other_rider):
        for _ in range(3):
            _plan(lifecycle, db, caller, motor)
        _started(lifecycle, db, caller, motor)

        other_motor = motor_repo.create_motor(db, other_rider.id)
        _plan(lifecycle, db, Caller(user_id=other_rider.id), other_motor)

        everything = lifecycle.list_for_owner(db, caller, limit=2, page=1)
        planned = lifecycle.list_for_owner(db, caller, status='planned')

        assert everything["total"] == 4
        assert everything["total_pages"] == 2
        assert len(everything["trips"]) == 2
        assert planned["total"] == 3

    def test_list_date_filters_use_start_time(self, lifecycle, db, caller, motor):
        early = _started(lifecycle, db, caller, motor, start=T0 - timedelta(days=3))
        late = _started(lifecycle, db, caller, motor, start=T0 + timedelta(hours=1))
        _plan(lifecycle, db, caller, motor)

        since = lifecycle.list_for_owner(db, caller, start_date=T0)
        until = lifecycle.list_for_owner(db, caller, end_date=T0)

        assert [trip.id for trip in since["trips"]] == [late.id]
        assert [trip.id for trip in until["trips"]] == [early.id]

    def test_list_rejects_unknown_status(self, lifecycle, db, caller):
        with pytest.raises(ValidationError):
            lifecycle.list_for_owner(db, caller, status='parked')

    def test_stats_for_owner(self, lifecycle, db, caller, motor):
        first = _started(lifecycle, db, caller, motor, start=T0)
        lifecycle.complete(db, caller, first.id, end_time=T0 + timedelta(minutes=30),
                           final_stats=Trip_final_stats(actual_distance=20.0, avg_speed=40.0,
                                                        actual_fuel_used_min=0.8))
        second = _started(lifecycle, db, caller, motor, start=T0 + timedelta(hours=2))
        lifecycle.cancel(db, caller, second.id)

        stats = lifecycle.stats_for_owner(db, caller, '7d')

        assert stats["period"] == '7d'
        assert stats["total_trips"] == 2
        assert stats["completed_trips"] == 1
        assert stats["total_distance"] == pytest.approx(20.0)
        assert stats["total_duration"] == 30
        assert stats["total_fuel_used"] == pytest.approx(0.8)

    def test_stats_rejects_unknown_period(self, lifecycle, db, caller):
        with pytest.raises(ValidationError):
            lifecycle.stats_for_owner(db, caller, '1y')


# ==========================================================
# COUNTER CONCURRENCY
# ==========================================================

class TestConcurrentCounters:

    def test_stale_sessions_do_not_lose_increments(self, db, rider, motor):
        first, second = SessionLocal(), SessionLocal()
        try:
            # Both sessions hold the pre-increment counters
            for session in (first, second):
                assert session.get(Rider, rider.id).total_trips == 0
                assert session.get(Motor, motor.id).total_trips == 0

            rider_repo.increment_trip_totals(first, rider.id, 10.0)
            motor_repo.increment_trip_totals(first, motor.id, 10.0, T0)

            rider_repo.increment_trip_totals(second, rider.id, 5.0)
            motor_repo.increment_trip_totals(second, motor.id, 5.0, T0 + timedelta(days=1))
        finally:
            first.close()
            second.close()

        owner = _counters(db, Rider, rider.id)
        assert owner.total_trips == 2
        assert owner.total_distance == pytest.approx(15.0)

        bike = _counters(db, Motor, motor.id)
        assert bike.total_trips == 2
        assert bike.total_distance == pytest.approx(15.0)
        assert as_utc(bike.last_trip_date) == T0 + timedelta(days=1)
