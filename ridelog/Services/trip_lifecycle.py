# ridelog/Services/trip_lifecycle.py
"""
Trip Lifecycle Manager - Status machine and aggregate propagation for trips.

Responsibilities:
- Create trips in 'planned' (or directly 'in_progress' when a start time is given)
- Accept travel events: route points, reroutes, expenses, notes, route updates
- Close trips exactly once: completed, cancelled or failed
- On completion, push the trip's deltas to the rider and motor counters
- Enforce that only the owner (or an administrator) touches a trip

State machine:

    planned ──start──► in_progress ──complete──► completed
       │                 │   ▲  │
       │                 │   └──┘ add_route_point / add_reroute
       │                 ├──fail──────► failed
       └──cancel─────────┴──cancel────► cancelled

Terminal states are absorbing. Expenses, notes and route updates are accepted
in any non-terminal state; route points and reroutes only while in progress.

Counter propagation:
    After the completed trip is committed, the rider counters and then the
    motor counters are updated as two independent atomic UPDATEs. A failure in
    either is rolled back, logged through log_ws and never fails the
    completion itself (the trip stays completed).
"""

import math
import time
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ridelog.Core import log_ws
from ridelog.Core.errors import ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from ridelog.Core.timeutils import as_utc, from_epoch
from ridelog.Models.trip import Trip, TripExpense, TripNote, TripRoutePoint, TRIP_STATUSES
from ridelog.Repositories import motor as motor_repo
from ridelog.Repositories import rider as rider_repo
from ridelog.Repositories import trip as trip_repo
from ridelog.Schemas.caller import Caller
from ridelog.Schemas.trip import (
    Expense_create,
    Note_create,
    RoutePoint_create,
    Route_update,
    Trip_create,
    Trip_final_stats,
    Trip_status_update,
)
from ridelog.Services.periods import period_window, resolve_period


def round_minutes(start: datetime, end: datetime) -> int:
    """Elapsed minutes between start and end, halves rounded up."""
    minutes = (end - start).total_seconds() / 60
    return int(math.floor(minutes + 0.5))


class TripLifecycleManager:
    """
    Owns every mutation of a trip record.

    Args:
        clock: Zero-argument callable returning epoch seconds. Used for
            default start/end times and event timestamps.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock

    def _now(self) -> datetime:
        return from_epoch(self.clock())

    # ==========================================================
    # GUARDS
    # ==========================================================

    def _load(self, DB: Session, caller: Caller, trip_id: int) -> Trip:
        trip = trip_repo.get_trip_by_id(DB, trip_id)

        if trip is None:
            raise NotFoundError(f"Trip {trip_id} not found", context={"trip_id": trip_id})

        if not caller.can_act_for(trip.user_id):
            raise ForbiddenError(
                "Only the trip owner can access this trip",
                context={"trip_id": trip_id, "user_id": caller.user_id}
            )

        return trip

    @staticmethod
    def _require_status(trip: Trip, allowed: tuple, operation: str) -> None:
        if trip.status not in allowed:
            raise InvalidStateError(
                f"Cannot {operation} a trip that is {trip.status}",
                context={"trip_id": trip.id, "status": trip.status, "allowed": list(allowed)}
            )

    @staticmethod
    def _require_open(trip: Trip, operation: str) -> None:
        if trip.is_terminal:
            raise InvalidStateError(
                f"Cannot {operation} a trip that is {trip.status}",
                context={"trip_id": trip.id, "status": trip.status}
            )

    @staticmethod
    def _check_coordinates(lat: float, lng: float) -> None:
        if not (-90 <= lat <= 90) or not (-180 <= lng <= 180):
            raise ValidationError(
                "Coordinates out of range",
                context={"lat": lat, "lng": lng}
            )

    # ==========================================================
    # CREATION
    # ==========================================================

    def create_planned(self, DB: Session, caller: Caller, trip_data: Trip_create) -> Trip:
        """
        Plan a new trip for the caller.

        Raises:
            ValidationError: blank destination
            NotFoundError: motor does not exist
            ForbiddenError: motor belongs to another rider
        """
        if not trip_data.destination.strip():
            raise ValidationError("Destination is required", context={"field": "destination"})

        motor = motor_repo.get_motor_by_id(DB, trip_data.motor_id)
        if motor is None:
            raise NotFoundError(
                f"Motor {trip_data.motor_id} not found",
                context={"motor_id": trip_data.motor_id}
            )

        if motor.user_id != caller.user_id:
            raise ForbiddenError(
                "Motor does not belong to the trip owner",
                context={"motor_id": motor.id, "user_id": caller.user_id}
            )

        for location in (trip_data.start_location, trip_data.end_location):
            if location is not None:
                self._check_coordinates(location.lat, location.lng)

        if trip_data.trip_start_time is not None:
            status, start_time = 'in_progress', as_utc(trip_data.trip_start_time)
        else:
            status, start_time = 'planned', None

        trip = trip_repo.create_trip(DB, caller.user_id, trip_data, status, start_time)
        print(f"[TRIPS] Trip {trip.id} created for user {caller.user_id} ({status})")
        return trip

    def start(
        self,
        DB: Session,
        caller: Caller,
        trip_id: int,
        start_time: Optional[datetime] = None
    ) -> Trip:
        trip = self._load(DB, caller, trip_id)
        self._require_status(trip, ('planned',), 'start')

        trip.trip_start_time = as_utc(start_time) if start_time else self._now()
        trip.status = 'in_progress'

        return trip_repo.save_trip(DB, trip, "started")

    # ==========================================================
    # TRAVEL EVENTS
    # ==========================================================

    def add_route_point(self, DB: Session, caller: Caller, trip_id: int, point: RoutePoint_create) -> Trip:
        trip = self._load(DB, caller, trip_id)
        self._require_status(trip, ('in_progress',), 'add a route point to')

        self._check_coordinates(point.lat, point.lng)

        for name in ('speed', 'altitude'):
            value = getattr(point, name)
            if value is not None and not math.isfinite(value):
                raise ValidationError(f"{name} must be a finite number", context={name: str(value)})

        if point.speed is not None and point.speed < 0:
            raise ValidationError("speed cannot be negative", context={"speed": point.speed})

        trip.route_points.append(TripRoutePoint(
            lat=point.lat,
            lng=point.lng,
            speed=point.speed,
            altitude=point.altitude,
            timestamp=self._now()
        ))

        return trip_repo.save_trip(DB, trip, "route point added")

    def add_reroute(self, DB: Session, caller: Caller, trip_id: int) -> Trip:
        trip = self._load(DB, caller, trip_id)
        self._require_status(trip, ('in_progress',), 'reroute')

        if not trip_repo.increment_reroute_count(DB, trip.id):
            # Closed between the status check and the UPDATE
            DB.refresh(trip)
            self._require_status(trip, ('in_progress',), 'reroute')

        DB.refresh(trip)
        return trip

    def add_expense(self, DB: Session, caller: Caller, trip_id: int, expense: Expense_create) -> Trip:
        trip = self._load(DB, caller, trip_id)
        self._require_open(trip, 'add an expense to')

        if expense.amount < 0:
            raise ValidationError("Expense amount cannot be negative", context={"amount": expense.amount})

        trip.expenses.append(TripExpense(
            type=expense.type,
            amount=expense.amount,
            description=expense.description,
            location=expense.location,
            timestamp=self._now()
        ))

        return trip_repo.save_trip(DB, trip, f"expense added ({expense.type} {expense.amount:.2f})")

    def add_note(self, DB: Session, caller: Caller, trip_id: int, note: Note_create) -> Trip:
        trip = self._load(DB, caller, trip_id)
        self._require_open(trip, 'add a note to')

        location = note.location
        trip.notes.append(TripNote(
            content=note.content,
            lat=location.lat if location else None,
            lng=location.lng if location else None,
            address=location.address if location else None,
            timestamp=self._now()
        ))

        return trip_repo.save_trip(DB, trip, "note added")

    def update_route(self, DB: Session, caller: Caller, trip_id: int, route: Route_update) -> Trip:
        trip = self._load(DB, caller, trip_id)
        self._require_open(trip, 'update the route of')

        for field, value in route.model_dump(exclude_none=True).items():
            setattr(trip, field, value)

        return trip_repo.save_trip(DB, trip, "route updated")

    # ==========================================================
    # CLOSING TRANSITIONS
    # ==========================================================

    def complete(
        self,
        DB: Session,
        caller: Caller,
        trip_id: int,
        end_time: Optional[datetime] = None,
        final_stats: Optional[Trip_final_stats] = None
    ) -> Trip:
        """
        Close an in-progress trip as completed.

        duration = elapsed minutes rounded half up. Final stats only overwrite
        the fields that are supplied. Rider and motor counters are updated
        after the commit, best effort.

        Raises:
            InvalidStateError: trip is not in progress (including already closed)
            ValidationError: end_time precedes the trip start time
        """
        trip = self._load(DB, caller, trip_id)
        self._require_status(trip, ('in_progress',), 'complete')

        end = as_utc(end_time) if end_time else self._now()
        start = as_utc(trip.trip_start_time) if trip.trip_start_time else end

        if end < start:
            raise ValidationError(
                "Trip end time cannot precede its start time",
                context={"trip_start_time": start.isoformat(), "trip_end_time": end.isoformat()}
            )

        if final_stats is not None:
            self._merge_final_stats(trip, final_stats)

        trip.trip_start_time = start
        trip.trip_end_time = end
        trip.duration = round_minutes(start, end)
        trip.status = 'completed'

        trip = trip_repo.save_trip(DB, trip, "completed")
        print(f"[TRIPS] Trip {trip.id} completed: {trip.actual_distance:.2f} km in {trip.duration} min")

        self._propagate_completion(DB, trip)
        return trip

    def cancel(self, DB: Session, caller: Caller, trip_id: int) -> Trip:
        trip = self._load(DB, caller, trip_id)
        self._require_status(trip, ('planned', 'in_progress'), 'cancel')

        trip.trip_end_time = self._closing_time(trip)
        trip.status = 'cancelled'

        return trip_repo.save_trip(DB, trip, "cancelled")

    def fail(self, DB: Session, caller: Caller, trip_id: int, reason: Optional[str] = None) -> Trip:
        trip = self._load(DB, caller, trip_id)
        self._require_status(trip, ('in_progress',), 'fail')

        trip.trip_end_time = self._closing_time(trip)
        trip.status = 'failed'

        if reason:
            entry = f"Failed: {reason}"
            trip.analytics_notes = f"{trip.analytics_notes}\n{entry}" if trip.analytics_notes else entry

        return trip_repo.save_trip(DB, trip, "failed")

    def update_status(self, DB: Session, caller: Caller, trip_id: int, update: Trip_status_update) -> Trip:
        """Close a trip through its status field (PUT /trips/{id})."""
        if update.status == 'completed':
            return self.complete(DB, caller, trip_id, update.trip_end_time, update.final_stats)

        if update.status == 'cancelled':
            return self.cancel(DB, caller, trip_id)

        return self.fail(DB, caller, trip_id, update.reason)

    def _closing_time(self, trip: Trip) -> datetime:
        # A start time entered in the future must not produce end < start
        now = self._now()
        if trip.trip_start_time is not None:
            return max(now, as_utc(trip.trip_start_time))
        return now

    @staticmethod
    def _merge_final_stats(trip: Trip, final_stats: Trip_final_stats) -> None:
        for field, value in final_stats.model_dump(exclude_none=True, exclude={'end_location'}).items():
            setattr(trip, field, value)

        if final_stats.end_location is not None:
            trip.end_lat = final_stats.end_location.lat
            trip.end_lng = final_stats.end_location.lng
            if final_stats.end_location.address is not None:
                trip.end_address = final_stats.end_location.address

    def _propagate_completion(self, DB: Session, trip: Trip) -> None:
        trip_id = trip.id
        user_id = trip.user_id
        motor_id = trip.motor_id
        distance = trip.actual_distance or 0.0
        trip_date = trip.trip_start_time

        try:
            rider_repo.increment_trip_totals(DB, user_id, distance)
        except Exception as e:
            DB.rollback()
            log_ws.log_from_thread(
                f"[TRIPS] Rider counters not updated for trip {trip_id} (user {user_id}): {e}",
                msg_type="error"
            )

        if motor_id is None:
            print(f"[TRIPS] Trip {trip_id} has no motor, motor counters skipped")
            return

        try:
            motor_repo.increment_trip_totals(DB, motor_id, distance, trip_date)
        except Exception as e:
            DB.rollback()
            log_ws.log_from_thread(
                f"[TRIPS] Motor counters not updated for trip {trip_id} (motor {motor_id}): {e}",
                msg_type="error"
            )

    # ==========================================================
    # QUERIES
    # ==========================================================

    def get(self, DB: Session, caller: Caller, trip_id: int) -> Trip:
        return self._load(DB, caller, trip_id)

    def list_for_owner(
        self,
        DB: Session,
        caller: Caller,
        status: Optional[str] = None,
        motor_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 20,
        page: int = 1
    ) -> dict:
        if status is not None and status not in TRIP_STATUSES:
            raise ValidationError(f"Unknown status '{status}'", context={"status": status})

        if limit < 1 or page < 1:
            raise ValidationError("limit and page must be positive", context={"limit": limit, "page": page})

        trips, total = trip_repo.get_trips_by_user(
            DB,
            caller.user_id,
            status=status,
            motor_id=motor_id,
            start_date=as_utc(start_date) if start_date else None,
            end_date=as_utc(end_date) if end_date else None,
            limit=limit,
            page=page
        )

        return {
            "trips": trips,
            "total": total,
            "page": page,
            "total_pages": math.ceil(total / limit) if total else 0,
        }

    def stats_for_owner(self, DB: Session, caller: Caller, period: Optional[str] = None) -> dict:
        period = resolve_period(period)
        since, _ = period_window(period, self._now())

        stats = trip_repo.get_trip_statistics_by_user(DB, caller.user_id, since)
        return {"period": period, **stats}


# Global manager used by the trip routes
trip_lifecycle = TripLifecycleManager()
