# ridelog/Controller/Routes/trips.py

"""
Trip REST API

Endpoints:
- POST   /trips                        Plan a trip (or start it right away)
- GET    /trips                        List the caller's trips (filters + paging)
- GET    /trips/stats                  Aggregate statistics for a period
- GET    /trips/{trip_id}              Trip details
- POST   /trips/{trip_id}/start        planned → in_progress
- POST   /trips/{trip_id}/route-points Record a tracked coordinate
- POST   /trips/{trip_id}/reroutes     Record a route correction
- POST   /trips/{trip_id}/expenses     Append an expense
- POST   /trips/{trip_id}/notes        Append a note
- PUT    /trips/{trip_id}/route        Replace planned / actual route encodings
- PUT    /trips/{trip_id}              Close through the status field
- POST   /trips/{trip_id}/complete     in_progress → completed
- POST   /trips/{trip_id}/cancel       planned / in_progress → cancelled
- POST   /trips/{trip_id}/fail         in_progress → failed

Security:
- Caller identity comes from X-User-Id / X-User-Role (set upstream)
- Every trip route checks the caller owns the trip or is an admin

Usage:
    # In main.py
    from ridelog.Controller.Routes import trips
    app.include_router(trips.router, prefix="/trips", tags=["trips"])
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ridelog.Controller.deps import get_DB, get_current_caller, get_trip_lifecycle
from ridelog.Schemas import trip as trip_schema
from ridelog.Schemas.caller import Caller
from ridelog.Services.trip_lifecycle import TripLifecycleManager

router = APIRouter()


# ==========================================================
# 📌 Plan / List / Stats
# ==========================================================

@router.post("", response_model=trip_schema.Trip_get, status_code=201)
def create_trip(
    trip_data: trip_schema.Trip_create,
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    manager: TripLifecycleManager = Depends(get_trip_lifecycle)
):
    """
    Plan a new trip for the caller.

    The trip starts in 'planned'; supplying trip_start_time creates it
    directly 'in_progress'.

    Errors:
        404 motor not found, 403 motor owned by someone else, 400 bad payload
    """
    return manager.create_planned(db, caller, trip_data)


@router.get("", response_model=trip_schema.Trip_list_response)
def list_trips(
    status: Optional[str] = Query(None, description="planned | in_progress | completed | cancelled | failed"),
    motor_id: Optional[int] = Query(None),
    start_date: Optional[datetime] = Query(None, description="Started at or after (ISO 8601)"),
    end_date: Optional[datetime] = Query(None, description="Started at or before (ISO 8601)"),
    limit: int = Query(20, ge=1, le=100),
    page: int = Query(1, ge=1),
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    manager: TripLifecycleManager = Depends(get_trip_lifecycle)
):
    """
    List the caller's trips, newest first.

    Example Requests:
        GET /trips?status=completed&limit=10
        GET /trips?motor_id=3&page=2
    """
    return manager.list_for_owner(
        db, caller,
        status=status,
        motor_id=motor_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        page=page
    )


@router.get("/stats", response_model=trip_schema.Trip_stats)
def trip_stats(
    period: Optional[str] = Query(None, description="7d | 30d | 90d (default 30d)"),
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    manager: TripLifecycleManager = Depends(get_trip_lifecycle)
):
    """Aggregates over trips started within the period."""
    return manager.stats_for_owner(db, caller, period)


@router.get("/{trip_id}", response_model=trip_schema.Trip_get)
def get_trip(
    trip_id: int,
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    manager: TripLifecycleManager = Depends(get_trip_lifecycle)
):
    return manager.get(db, caller, trip_id)


# ==========================================================
# 📌 Travel Events
# ==========================================================

@router.post("/{trip_id}/start", response_model=trip_schema.Trip_get)
def start_trip(
    trip_id: int,
    body: Optional[trip_schema.Trip_start] = None,
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    manager: TripLifecycleManager = Depends(get_trip_lifecycle)
):
    start_time = body.trip_start_time if body else None
    return manager.start(db, caller, trip_id, start_time)


@router.post("/{trip_id}/route-points", response_model=trip_schema.Trip_get)
def add_route_point(
    trip_id: int,
    point: trip_schema.RoutePoint_create,
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    manager: TripLifecycleManager = Depends(get_trip_lifecycle)
):
    """
    Record a tracked coordinate. Only while the trip is in progress (409 otherwise).
    """
    return manager.add_route_point(db, caller, trip_id, point)


@router.post("/{trip_id}/reroutes", response_model=trip_schema.Trip_get)
def add_reroute(
    trip_id: int,
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    manager: TripLifecycleManager = Depends(get_trip_lifecycle)
):
    return manager.add_reroute(db, caller, trip_id)


@router.post("/{trip_id}/expenses", response_model=trip_schema.Trip_get)
def add_expense(
    trip_id: int,
    expense: trip_schema.Expense_create,
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    manager: TripLifecycleManager = Depends(get_trip_lifecycle)
):
    return manager.add_expense(db, caller, trip_id, expense)


@router.post("/{trip_id}/notes", response_model=trip_schema.Trip_get)
def add_note(
    trip_id: int,
    note: trip_schema.Note_create,
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    manager: TripLifecycleManager = Depends(get_trip_lifecycle)
):
    return manager.add_note(db, caller, trip_id, note)


@router.put("/{trip_id}/route", response_model=trip_schema.Trip_get)
def update_route(
    trip_id: int,
    route: trip_schema.Route_update,
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    manager: TripLifecycleManager = Depends(get_trip_lifecycle)
):
    return manager.update_route(db, caller, trip_id, route)


# ==========================================================
# 📌 Closing Transitions
# ==========================================================

@router.put("/{trip_id}", response_model=trip_schema.Trip_get)
def update_trip_status(
    trip_id: int,
    update: trip_schema.Trip_status_update,
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    manager: TripLifecycleManager = Depends(get_trip_lifecycle)
):
    """
    Close a trip through its status field.

    Request Body:
        {"status": "completed", "trip_end_time": "...", "final_stats": {...}}
        {"status": "cancelled"}
        {"status": "failed", "reason": "Flat tyre"}
    """
    return manager.update_status(db, caller, trip_id, update)


@router.post("/{trip_id}/complete", response_model=trip_schema.Trip_get)
def complete_trip(
    trip_id: int,
    body: Optional[trip_schema.Trip_complete] = None,
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    manager: TripLifecycleManager = Depends(get_trip_lifecycle)
):
    """
    Complete an in-progress trip.

    Side effects:
        Rider total_trips / total_distance and, when a motor is attached,
        motor total_trips / total_distance / last_trip_date are incremented.
    """
    body = body or trip_schema.Trip_complete()
    return manager.complete(db, caller, trip_id, body.trip_end_time, body.final_stats)


@router.post("/{trip_id}/cancel", response_model=trip_schema.Trip_get)
def cancel_trip(
    trip_id: int,
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    manager: TripLifecycleManager = Depends(get_trip_lifecycle)
):
    return manager.cancel(db, caller, trip_id)


@router.post("/{trip_id}/fail", response_model=trip_schema.Trip_get)
def fail_trip(
    trip_id: int,
    body: Optional[trip_schema.Trip_fail] = None,
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    manager: TripLifecycleManager = Depends(get_trip_lifecycle)
):
    return manager.fail(db, caller, trip_id, body.reason if body else None)
