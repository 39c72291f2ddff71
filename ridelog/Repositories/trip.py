# ridelog/Repositories/trip.py
"""
Trip Repository - Database operations for the trip lifecycle.

Responsibilities:
- Insert planned / in-progress trips
- Single trip lookups and per-rider historical queries with filters
- Persist lifecycle mutations made by TripLifecycleManager
- Atomic reroute counter
- Per-rider aggregate statistics

Usage:
    from ridelog.Repositories.trip import create_trip, get_trip_by_id

    trip = create_trip(db, user_id=7, trip_data=payload, status='planned')
    same = get_trip_by_id(db, trip.id)

Notes:
    Repositories do not check ownership or status. Those rules live in
    ridelog/Services/trip_lifecycle.py.
"""

from sqlalchemy.orm import Session
from sqlalchemy import func, case
from datetime import datetime
from typing import Optional

from ridelog.Models.trip import Trip
from ridelog.Schemas.trip import Trip_create
from ridelog.DB.transaction import commit_or_raise

# ==========================================================
# CREATE OPERATIONS
# ==========================================================

def create_trip(
    DB: Session,
    user_id: int,
    trip_data: Trip_create,
    status: str,
    start_time: Optional[datetime] = None
) -> Trip:
    """
    Create a new trip record in the database.

    Args:
        DB: SQLAlchemy session
        user_id: Owning rider
        trip_data: Trip_create schema with validated planned data
        status: Initial status ('planned' or 'in_progress')
        start_time: UTC start timestamp (only for 'in_progress')

    Returns:
        Trip: Created trip ORM object with auto-generated fields
    """
    fields = trip_data.model_dump(
        exclude={'start_location', 'end_location', 'trip_start_time'}
    )

    new_trip = Trip(
        user_id=user_id,
        status=status,
        trip_start_time=start_time,
        **fields
    )

    if trip_data.start_location:
        new_trip.start_lat = trip_data.start_location.lat
        new_trip.start_lng = trip_data.start_location.lng
        new_trip.start_address = trip_data.start_location.address

    if trip_data.end_location:
        new_trip.end_lat = trip_data.end_location.lat
        new_trip.end_lng = trip_data.end_location.lng
        new_trip.end_address = trip_data.end_location.address

    DB.add(new_trip)
    commit_or_raise(DB, "create trip")
    DB.refresh(new_trip)  # Get auto-generated id / created_at

    print(f"[REPO] Trip created: {new_trip.id} (user: {user_id}, status: {status})")

    return new_trip


# ==========================================================
# READ OPERATIONS
# ==========================================================

def get_trip_by_id(DB: Session, trip_id: int) -> Optional[Trip]:
    return DB.get(Trip, trip_id)


def get_trips_by_user(
    DB: Session,
    user_id: int,
    status: Optional[str] = None,
    motor_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: int = 20,
    page: int = 1
) -> tuple[list[Trip], int]:
    """
    Get a rider's trips with optional filters, newest first.

    Args:
        DB: SQLAlchemy session
        user_id: Owning rider
        status: Filter by status, None for all
        motor_id: Filter by motorcycle, None for all
        start_date: Trips started at or after this datetime (planned trips drop out)
        end_date: Trips started at or before this datetime
        limit: Page size
        page: 1-based page number

    Returns:
        (trips, total): the requested page and the unpaginated match count
    """
    query = DB.query(Trip).filter(Trip.user_id == user_id)

    # Optional filters
    if status:
        query = query.filter(Trip.status == status)

    if motor_id is not None:
        query = query.filter(Trip.motor_id == motor_id)

    if start_date:
        query = query.filter(Trip.trip_start_time >= start_date)

    if end_date:
        query = query.filter(Trip.trip_start_time <= end_date)

    total = query.count()

    trips = (
        query.order_by(Trip.created_at.desc(), Trip.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return trips, total


# ==========================================================
# UPDATE OPERATIONS
# ==========================================================

def save_trip(DB: Session, trip: Trip, action: str) -> Trip:
    """
    Commit pending changes on a trip (fields or child collections).

    Args:
        DB: SQLAlchemy session
        trip: Trip already attached to DB
        action: Short label used in logs and in PersistenceError context

    Returns:
        Trip: Refreshed trip
    """
    commit_or_raise(DB, action)
    DB.refresh(trip)

    print(f"[REPO] Trip {trip.id}: {action}")

    return trip


def increment_reroute_count(DB: Session, trip_id: int) -> bool:
    """
    Flag the trip as rerouted and bump its reroute counter.

    Returns:
        bool: True if updated, False if the trip is missing or not in progress

    Notes:
        - Atomic SQL UPDATE guarded by status='in_progress' (no lost
          increments, no reroute recorded on a trip closed concurrently)
    """
    result = (
        DB.query(Trip)
        .filter(Trip.id == trip_id, Trip.status == 'in_progress')
        .update(
            {
                Trip.was_rerouted: True,
                Trip.reroute_count: Trip.reroute_count + 1,
            },
            synchronize_session=False
        )
    )

    commit_or_raise(DB, "record reroute")

    if result > 0:
        print(f"[REPO] Trip {trip_id}: reroute_count incremented")
        return True

    print(f"[REPO] Cannot record reroute - trip not in progress: {trip_id}")
    return False


# ==========================================================
# AGGREGATION QUERIES
# ==========================================================

def get_trip_statistics_by_user(DB: Session, user_id: int, since: datetime) -> dict:
    """
    Aggregate a rider's trips started since the given datetime.

    Returns:
        dict: Statistics with keys:
            - total_trips: Trips started in the window (any status)
            - completed_trips: Of those, how many were completed
            - total_distance: Sum of actual distances (km)
            - total_duration: Sum of durations (minutes)
            - avg_speed: Mean of per-trip average speeds (km/h)
            - total_fuel_used: Sum of actual minimum fuel used (L)
    """
    result = DB.query(
        func.count(Trip.id).label('total_trips'),
        func.sum(case((Trip.status == 'completed', 1), else_=0)).label('completed_trips'),
        func.sum(Trip.actual_distance).label('total_distance'),
        func.sum(Trip.duration).label('total_duration'),
        func.avg(Trip.avg_speed).label('avg_speed'),
        func.sum(Trip.actual_fuel_used_min).label('total_fuel_used')
    ).filter(
        Trip.user_id == user_id,
        Trip.trip_start_time >= since
    ).first()

    if result is None:
        return {
            'total_trips': 0,
            'completed_trips': 0,
            'total_distance': 0.0,
            'total_duration': 0,
            'avg_speed': 0.0,
            'total_fuel_used': 0.0
        }

    return {
        'total_trips': result.total_trips or 0,
        'completed_trips': int(result.completed_trips or 0),
        'total_distance': float(result.total_distance or 0.0),
        'total_duration': int(result.total_duration or 0),
        'avg_speed': float(result.avg_speed or 0.0),
        'total_fuel_used': float(result.total_fuel_used or 0.0)
    }
