# ridelog/Repositories/rider.py
"""
Rider Repository - Owner records and their completion counters.

Usage:
    from ridelog.Repositories.rider import increment_trip_totals

    increment_trip_totals(db, user_id=7, distance=42.5)
"""

from sqlalchemy.orm import Session
from typing import Optional

from ridelog.Models.rider import Rider
from ridelog.DB.transaction import commit_or_raise


def create_rider(DB: Session, name: Optional[str] = None) -> Rider:
    rider = Rider(name=name)
    DB.add(rider)
    commit_or_raise(DB, "create rider")
    DB.refresh(rider)

    print(f"[REPO] Rider created: {rider.id}")
    return rider


def get_rider_by_id(DB: Session, user_id: int) -> Optional[Rider]:
    return DB.get(Rider, user_id)


def increment_trip_totals(DB: Session, user_id: int, distance: float) -> bool:
    """
    Add one completed trip and its distance to the rider's counters.

    Args:
        DB: SQLAlchemy session
        user_id: Rider identifier
        distance: Actual distance of the completed trip (km)

    Returns:
        bool: True if updated, False if the rider does not exist

    Notes:
        - Atomic SQL UPDATE (x = x + delta), concurrent completions never
          lose an increment
        - Commits on its own; callers treat it as an independent unit
    """
    result = (
        DB.query(Rider)
        .filter(Rider.id == user_id)
        .update(
            {
                Rider.total_trips: Rider.total_trips + 1,
                Rider.total_distance: Rider.total_distance + distance,
            },
            synchronize_session=False
        )
    )

    commit_or_raise(DB, "increment rider totals")

    if result > 0:
        print(f"[REPO] Rider {user_id}: total_trips +1, total_distance +{distance:.2f} km")
        return True

    print(f"[REPO] Cannot increment - rider not found: {user_id}")
    return False
