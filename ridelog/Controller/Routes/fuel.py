# ridelog/Controller/Routes/fuel.py

"""
Fuel Analytics REST API

Endpoints:
- GET /fuel/combined        Unified ledger (fuel logs + maintenance refuels) and totals
- GET /fuel/efficiency      km/L trend over refuels with a known odometer distance
- GET /fuel/cost-analysis   Price-per-liter range and cost trend

Query parameters (all endpoints):
- period: 7d | 30d | 90d (default 30d); anything else → 400
- motor_id: restrict to one motorcycle; omitted means all of the caller's motors

Caching:
    Responses are cached per (user, view, period, motor) for 5 minutes
    (combined) or 10 minutes (efficiency, cost-analysis). metadata.generated_at
    and metadata.cache_expiry tell the client how fresh the data is.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ridelog.Controller.deps import get_DB, get_current_caller, get_fuel_analytics
from ridelog.Schemas import fuel as fuel_schema
from ridelog.Schemas.caller import Caller
from ridelog.Services.fuel_analytics import FuelAnalytics

router = APIRouter()


@router.get("/combined", response_model=fuel_schema.Combined_fuel_response)
def combined_fuel(
    period: Optional[str] = Query(None, description="7d | 30d | 90d"),
    motor_id: Optional[int] = Query(None),
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    analytics: FuelAnalytics = Depends(get_fuel_analytics)
):
    """
    Merged fuel ledger, newest first.

    Ordering:
        Date descending; on identical timestamps fuel_log entries come
        before maintenance refuels.

    Returns:
        {
            "data": [{"source": "maintenance", "liters": 5.0, ...}, ...],
            "summary": {"total_liters": 15.0, "total_cost": 775.0,
                        "avg_cost_per_liter": 51.67, "total_refuels": 2,
                        "period": "30d", "motor_id": "all"},
            "metadata": {"generated_at": "...", "cache_expiry": "..."}
        }
    """
    return analytics.combined(db, caller, period, motor_id)


@router.get("/efficiency", response_model=fuel_schema.Efficiency_response)
def fuel_efficiency(
    period: Optional[str] = Query(None, description="7d | 30d | 90d"),
    motor_id: Optional[int] = Query(None),
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    analytics: FuelAnalytics = Depends(get_fuel_analytics)
):
    return analytics.efficiency(db, caller, period, motor_id)


@router.get("/cost-analysis", response_model=fuel_schema.Cost_analysis_response)
def fuel_cost_analysis(
    period: Optional[str] = Query(None, description="7d | 30d | 90d"),
    motor_id: Optional[int] = Query(None),
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    analytics: FuelAnalytics = Depends(get_fuel_analytics)
):
    """min_price / max_price are null when the period has no refuels."""
    return analytics.cost_analysis(db, caller, period, motor_id)
