# ridelog/Controller/Routes/records.py

"""
Fuel Log and Maintenance REST API

Endpoints:
- POST /fuel-logs                                  Record a fuel purchase
- POST /maintenance                                Record a maintenance event
- GET  /maintenance/motors/{motor_id}/analytics    Maintenance summary for a motorcycle

Side effects:
- A maintenance record of type 'refuel' updates the motor's fuel level
- Fuel logs never touch the motor's fuel level

Usage:
    # In main.py
    from ridelog.Controller.Routes import records
    app.include_router(records.fuel_logs_router, prefix="/fuel-logs", tags=["fuel-logs"])
    app.include_router(records.maintenance_router, prefix="/maintenance", tags=["maintenance"])
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ridelog.Controller.deps import get_DB, get_current_caller, get_record_intake
from ridelog.Schemas import records as records_schema
from ridelog.Schemas.caller import Caller
from ridelog.Services.record_intake import RecordIntake

fuel_logs_router = APIRouter()
maintenance_router = APIRouter()


# ==========================================================
# 📌 Fuel Logs
# ==========================================================

@fuel_logs_router.post("", response_model=records_schema.FuelLog_get, status_code=201)
def create_fuel_log(
    log_data: records_schema.FuelLog_create,
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    intake: RecordIntake = Depends(get_record_intake)
):
    """
    Record a fuel purchase.

    total_cost may be omitted (computed as liters × price_per_liter); when
    supplied it must match within one cent, otherwise 400.
    """
    return intake.create_fuel_log(db, caller, log_data)


# ==========================================================
# 📌 Maintenance
# ==========================================================

@maintenance_router.post("", response_model=records_schema.Maintenance_get, status_code=201)
def create_maintenance_record(
    record_data: records_schema.Maintenance_create,
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    intake: RecordIntake = Depends(get_record_intake)
):
    return intake.create_maintenance_record(db, caller, record_data)


@maintenance_router.get("/motors/{motor_id}/analytics", response_model=records_schema.Maintenance_analytics)
def maintenance_analytics(
    motor_id: int,
    period: Optional[str] = Query(None, description="7d | 30d | 90d"),
    db: Session = Depends(get_DB),
    caller: Caller = Depends(get_current_caller),
    intake: RecordIntake = Depends(get_record_intake)
):
    return intake.maintenance_analytics(db, caller, motor_id, period)
