# ridelog/Schemas/records.py
"""Intake schemas for the two fuel sources and the motor state they touch."""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import datetime
from typing import Dict, List, Literal, Optional


FuelType = Literal['gasoline', 'diesel', 'premium', 'unleaded']
MaintenanceType = Literal['refuel', 'oil_change', 'tune_up', 'repair', 'inspection', 'other']


# ============================================
# FUEL LOG
# ============================================
class FuelLog_create(BaseModel):
    """
    Dedicated fuel purchase.

    total_cost may be omitted, in which case it is computed as
    liters × price_per_liter.
    """
    motor_id: int
    liters: float = Field(..., gt=0)
    price_per_liter: float = Field(..., ge=0)
    total_cost: Optional[float] = Field(None, ge=0)
    fuel_type: FuelType = 'gasoline'
    odometer: Optional[float] = Field(None, ge=0)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=300)
    notes: Optional[str] = None
    date: Optional[datetime] = None


class FuelLog_get(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    motor_id: int
    liters: float
    price_per_liter: float
    total_cost: float
    fuel_type: str
    odometer: Optional[float] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    date: datetime
    created_at: datetime


# ============================================
# MAINTENANCE RECORD
# ============================================
class Maintenance_create(BaseModel):
    motor_id: int
    type: MaintenanceType
    timestamp: Optional[datetime] = None
    cost: float = Field(0.0, ge=0)
    quantity: Optional[float] = Field(None, ge=0, description="Liters for refuels")
    service_provider: Optional[str] = Field(None, max_length=200)
    odometer_reading: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=500)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=300)

    @model_validator(mode='after')
    def _refuel_needs_quantity(self):
        if self.type == 'refuel' and not self.quantity:
            raise ValueError("refuel records require a positive quantity")
        return self


class Maintenance_get(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    motor_id: int
    type: str
    timestamp: datetime
    cost: float
    quantity: Optional[float] = None
    service_provider: Optional[str] = None
    odometer_reading: Optional[float] = None
    notes: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None
    created_at: datetime


class Maintenance_analytics(BaseModel):
    period: str
    motor_id: int
    total_records: int
    total_cost: float
    total_fuel_added: float
    avg_cost_per_refuel: float
    refuel_count: int
    records_by_type: Dict[str, int]
    recent_records: List[Maintenance_get]


# ============================================
# MOTOR
# ============================================
class Motor_get(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    nickname: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    fuel_tank: Optional[float] = None
    current_fuel_level: float
    total_trips: int
    total_distance: float
    last_trip_date: Optional[datetime] = None
    analytics_last_updated: Optional[datetime] = None
