# ridelog/Schemas/fuel.py
"""
Fuel ledger schemas.

UnifiedFuelEvent is a tagged union discriminated by `source`:

    FuelLogEvent            source == 'fuel_log'     (dedicated fuel purchase)
    MaintenanceRefuelEvent  source == 'maintenance'  (maintenance record, type refuel)

Both variants expose the same normalized fields (date, liters,
price_per_liter, total_cost, motor_id, location); the variant-specific fields
only exist on their own class.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union


Period = Literal['7d', '30d', '90d']


class EventLocation(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None


# ============================================
# UNIFIED FUEL EVENT (TAGGED UNION)
# ============================================
class _FuelEventBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    record_id: int = Field(..., description="Primary key in the source table")
    date: datetime
    liters: float
    price_per_liter: float
    total_cost: float
    motor_id: int
    odometer: Optional[float] = None
    location: Optional[EventLocation] = None
    notes: Optional[str] = None
    distance: Optional[float] = Field(
        None,
        description="km since the previous odometer-bearing event of the same motor"
    )


class FuelLogEvent(_FuelEventBase):
    source: Literal['fuel_log'] = 'fuel_log'
    fuel_type: str = 'gasoline'


class MaintenanceRefuelEvent(_FuelEventBase):
    source: Literal['maintenance'] = 'maintenance'
    service_provider: Optional[str] = None


UnifiedFuelEvent = Annotated[
    Union[FuelLogEvent, MaintenanceRefuelEvent],
    Field(discriminator='source')
]


# ============================================
# RESPONSE METADATA
# ============================================
class Cache_metadata(BaseModel):
    generated_at: datetime
    cache_expiry: datetime


# ============================================
# COMBINED LEDGER
# ============================================
class Combined_summary(BaseModel):
    total_liters: float
    total_cost: float
    avg_cost_per_liter: float
    total_refuels: int
    period: str
    motor_id: Union[int, Literal['all']]


class Combined_fuel_response(BaseModel):
    data: List[UnifiedFuelEvent]
    summary: Combined_summary
    metadata: Cache_metadata


# ============================================
# EFFICIENCY
# ============================================
class Efficiency_point(BaseModel):
    date: datetime
    source: str
    motor_id: int
    distance: float
    liters: float
    efficiency: float = Field(..., description="km per liter")
    cost: float


class Efficiency_response(BaseModel):
    period: str
    motor_id: Union[int, Literal['all']]
    total_distance: float
    total_liters: float
    total_cost: float
    avg_efficiency: float
    avg_cost_per_km: float
    total_refuels: int
    trends: List[Efficiency_point]
    metadata: Cache_metadata


# ============================================
# COST ANALYSIS
# ============================================
class Cost_point(BaseModel):
    date: datetime
    source: str
    motor_id: int
    cost: float
    liters: float
    price_per_liter: float
    location: Optional[EventLocation] = None


class Cost_analysis_response(BaseModel):
    period: str
    motor_id: Union[int, Literal['all']]
    total_cost: float
    total_liters: float
    avg_price_per_liter: float
    min_price: Optional[float] = Field(None, description="None when there are no events")
    max_price: Optional[float] = Field(None, description="None when there are no events")
    total_refuels: int
    trends: List[Cost_point]
    metadata: Cache_metadata
