# ridelog/Schemas/trip.py
from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import datetime
from typing import List, Literal, Optional


TripStatus = Literal['planned', 'in_progress', 'completed', 'cancelled', 'failed']
ExpenseType = Literal['fuel', 'toll', 'parking', 'maintenance', 'other']


# ============================================
# SHARED VALUE OBJECTS
# ============================================
class Location(BaseModel):
    """Coordinates plus an optional human-readable address."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=300)


# ============================================
# CREATE SCHEMA
# ============================================
class Trip_create(BaseModel):
    """
    Schema for planning a new trip.

    Supplying trip_start_time creates the trip directly in 'in_progress';
    otherwise it starts in 'planned'.
    """
    motor_id: int = Field(..., description="Motorcycle used for the trip")

    destination: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Destination label"
    )

    distance: float = Field(0.0, ge=0, description="Estimated distance (km)")
    fuel_used_min: float = Field(0.0, ge=0, description="Estimated minimum fuel (L)")
    fuel_used_max: float = Field(0.0, ge=0, description="Estimated maximum fuel (L)")
    eta: Optional[str] = Field(None, max_length=50)
    planned_polyline: Optional[str] = None

    start_location: Optional[Location] = None
    end_location: Optional[Location] = None

    trip_start_time: Optional[datetime] = Field(
        None,
        description="UTC start timestamp; when given the trip is created in progress"
    )

    @model_validator(mode='after')
    def _fuel_range(self):
        if self.fuel_used_min > self.fuel_used_max and self.fuel_used_max > 0:
            raise ValueError("fuel_used_min cannot exceed fuel_used_max")
        return self


# ============================================
# EVENT SCHEMAS (during travel)
# ============================================
class RoutePoint_create(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    speed: Optional[float] = Field(None, ge=0, description="km/h")
    altitude: Optional[float] = Field(None, description="meters")


class Expense_create(BaseModel):
    type: ExpenseType
    amount: float = Field(..., ge=0)
    description: str = Field('', max_length=500)
    location: Optional[str] = Field(None, max_length=300)


class Note_create(BaseModel):
    content: str = Field(..., min_length=1, max_length=500)
    location: Optional[Location] = None


class Route_update(BaseModel):
    planned_polyline: Optional[str] = None
    actual_polyline: Optional[str] = None


class Trip_start(BaseModel):
    trip_start_time: Optional[datetime] = None


# ============================================
# CLOSING SCHEMAS
# ============================================
class Trip_final_stats(BaseModel):
    """
    Tracked actuals merged into the trip on completion.
    All fields are optional; only supplied values overwrite stored ones.
    """
    actual_distance: Optional[float] = Field(None, ge=0, description="km")
    actual_fuel_used_min: Optional[float] = Field(None, ge=0)
    actual_fuel_used_max: Optional[float] = Field(None, ge=0)
    actual_polyline: Optional[str] = None
    avg_speed: Optional[float] = Field(None, ge=0, description="km/h")
    max_speed: Optional[float] = Field(None, ge=0, description="km/h")
    end_location: Optional[Location] = None


class Trip_complete(BaseModel):
    trip_end_time: Optional[datetime] = None
    final_stats: Optional[Trip_final_stats] = None


class Trip_fail(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class Trip_status_update(BaseModel):
    """
    Body of PUT /trips/{id}: closes the trip through its status field.

    Only terminal statuses are accepted here; 'in_progress' goes through
    POST /trips/{id}/start.
    """
    status: Literal['completed', 'cancelled', 'failed']
    trip_end_time: Optional[datetime] = None
    final_stats: Optional[Trip_final_stats] = None
    reason: Optional[str] = Field(None, max_length=500)


# ============================================
# GET SCHEMAS
# ============================================
class RoutePoint_get(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lat: float
    lng: float
    speed: Optional[float] = None
    altitude: Optional[float] = None
    timestamp: datetime


class Expense_get(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    amount: float
    description: Optional[str] = None
    location: Optional[str] = None
    timestamp: datetime


class Note_get(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None
    timestamp: datetime


class Trip_get(BaseModel):
    """
    Full trip representation returned by the API.
    Includes planned and actual fields, child collections and derived values.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    motor_id: Optional[int] = None
    destination: str
    status: TripStatus

    # Planned
    distance: float
    fuel_used_min: float
    fuel_used_max: float
    eta: Optional[str] = None
    planned_polyline: Optional[str] = None

    # Actual
    trip_start_time: Optional[datetime] = None
    trip_end_time: Optional[datetime] = None
    actual_distance: float
    actual_fuel_used_min: float
    actual_fuel_used_max: float
    actual_polyline: Optional[str] = None
    duration: int
    avg_speed: float
    max_speed: float
    was_rerouted: bool
    reroute_count: int

    # Locations
    start_address: Optional[str] = None
    start_lat: Optional[float] = None
    start_lng: Optional[float] = None
    end_address: Optional[str] = None
    end_lat: Optional[float] = None
    end_lng: Optional[float] = None

    analytics_notes: Optional[str] = None

    route_points: List[RoutePoint_get] = []
    expenses: List[Expense_get] = []
    notes: List[Note_get] = []

    # Derived
    total_expenses: float = 0.0
    duration_hours: float = 0.0
    fuel_efficiency: float = 0.0

    created_at: datetime
    updated_at: Optional[datetime] = None


class Trip_summary(BaseModel):
    """Lightweight schema for trip lists."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    motor_id: Optional[int] = None
    destination: str
    status: str
    trip_start_time: Optional[datetime] = None
    trip_end_time: Optional[datetime] = None
    actual_distance: float
    duration: int


class Trip_list_response(BaseModel):
    trips: List[Trip_summary]
    total: int
    page: int
    total_pages: int


class Trip_stats(BaseModel):
    period: str
    total_trips: int = 0
    completed_trips: int = 0
    total_distance: float = 0.0
    total_duration: int = 0
    avg_speed: float = 0.0
    total_fuel_used: float = 0.0
