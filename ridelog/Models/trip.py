# ridelog/Models/trip.py
from sqlalchemy import (
    Column, String, Float, Integer, Boolean, DateTime, Text, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.sql import func, false
from sqlalchemy.orm import declared_attr, relationship
from ridelog.DB.base_class import Base


TRIP_STATUSES = ('planned', 'in_progress', 'completed', 'cancelled', 'failed')
TERMINAL_STATUSES = ('completed', 'cancelled', 'failed')
EXPENSE_TYPES = ('fuel', 'toll', 'parking', 'maintenance', 'other')


class Trip(Base):
    """
    SQLAlchemy model for a rider's trip (planned estimate plus tracked actuals).

    Responsibilities:
    - Stores the planned estimate (distance, fuel range, ETA, planned route)
    - Stores tracked actuals (distance, fuel range, route, duration, speeds)
    - Tracks route corrections (was_rerouted, reroute_count)
    - Holds the lifecycle status: planned → in_progress → completed/cancelled/failed

    Related models:
    - Rider (1:N) - one rider owns many trips
    - Motor (1:N) - one motorcycle rides many trips
    - TripRoutePoint / TripExpense / TripNote (1:N) - child collections
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "trips"

    # ========================================
    # PRIMARY KEY / OWNERSHIP
    # ========================================
    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(
        Integer,
        ForeignKey('riders.id', ondelete='CASCADE'),
        nullable=False,
        doc="Rider that owns this trip"
    )

    motor_id = Column(
        Integer,
        ForeignKey('motors.id', ondelete='SET NULL'),
        nullable=True,
        doc="Motorcycle used for the trip (NULL if detached by an admin)"
    )

    destination = Column(
        String(200),
        nullable=False,
        doc="Destination label entered by the rider"
    )

    # ========================================
    # PLANNED (ESTIMATED) DATA
    # ========================================
    distance = Column(Float, nullable=False, default=0.0, server_default='0.0',
                      doc="Estimated distance (km)")
    fuel_used_min = Column(Float, nullable=False, default=0.0, server_default='0.0')
    fuel_used_max = Column(Float, nullable=False, default=0.0, server_default='0.0')
    eta = Column(String(50), nullable=True, doc="Estimated time of arrival as shown to the rider")
    planned_polyline = Column(Text, nullable=True, doc="Encoded planned route")

    # ========================================
    # ACTUAL (TRACKED) DATA
    # ========================================
    trip_start_time = Column(
        DateTime(timezone=True),
        nullable=True,
        doc="UTC timestamp when the trip went in progress (NULL while planned)"
    )

    trip_end_time = Column(
        DateTime(timezone=True),
        nullable=True,
        doc="UTC timestamp when the trip was closed (NULL while open)"
    )

    actual_distance = Column(Float, nullable=False, default=0.0, server_default='0.0')
    actual_fuel_used_min = Column(Float, nullable=False, default=0.0, server_default='0.0')
    actual_fuel_used_max = Column(Float, nullable=False, default=0.0, server_default='0.0')
    actual_polyline = Column(Text, nullable=True, doc="Encoded route actually ridden")

    duration = Column(
        Integer,
        nullable=False,
        default=0,
        server_default='0',
        doc="Trip duration in minutes (computed on completion)"
    )

    avg_speed = Column(Float, nullable=False, default=0.0, server_default='0.0', doc="km/h")
    max_speed = Column(Float, nullable=False, default=0.0, server_default='0.0', doc="km/h")

    was_rerouted = Column(Boolean, nullable=False, default=False, server_default=false())
    reroute_count = Column(Integer, nullable=False, default=0, server_default='0')

    # ========================================
    # LOCATIONS
    # ========================================
    start_address = Column(String(300), nullable=True)
    start_lat = Column(Float, nullable=True)
    start_lng = Column(Float, nullable=True)
    end_address = Column(String(300), nullable=True)
    end_lat = Column(Float, nullable=True)
    end_lng = Column(Float, nullable=True)

    # ========================================
    # STATUS
    # ========================================
    status = Column(
        String(20),
        nullable=False,
        default='planned',
        server_default='planned',
        doc="One of: planned, in_progress, completed, cancelled, failed"
    )

    analytics_notes = Column(Text, nullable=True, doc="Free text; failure reasons are appended here")

    # ========================================
    # AUDIT FIELDS
    # ========================================
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    updated_at = Column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True
    )

    # ========================================
    # CHILD COLLECTIONS
    # ========================================
    route_points = relationship(
        "TripRoutePoint",
        cascade="all, delete-orphan",
        order_by="TripRoutePoint.id",
        lazy="selectin",
    )

    expenses = relationship(
        "TripExpense",
        cascade="all, delete-orphan",
        order_by="TripExpense.id",
        lazy="selectin",
    )

    notes = relationship(
        "TripNote",
        cascade="all, delete-orphan",
        order_by="TripNote.id",
        lazy="selectin",
    )

    # ========================================
    # TABLE CONSTRAINTS
    # ========================================
    __table_args__ = (
        Index('idx_trips_user_status', 'user_id', 'status'),
        Index('idx_trips_user_start_time', 'user_id', 'trip_start_time'),
        Index('idx_trips_motor', 'motor_id'),

        CheckConstraint(
            "status IN ('planned', 'in_progress', 'completed', 'cancelled', 'failed')",
            name='check_trip_status'
        ),
        CheckConstraint(
            "trip_end_time IS NULL OR trip_start_time IS NULL OR trip_end_time >= trip_start_time",
            name='check_trip_time_order'
        ),
        CheckConstraint("actual_distance >= 0", name='check_trip_actual_distance'),
        CheckConstraint("duration >= 0", name='check_trip_duration'),
        CheckConstraint("reroute_count >= 0", name='check_trip_reroute_count'),
    )

    # ========================================
    # DERIVED VALUES
    # ========================================
    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def total_expenses(self) -> float:
        return sum(expense.amount for expense in self.expenses)

    @property
    def duration_hours(self) -> float:
        return (self.duration or 0) / 60

    @property
    def fuel_efficiency(self) -> float:
        """km per liter over the tracked minimum fuel estimate."""
        if self.actual_fuel_used_min and self.actual_fuel_used_min > 0:
            return self.actual_distance / self.actual_fuel_used_min
        return 0.0

    def __repr__(self) -> str:
        return (
            f"<Trip(id={self.id!r}, user_id={self.user_id!r}, "
            f"destination={self.destination!r}, status={self.status!r})>"
        )


class TripRoutePoint(Base):
    """A tracked coordinate recorded while the trip is in progress."""

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "trip_route_points"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey('trips.id', ondelete='CASCADE'), nullable=False, index=True)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    speed = Column(Float, nullable=True, doc="km/h")
    altitude = Column(Float, nullable=True, doc="meters")
    timestamp = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("lat >= -90 AND lat <= 90", name='check_route_point_lat'),
        CheckConstraint("lng >= -180 AND lng <= 180", name='check_route_point_lng'),
    )


class TripExpense(Base):
    """An expense incurred during a trip (fuel, toll, parking, ...)."""

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "trip_expenses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey('trips.id', ondelete='CASCADE'), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    amount = Column(Float, nullable=False)
    description = Column(String(500), nullable=True)
    location = Column(String(300), nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "type IN ('fuel', 'toll', 'parking', 'maintenance', 'other')",
            name='check_expense_type'
        ),
        CheckConstraint("amount >= 0", name='check_expense_amount'),
    )


class TripNote(Base):
    """Free-text note attached to a trip, optionally geotagged."""

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "trip_notes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey('trips.id', ondelete='CASCADE'), nullable=False, index=True)
    content = Column(String(500), nullable=False)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    address = Column(String(300), nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
