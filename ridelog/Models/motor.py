# ridelog/Models/motor.py

"""
Motor Model - Rider Motorcycle Registry

This module defines the SQLAlchemy model for motorcycles owned by riders.

The Motor table is the reference target of trips, fuel logs and maintenance
records. Besides its descriptive metadata it carries two kinds of derived
state that this service maintains:

- Fuel state: current fuel level (percent of tank), recomputed when a
  maintenance refuel is recorded
- Aggregate counters: total trips, total distance and last trip date,
  incremented when a trip is completed

Database Table: motors
Primary Key: id (Integer)
"""

from sqlalchemy.orm import declared_attr
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.sql import func
from ridelog.DB.base_class import Base


class Motor(Base):
    """
    SQLAlchemy model representing a rider's motorcycle.

    Schema:
    - id (PK)
    - user_id (FK riders.id): Owning rider
    - nickname / brand / model: Display metadata
    - fuel_tank: Declared tank capacity in liters (NULL = unknown, default applies)
    - current_fuel_level: Estimated fuel in the tank, percent [0, 100]
    - total_trips / total_distance / last_trip_date: Completion aggregates
    - analytics_last_updated: Last time fuel state was recomputed
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "motors"

    # ============================================================
    # Primary Key / Ownership
    # ============================================================
    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(
        Integer,
        ForeignKey('riders.id', ondelete='CASCADE'),
        nullable=False,
        doc="Rider that owns this motorcycle"
    )

    # ============================================================
    # Metadata
    # ============================================================
    nickname = Column(String(100), nullable=True)
    brand = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)

    # ============================================================
    # Fuel State
    # ============================================================
    fuel_tank = Column(
        Float,
        nullable=True,
        doc="Declared tank capacity in liters"
    )

    current_fuel_level = Column(
        Float,
        nullable=False,
        default=0.0,
        server_default='0.0',
        doc="Estimated fuel level as a percentage of tank capacity"
    )

    analytics_last_updated = Column(
        DateTime(timezone=True),
        nullable=True,
        doc="Timestamp of the last fuel-state recomputation"
    )

    # ============================================================
    # Aggregate Counters
    # ============================================================
    total_trips = Column(Integer, nullable=False, default=0, server_default='0')

    total_distance = Column(Float, nullable=False, default=0.0, server_default='0.0')

    last_trip_date = Column(
        DateTime(timezone=True),
        nullable=True,
        doc="Start time of the most recent completed trip"
    )

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        Index('idx_motors_user', 'user_id'),
        CheckConstraint(
            "current_fuel_level >= 0 AND current_fuel_level <= 100",
            name='check_motor_fuel_level'
        ),
        CheckConstraint("fuel_tank IS NULL OR fuel_tank > 0", name='check_motor_fuel_tank'),
    )

    def __repr__(self) -> str:
        return (
            f"<Motor(id={self.id!r}, user_id={self.user_id!r}, "
            f"nickname={self.nickname!r}, fuel={self.current_fuel_level!r}%)>"
        )
