# ridelog/Models/rider.py
from sqlalchemy import Column, Integer, String, Float, DateTime, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import declared_attr
from ridelog.DB.base_class import Base


class Rider(Base):
    """
    SQLAlchemy model for the trip owner and its aggregate counters.

    User management itself (profiles, credentials) lives outside this service;
    this table only carries what the trip lifecycle increments on completion.

    Related models:
    - Motor (1:N) - one rider owns many motorcycles
    - Trip (1:N) - one rider plans and rides many trips
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "riders"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(
        String(200),
        nullable=True,
        doc="Display name"
    )

    # ========================================
    # AGGREGATE COUNTERS
    # ========================================
    total_trips = Column(
        Integer,
        nullable=False,
        default=0,
        server_default='0',
        doc="Number of completed trips"
    )

    total_distance = Column(
        Float,
        nullable=False,
        default=0.0,
        server_default='0.0',
        doc="Sum of actual distance over completed trips (km)"
    )

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("total_trips >= 0", name='check_rider_total_trips'),
        CheckConstraint("total_distance >= 0", name='check_rider_total_distance'),
    )

    def __repr__(self) -> str:
        return f"<Rider(id={self.id!r}, total_trips={self.total_trips!r})>"
