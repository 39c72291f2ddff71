# ridelog/Models/maintenance_record.py
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import declared_attr
from ridelog.DB.base_class import Base


MAINTENANCE_TYPES = ('refuel', 'oil_change', 'tune_up', 'repair', 'inspection', 'other')


class MaintenanceRecord(Base):
    """
    Maintenance event recorded against a motorcycle.

    Records with type='refuel' are the second fuel source of the ledger:
    quantity holds the liters added and cost the total paid. Creating one
    triggers the motor fuel-level recomputation.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "maintenance_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('riders.id', ondelete='CASCADE'), nullable=False)
    motor_id = Column(Integer, ForeignKey('motors.id', ondelete='CASCADE'), nullable=False)

    type = Column(String(20), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)

    # Details
    cost = Column(Float, nullable=False, default=0.0, server_default='0.0')
    quantity = Column(Float, nullable=True, doc="Liters added (refuel) or units used")
    service_provider = Column(String(200), nullable=True)
    odometer_reading = Column(Float, nullable=True, doc="km")
    notes = Column(String(500), nullable=True)

    # Location
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    address = Column(String(300), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    __table_args__ = (
        Index('idx_maintenance_user_type_time', 'user_id', 'type', 'timestamp'),
        Index('idx_maintenance_motor', 'motor_id'),
        CheckConstraint(
            "type IN ('refuel', 'oil_change', 'tune_up', 'repair', 'inspection', 'other')",
            name='check_maintenance_type'
        ),
        CheckConstraint("cost >= 0", name='check_maintenance_cost'),
        CheckConstraint("quantity IS NULL OR quantity >= 0", name='check_maintenance_quantity'),
    )

    def __repr__(self) -> str:
        return (
            f"<MaintenanceRecord(id={self.id!r}, motor_id={self.motor_id!r}, "
            f"type={self.type!r}, cost={self.cost!r})>"
        )
