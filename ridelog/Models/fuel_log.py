# ridelog/Models/fuel_log.py
from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, CheckConstraint, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import declared_attr
from ridelog.DB.base_class import Base


class FuelLog(Base):
    """
    Dedicated fuel purchase entry.

    One of the two sources reconciled into the fuel ledger (the other being
    maintenance records of type 'refuel'). Creating a FuelLog does NOT
    update the motor's fuel level; only maintenance refuels do.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "fuel_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('riders.id', ondelete='CASCADE'), nullable=False)
    motor_id = Column(Integer, ForeignKey('motors.id', ondelete='CASCADE'), nullable=False)

    # Purchase details
    liters = Column(Float, nullable=False)
    price_per_liter = Column(Float, nullable=False)
    total_cost = Column(Float, nullable=False, doc="liters × price_per_liter (rounding tolerated)")
    fuel_type = Column(String(20), nullable=False, default='gasoline', server_default='gasoline')

    odometer = Column(Float, nullable=True, doc="Odometer reading at the pump (km)")

    # Location of the fuel stop
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    address = Column(String(300), nullable=True)

    notes = Column(Text, nullable=True)

    date = Column(DateTime(timezone=True), nullable=False, doc="When the purchase happened")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    __table_args__ = (
        Index('idx_fuel_logs_user_date', 'user_id', 'date'),
        Index('idx_fuel_logs_motor', 'motor_id'),
        CheckConstraint("liters > 0", name='check_fuel_log_liters'),
        CheckConstraint("price_per_liter >= 0", name='check_fuel_log_price'),
        CheckConstraint("total_cost >= 0", name='check_fuel_log_total'),
        CheckConstraint(
            "fuel_type IN ('gasoline', 'diesel', 'premium', 'unleaded')",
            name='check_fuel_log_type'
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<FuelLog(id={self.id!r}, motor_id={self.motor_id!r}, "
            f"liters={self.liters!r}, total_cost={self.total_cost!r})>"
        )
