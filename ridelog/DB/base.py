"""
ridelog/DB/base.py
==========================
SQLAlchemy Model Registry
==========================

Central registry for all SQLAlchemy models. Importing this module guarantees
every table is attached to Base.metadata before:

- Alembic autogenerates migrations (alembic/env.py)
- create_all() runs (tests, local bootstrap)
- Relationships between models are resolved

Models Registered:
-----------------
- Rider: Trip owner with aggregate counters (total trips, total distance)
- Motor: Motorcycle with tank capacity, fuel level and aggregate counters
- Trip, TripRoutePoint, TripExpense, TripNote: Trip lifecycle records
- FuelLog: Dedicated fuel purchase entries
- MaintenanceRecord: Maintenance events (refuels feed the fuel ledger)

Important:
----------
Any new model classes MUST be imported here.
"""

from ridelog.DB.base_class import Base

# ============================================================
# MODEL IMPORTS - DO NOT REMOVE
# ============================================================
from ridelog.Models.rider import Rider
from ridelog.Models.motor import Motor
from ridelog.Models.trip import Trip, TripRoutePoint, TripExpense, TripNote
from ridelog.Models.fuel_log import FuelLog
from ridelog.Models.maintenance_record import MaintenanceRecord
