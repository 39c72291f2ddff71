# ridelog/Services/fuel_ledger.py
"""
Fuel Ledger Reconciler - Merges the two fuel sources into one ledger.

Sources:
- fuel_logs: dedicated fuel purchases (liters, price per liter, total cost)
- maintenance_records with type='refuel': quantity (liters) and cost

Pipeline (one reconciliation):
    1. Resolve the period window [now - window, now]
    2. Fetch both sources through a FuelEventSource
    3. Normalize every row into a UnifiedFuelEvent (tagged by `source`)
    4. Derive per-event odometer distance (same motor, previous reading;
       the last reading before the window seeds each motor)
    5. Sort date descending; ties: fuel_log before maintenance, then record id

Views built on the ledger:
- combined(): full ledger plus totals
- efficiency(): km/L series over events with a known positive distance
- cost_analysis(): price-per-liter range and cost trend

Nothing here is cached; see ridelog/Services/analytics_cache.py.
"""

import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Union

from sqlalchemy.orm import Session

from ridelog.Core.timeutils import as_utc, from_epoch
from ridelog.Repositories import fuel_log as fuel_log_repo
from ridelog.Repositories import maintenance as maintenance_repo
from ridelog.Schemas.fuel import EventLocation, FuelLogEvent, MaintenanceRefuelEvent
from ridelog.Services.periods import period_window, resolve_period


FuelEvent = Union[FuelLogEvent, MaintenanceRefuelEvent]

# Tie-break for identical timestamps: lower rank first
SOURCE_RANK = {'fuel_log': 0, 'maintenance': 1}


# ==========================================================
# SOURCES
# ==========================================================

class FuelEventSource(Protocol):
    """Read-only access to the two fuel stores, filtered by rider, window and motor."""

    def fuel_logs(self, user_id: int, start: datetime, end: datetime, motor_id: Optional[int]) -> Sequence[Any]:
        ...

    def maintenance_refuels(self, user_id: int, start: datetime, end: datetime, motor_id: Optional[int]) -> Sequence[Any]:
        ...

    def fuel_log_readings_before(self, user_id: int, before: datetime, motor_id: Optional[int]) -> Sequence[Any]:
        """Latest odometer-bearing fuel log of each motor dated before the window."""
        ...

    def refuel_readings_before(self, user_id: int, before: datetime, motor_id: Optional[int]) -> Sequence[Any]:
        """Latest odometer-bearing maintenance refuel of each motor before the window."""
        ...


class SqlFuelEventSource:
    """FuelEventSource backed by the fuel_logs and maintenance_records tables."""

    def __init__(self, DB: Session):
        self.DB = DB

    def fuel_logs(self, user_id, start, end, motor_id):
        return fuel_log_repo.get_fuel_logs_in_window(self.DB, user_id, start, end, motor_id)

    def maintenance_refuels(self, user_id, start, end, motor_id):
        return maintenance_repo.get_refuels_in_window(self.DB, user_id, start, end, motor_id)

    def fuel_log_readings_before(self, user_id, before, motor_id):
        return fuel_log_repo.get_latest_readings_before(self.DB, user_id, before, motor_id)

    def refuel_readings_before(self, user_id, before, motor_id):
        return maintenance_repo.get_latest_readings_before(self.DB, user_id, before, motor_id)


# ==========================================================
# NORMALIZATION
# ==========================================================

def _location(row: Any) -> Optional[EventLocation]:
    if row.lat is None and row.lng is None and not row.address:
        return None
    return EventLocation(lat=row.lat, lng=row.lng, address=row.address)


def normalize_fuel_log(row: Any) -> FuelLogEvent:
    return FuelLogEvent(
        record_id=row.id,
        date=as_utc(row.date),
        liters=row.liters,
        price_per_liter=row.price_per_liter,
        total_cost=row.total_cost,
        motor_id=row.motor_id,
        odometer=row.odometer,
        location=_location(row),
        notes=row.notes,
        fuel_type=row.fuel_type or 'gasoline',
    )


def normalize_maintenance_refuel(row: Any) -> MaintenanceRefuelEvent:
    liters = row.quantity or 0.0
    cost = row.cost or 0.0

    return MaintenanceRefuelEvent(
        record_id=row.id,
        date=as_utc(row.timestamp),
        liters=liters,
        price_per_liter=cost / liters if liters else 0.0,
        total_cost=cost,
        motor_id=row.motor_id,
        odometer=row.odometer_reading,
        location=_location(row),
        notes=row.notes,
        service_provider=row.service_provider,
    )


def seed_readings(fuel_logs: Sequence[Any], refuels: Sequence[Any]) -> Dict[int, float]:
    """
    Last odometer reading of each motor from rows dated before the window.

    When both sources report a motor, the later row wins; on equal dates the
    maintenance refuel wins, matching the ascending ledger order.
    """
    candidates = [
        (as_utc(row.date), SOURCE_RANK['fuel_log'], row.id, row.motor_id, row.odometer)
        for row in fuel_logs
    ]
    candidates.extend(
        (as_utc(row.timestamp), SOURCE_RANK['maintenance'], row.id, row.motor_id, row.odometer_reading)
        for row in refuels
    )

    seeds: Dict[int, float] = {}
    for *_, motor_id, odometer in sorted(candidates):
        seeds[motor_id] = odometer
    return seeds


def attach_distances(events: List[FuelEvent], seeds: Optional[Dict[int, float]] = None) -> List[FuelEvent]:
    """
    Set `distance` on every event whose motor had an earlier odometer reading.

    Walks the events oldest first; each motor remembers its last reading,
    starting from `seeds` (readings that precede the window). Events without
    an odometer keep distance=None and do not move the marker.
    """
    chronological = sorted(events, key=_ascending_key)
    last_reading: Dict[int, float] = dict(seeds or {})
    result = []

    for event in chronological:
        if event.odometer is None:
            result.append(event)
            continue

        previous = last_reading.get(event.motor_id)
        last_reading[event.motor_id] = event.odometer

        if previous is None:
            result.append(event)
        else:
            result.append(event.model_copy(update={'distance': event.odometer - previous}))

    return result


def _ascending_key(event: FuelEvent):
    return (event.date, SOURCE_RANK[event.source], event.record_id)


def _ledger_key(event: FuelEvent):
    # Date descending, then fuel_log before maintenance, then record id
    return (-event.date.timestamp(), SOURCE_RANK[event.source], event.record_id)


def order_ledger(events: List[FuelEvent]) -> List[FuelEvent]:
    return sorted(events, key=_ledger_key)


# ==========================================================
# RECONCILER
# ==========================================================

class FuelLedgerReconciler:
    """
    Builds the unified fuel ledger and its derived views.

    Args:
        source: FuelEventSource to read from
        clock: Zero-argument callable returning epoch seconds (window end)
    """

    def __init__(self, source: FuelEventSource, clock: Callable[[], float] = time.time):
        self.source = source
        self.clock = clock

    def reconcile(self, user_id: int, period: Optional[str] = None, motor_id: Optional[int] = None) -> List[FuelEvent]:
        """
        Merged, source-tagged ledger for the rider, newest first.

        Raises:
            ValidationError: unknown period label
        """
        period = resolve_period(period)
        start, end = period_window(period, from_epoch(self.clock()))

        fuel_logs = self.source.fuel_logs(user_id, start, end, motor_id)
        refuels = self.source.maintenance_refuels(user_id, start, end, motor_id)

        events: List[FuelEvent] = [normalize_fuel_log(row) for row in fuel_logs]
        events.extend(normalize_maintenance_refuel(row) for row in refuels)

        # Readings before the window only seed distances; they never enter the ledger
        seeds = seed_readings(
            self.source.fuel_log_readings_before(user_id, start, motor_id),
            self.source.refuel_readings_before(user_id, start, motor_id),
        )

        ledger = order_ledger(attach_distances(events, seeds))

        print(f"[FUEL] Reconciled {len(fuel_logs)} fuel logs + {len(refuels)} refuels "
              f"for user {user_id} ({period}, motor {motor_id or 'all'})")

        return ledger

    # ==========================================================
    # VIEWS
    # ==========================================================

    def combined(self, user_id: int, period: Optional[str] = None, motor_id: Optional[int] = None) -> Dict[str, Any]:
        period = resolve_period(period)
        ledger = self.reconcile(user_id, period, motor_id)

        total_liters = sum(event.liters for event in ledger)
        total_cost = sum(event.total_cost for event in ledger)

        return {
            "data": ledger,
            "summary": {
                "total_liters": total_liters,
                "total_cost": total_cost,
                "avg_cost_per_liter": total_cost / total_liters if total_liters > 0 else 0.0,
                "total_refuels": len(ledger),
                "period": period,
                "motor_id": motor_id if motor_id is not None else 'all',
            },
        }

    def efficiency(self, user_id: int, period: Optional[str] = None, motor_id: Optional[int] = None) -> Dict[str, Any]:
        """
        km/L over events with a positive odometer distance and liters > 0.

        Events without both are left out of the series and the totals rather
        than counted as zero efficiency.
        """
        period = resolve_period(period)
        ledger = self.reconcile(user_id, period, motor_id)

        measured = [
            event for event in ledger
            if event.distance is not None and event.distance > 0 and event.liters > 0
        ]

        total_distance = sum(event.distance for event in measured)
        total_liters = sum(event.liters for event in measured)
        total_cost = sum(event.total_cost for event in measured)

        trends = [
            {
                "date": event.date,
                "source": event.source,
                "motor_id": event.motor_id,
                "distance": event.distance,
                "liters": event.liters,
                "efficiency": event.distance / event.liters,
                "cost": event.total_cost,
            }
            for event in sorted(measured, key=_ascending_key)
        ]

        return {
            "period": period,
            "motor_id": motor_id if motor_id is not None else 'all',
            "total_distance": total_distance,
            "total_liters": total_liters,
            "total_cost": total_cost,
            "avg_efficiency": total_distance / total_liters if total_liters > 0 else 0.0,
            "avg_cost_per_km": total_cost / total_distance if total_distance > 0 else 0.0,
            "total_refuels": len(measured),
            "trends": trends,
        }

    def cost_analysis(self, user_id: int, period: Optional[str] = None, motor_id: Optional[int] = None) -> Dict[str, Any]:
        """Cost totals, price-per-liter range (None when empty) and cost trend."""
        period = resolve_period(period)
        ledger = self.reconcile(user_id, period, motor_id)

        total_cost = sum(event.total_cost for event in ledger)
        total_liters = sum(event.liters for event in ledger)
        prices = [event.price_per_liter for event in ledger]

        trends = [
            {
                "date": event.date,
                "source": event.source,
                "motor_id": event.motor_id,
                "cost": event.total_cost,
                "liters": event.liters,
                "price_per_liter": event.price_per_liter,
                "location": event.location,
            }
            for event in sorted(ledger, key=_ascending_key)
        ]

        return {
            "period": period,
            "motor_id": motor_id if motor_id is not None else 'all',
            "total_cost": total_cost,
            "total_liters": total_liters,
            "avg_price_per_liter": total_cost / total_liters if total_liters > 0 else 0.0,
            "min_price": min(prices) if prices else None,
            "max_price": max(prices) if prices else None,
            "total_refuels": len(ledger),
            "trends": trends,
        }
