# ridelog/Services/fuel_analytics.py
"""
Fuel Analytics - Cached entry points behind the /fuel routes.

Flow:
    route → FuelAnalytics → AnalyticsCache → FuelLedgerReconciler → FuelEventSource

The period is resolved (and rejected if unknown) before the cache key is
built, so a missing period and '30d' share one entry.

Creating fuel logs or maintenance refuels does not invalidate cached views;
new data shows up once the entry expires.
"""

import time
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from ridelog.Schemas.caller import Caller
from ridelog.Services.analytics_cache import (
    AnalyticsCache,
    Clock,
    TTLCacheStore,
    METRIC_COMBINED,
    METRIC_COST,
    METRIC_EFFICIENCY,
    default_ttls,
)
from ridelog.Services.fuel_ledger import FuelLedgerReconciler, SqlFuelEventSource
from ridelog.Services.periods import resolve_period


class FuelAnalytics:
    """
    Args:
        cache: AnalyticsCache shared across requests
        reconciler_factory: Builds a reconciler for the request's session
    """

    def __init__(
        self,
        cache: AnalyticsCache,
        reconciler_factory: Optional[Callable[[Session], FuelLedgerReconciler]] = None,
        clock: Clock = time.time
    ):
        self.cache = cache
        self.reconciler_factory = reconciler_factory or (
            lambda DB: FuelLedgerReconciler(SqlFuelEventSource(DB), clock)
        )

    def _cached(
        self,
        DB: Session,
        caller: Caller,
        metric: str,
        period: Optional[str],
        motor_id: Optional[int],
        view: str
    ) -> Dict[str, Any]:
        period = resolve_period(period)

        def compute():
            reconciler = self.reconciler_factory(DB)
            return getattr(reconciler, view)(caller.user_id, period, motor_id)

        return self.cache.get_or_compute(caller.user_id, metric, period, motor_id, compute)

    def combined(self, DB: Session, caller: Caller, period: Optional[str] = None, motor_id: Optional[int] = None):
        return self._cached(DB, caller, METRIC_COMBINED, period, motor_id, 'combined')

    def efficiency(self, DB: Session, caller: Caller, period: Optional[str] = None, motor_id: Optional[int] = None):
        return self._cached(DB, caller, METRIC_EFFICIENCY, period, motor_id, 'efficiency')

    def cost_analysis(self, DB: Session, caller: Caller, period: Optional[str] = None, motor_id: Optional[int] = None):
        return self._cached(DB, caller, METRIC_COST, period, motor_id, 'cost_analysis')


def build_fuel_analytics(clock: Clock = time.time) -> FuelAnalytics:
    cache = AnalyticsCache(TTLCacheStore(clock), clock, ttls=default_ttls())
    return FuelAnalytics(cache, clock=clock)


# Global instance (process-wide cache) used by the fuel routes
fuel_analytics = build_fuel_analytics()
