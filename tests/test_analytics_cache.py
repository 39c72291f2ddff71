# -*- coding: utf-8 -*-
"""Tests for the TTL store, the read-through analytics cache and FuelAnalytics."""

import pytest

from ridelog.Core.errors import ValidationError
from ridelog.Core.timeutils import from_epoch
from ridelog.Schemas.caller import Caller
from ridelog.Services.analytics_cache import (
    AnalyticsCache,
    TTLCacheStore,
    METRIC_COMBINED,
    METRIC_EFFICIENCY,
    make_key,
)
from ridelog.Services.fuel_analytics import FuelAnalytics


class Counter:
    def __init__(self, value=None):
        self.calls = 0
        self.value = value or {"total": 1}

    def __call__(self):
        self.calls += 1
        return dict(self.value)


# ==========================================================
# STORE
# ==========================================================

class TestTTLCacheStore:

    def test_entry_expires_at_ttl(self, clock):
        store = TTLCacheStore(clock)
        store.set("k", {"v": 1}, ttl=10)

        clock.advance(9.9)
        assert store.get("k")["data"] == {"v": 1}

        clock.advance(0.1)
        assert store.get("k") is None
        assert store.stats()["size"] == 0

    def test_invalidate_and_clear(self, clock):
        store = TTLCacheStore(clock)
        store.set("a", 1, ttl=60)
        store.set("b", 2, ttl=60)

        assert store.invalidate("a") is True
        assert store.invalidate("a") is False
        assert store.get("b")["data"] == 2

        store.clear()
        assert store.get("b") is None

    def test_stats(self, clock):
        store = TTLCacheStore(clock)
        store.set("old", 1, ttl=5)
        clock.advance(3)
        store.set("new", 2, ttl=60)
        clock.advance(4)

        stats = store.stats()
        assert stats["size"] == 2
        assert stats["expired_count"] == 1
        assert stats["oldest_age_seconds"] == pytest.approx(7)

    def test_empty_stats(self, clock):
        assert TTLCacheStore(clock).stats() == {"size": 0, "expired_count": 0, "oldest_age_seconds": 0}


# ==========================================================
# READ-THROUGH CACHE
# ==========================================================

class TestAnalyticsCache:

    def _cache(self, clock):
        return AnalyticsCache(TTLCacheStore(clock), clock, ttls={METRIC_COMBINED: 300})

    def test_computes_once_within_ttl(self, clock):
        cache = self._cache(clock)
        compute = Counter()

        first = cache.get_or_compute(1, METRIC_COMBINED, '30d', None, compute)
        clock.advance(299)
        second = cache.get_or_compute(1, METRIC_COMBINED, '30d', None, compute)

        assert compute.calls == 1
        assert second is first

    def test_recomputes_after_expiry(self, clock):
        cache = self._cache(clock)
        compute = Counter()

        cache.get_or_compute(1, METRIC_COMBINED, '30d', None, compute)
        clock.advance(300)
        cache.get_or_compute(1, METRIC_COMBINED, '30d', None, compute)

        assert compute.calls == 2

    def test_metadata_reflects_clock_and_ttl(self, clock):
        cache = self._cache(clock)

        result = cache.get_or_compute(1, METRIC_COMBINED, '7d', 3, Counter())

        assert result["total"] == 1
        assert result["metadata"]["generated_at"] == from_epoch(clock())
        assert result["metadata"]["cache_expiry"] == from_epoch(clock() + 300)

    def test_unlisted_metric_uses_default_ttl(self, clock):
        cache = AnalyticsCache(TTLCacheStore(clock), clock, ttls={}, default_ttl=120)

        result = cache.get_or_compute(1, METRIC_EFFICIENCY, '30d', None, Counter())

        assert result["metadata"]["cache_expiry"] == from_epoch(clock() + 120)

    def test_keys_are_separated(self, clock):
        cache = self._cache(clock)
        compute = Counter()

        cache.get_or_compute(1, METRIC_COMBINED, '30d', None, compute)
        cache.get_or_compute(2, METRIC_COMBINED, '30d', None, compute)
        cache.get_or_compute(1, METRIC_COMBINED, '7d', None, compute)
        cache.get_or_compute(1, METRIC_COMBINED, '30d', 4, compute)
        cache.get_or_compute(1, METRIC_EFFICIENCY, '30d', None, compute)

        assert compute.calls == 5

    def test_invalidate_forces_recompute(self, clock):
        cache = self._cache(clock)
        compute = Counter()

        cache.get_or_compute(1, METRIC_COMBINED, '30d', None, compute)
        assert cache.invalidate(1, METRIC_COMBINED, '30d', None) is True
        cache.get_or_compute(1, METRIC_COMBINED, '30d', None, compute)

        assert compute.calls == 2

    def test_make_key_uses_all_for_missing_motor(self):
        assert make_key(7, 'cost', '90d', None) == (7, 'cost', '90d', 'all')
        assert make_key(7, 'cost', '90d', 2) == (7, 'cost', '90d', 2)


# ==========================================================
# FUEL ANALYTICS
# ==========================================================

class CountingReconciler:
    def __init__(self):
        self.calls = []

    def combined(self, user_id, period, motor_id):
        self.calls.append(('combined', user_id, period, motor_id))
        return {"data": [], "summary": {"period": period}}

    def efficiency(self, user_id, period, motor_id):
        self.calls.append(('efficiency', user_id, period, motor_id))
        return {"period": period}

    def cost_analysis(self, user_id, period, motor_id):
        self.calls.append(('cost_analysis', user_id, period, motor_id))
        return {"period": period}


class TestFuelAnalytics:

    def _analytics(self, clock, reconciler):
        cache = AnalyticsCache(TTLCacheStore(clock), clock, ttls={})
        return FuelAnalytics(cache, reconciler_factory=lambda DB: reconciler, clock=clock)

    def test_default_period_shares_entry_with_30d(self, clock):
        reconciler = CountingReconciler()
        analytics = self._analytics(clock, reconciler)
        caller = Caller(user_id=1)

        analytics.combined(None, caller)
        analytics.combined(None, caller, period='30d')

        assert reconciler.calls == [('combined', 1, '30d', None)]

    def test_views_cached_independently(self, clock):
        reconciler = CountingReconciler()
        analytics = self._analytics(clock, reconciler)
        caller = Caller(user_id=1)

        analytics.efficiency(None, caller, '7d', 2)
        analytics.cost_analysis(None, caller, '7d', 2)
        analytics.efficiency(None, caller, '7d', 2)

        assert [call[0] for call in reconciler.calls] == ['efficiency', 'cost_analysis']

    def test_unknown_period_rejected_before_compute(self, clock):
        reconciler = CountingReconciler()
        analytics = self._analytics(clock, reconciler)

        with pytest.raises(ValidationError):
            analytics.combined(None, Caller(user_id=1), period='yesterday')

        assert reconciler.calls == []
