# ridelog/Services/analytics_cache.py
"""
In-memory cache for fuel analytics responses.

Purpose:
- Keep repeated analytics requests from re-running the ledger reconciliation
- Entries live until their TTL expires; there is no size-based eviction

Architecture:
- TTLCacheStore: thread-safe key-value store (threading.Lock) with per-entry
  expiry, driven by an injectable clock
- AnalyticsCache: read-through wrapper keyed by
  (user_id, metric, period, motor_id or 'all')

Known limit:
    No stampede protection. Two concurrent misses for the same key both
    recompute and both write; the last write wins. Results are pure functions
    of the stored data, so only the duplicated work is lost.
"""

import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple, Union

from ridelog.Core.config import settings
from ridelog.Core.timeutils import from_epoch


Clock = Callable[[], float]
CacheKey = Tuple[int, str, str, Union[int, str]]


class TTLCacheStore:
    """
    Thread-safe in-memory store with TTL expiration.

    Entries are dicts: {"data", "created_at", "expires_at"} (epoch seconds).

    Args:
        clock: Zero-argument callable returning epoch seconds (default time.time)
    """

    def __init__(self, clock: Clock = time.time):
        self._cache: Dict[Hashable, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        self.clock = clock

    def get(self, key: Hashable) -> Optional[Dict[str, Any]]:
        """
        Get cached entry if it exists and has not expired.

        Expired entries are removed on access.
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if self.clock() >= entry["expires_at"]:
                del self._cache[key]
                return None

            return entry

    def set(self, key: Hashable, data: Any, ttl: float) -> Dict[str, Any]:
        """Store data under key for ttl seconds, replacing any previous entry."""
        with self._lock:
            now = self.clock()
            entry = {
                "data": data,
                "created_at": now,
                "expires_at": now + ttl,
            }
            self._cache[key] = entry
            return entry

    def invalidate(self, key: Hashable) -> bool:
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def stats(self) -> Dict[str, Any]:
        """Cache metrics for monitoring/debugging."""
        with self._lock:
            now = self.clock()
            expired_count = sum(
                1 for entry in self._cache.values()
                if now >= entry["expires_at"]
            )

            return {
                "size": len(self._cache),
                "expired_count": expired_count,
                "oldest_age_seconds": (
                    now - min(entry["created_at"] for entry in self._cache.values())
                    if self._cache else 0
                )
            }


def make_key(user_id: int, metric: str, period: str, motor_id: Optional[int]) -> CacheKey:
    return (user_id, metric, period, motor_id if motor_id is not None else 'all')


class AnalyticsCache:
    """
    Read-through cache in front of the fuel ledger views.

    On a hit the stored result is returned as is (same object, same metadata).
    On a miss `compute` runs, its result gets
    metadata {generated_at, cache_expiry} from the clock, and is stored.

    Args:
        store: TTLCacheStore-like object (get / set / invalidate / clear / stats)
        clock: Zero-argument callable returning epoch seconds
        ttls: Seconds per metric; metrics not listed use default_ttl
        default_ttl: Fallback TTL in seconds
    """

    def __init__(
        self,
        store: TTLCacheStore,
        clock: Clock = time.time,
        ttls: Optional[Dict[str, float]] = None,
        default_ttl: float = 300
    ):
        self.store = store
        self.clock = clock
        self.ttls = dict(ttls or {})
        self.default_ttl = default_ttl

    def ttl_for(self, metric: str) -> float:
        return self.ttls.get(metric, self.default_ttl)

    def get_or_compute(
        self,
        user_id: int,
        metric: str,
        period: str,
        motor_id: Optional[int],
        compute: Callable[[], Dict[str, Any]]
    ) -> Dict[str, Any]:
        key = make_key(user_id, metric, period, motor_id)

        entry = self.store.get(key)
        if entry is not None:
            print(f"[CACHE] Hit {key}")
            return entry["data"]

        ttl = self.ttl_for(metric)
        now = self.clock()

        result = dict(compute())
        result["metadata"] = {
            "generated_at": from_epoch(now),
            "cache_expiry": from_epoch(now + ttl),
        }

        self.store.set(key, result, ttl)
        print(f"[CACHE] Miss {key}, stored for {ttl:.0f}s")

        return result

    def invalidate(self, user_id: int, metric: str, period: str, motor_id: Optional[int]) -> bool:
        return self.store.invalidate(make_key(user_id, metric, period, motor_id))


# ============================================================
# METRIC NAMES AND DEFAULT TTLS
# ============================================================
METRIC_COMBINED = 'combined'
METRIC_EFFICIENCY = 'efficiency'
METRIC_COST = 'cost'


def default_ttls() -> Dict[str, float]:
    return {
        METRIC_COMBINED: settings.CACHE_COMBINED_TTL_S,
        METRIC_EFFICIENCY: settings.CACHE_ANALYTICS_TTL_S,
        METRIC_COST: settings.CACHE_ANALYTICS_TTL_S,
    }
