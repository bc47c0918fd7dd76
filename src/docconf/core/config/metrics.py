"""
Configuration source metrics and health monitoring for docconf.

Purpose
-------
Tracks per-source lookup counters (cache hits and misses, store fetches,
invalidations, degraded lookups) and derives hit rates and latencies for
health snapshots.

Architecture Notes
------------------
- Counters live in a slotted dataclass guarded by a `threading.Lock`
  because sources are read from arbitrary request threads
- Derived metrics are computed on demand from raw counters
- Snapshots are plain dicts suitable for `logger.info(..., extra=...)`
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, fields
from typing import Any, Dict


@dataclass(slots=True)
class ConfigMetrics:
    """
    Thread-safe counters for one configuration source.

    `cache_hits` includes lookups answered by a known-absent entry.
    `store_fetches` counts every round-trip to the document store, so tests
    can assert that a key is fetched at most once between invalidations.
    """

    lookups: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    store_fetches: int = 0
    unavailable_lookups: int = 0
    invalidations: int = 0
    conversion_errors: int = 0
    resolution_errors: int = 0
    store_errors: int = 0
    total_lookup_time_ms: float = 0.0

    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                f.name: getattr(self, f.name)
                for f in fields(self)
                if not f.name.startswith("_")
            }

    def record_lookup(self, elapsed_ms: float, hit: bool) -> None:
        with self._lock:
            self.lookups += 1
            self.total_lookup_time_ms += elapsed_ms
            if hit:
                self.cache_hits += 1
            else:
                self.cache_misses += 1

    def record_store_fetch(self) -> None:
        with self._lock:
            self.store_fetches += 1

    def record_unavailable(self) -> None:
        with self._lock:
            self.unavailable_lookups += 1

    def record_invalidation(self) -> None:
        with self._lock:
            self.invalidations += 1

    def record_conversion_error(self) -> None:
        with self._lock:
            self.conversion_errors += 1

    def record_resolution_error(self) -> None:
        with self._lock:
            self.resolution_errors += 1

    def record_store_error(self) -> None:
        with self._lock:
            self.store_errors += 1

    @property
    def errors(self) -> int:
        with self._lock:
            return self.conversion_errors + self.resolution_errors + self.store_errors

    def get_cache_hit_rate(self) -> float:
        """Hit rate as a percentage (0.0 - 100.0) over cache-consulting lookups."""
        with self._lock:
            consulted = self.cache_hits + self.cache_misses
            if consulted == 0:
                return 0.0
            return (self.cache_hits / consulted) * 100.0

    def get_avg_lookup_time_ms(self) -> float:
        with self._lock:
            if self.lookups == 0:
                return 0.0
            return self.total_lookup_time_ms / self.lookups

    def reset(self) -> None:
        with self._lock:
            for f in fields(self):
                if f.name.startswith("_"):
                    continue
                setattr(self, f.name, 0.0 if f.type == "float" else 0)


def get_metrics_snapshot(
    metrics: ConfigMetrics,
    cache_id: str,
    initialized: bool,
) -> Dict[str, Any]:
    """
    Build a metrics snapshot with raw counters and derived values.

    Example
    -------
    >>> snapshot = get_metrics_snapshot(metrics, "configuration.document.wiki", True)
    >>> logger.info("Configuration metrics", extra=snapshot)
    """
    snapshot = metrics.to_dict()
    snapshot.update(
        {
            "cache_id": cache_id,
            "initialized": initialized,
            "cache_hit_rate": round(metrics.get_cache_hit_rate(), 2),
            "avg_lookup_time_ms": round(metrics.get_avg_lookup_time_ms(), 3),
        }
    )
    return snapshot


def get_health_snapshot(
    cache_id: str,
    initialized: bool,
    subscribed: bool,
    errors: int,
    invalidations: int,
) -> Dict[str, Any]:
    """
    Compact health view for dashboards.

    A source is healthy when it is initialized, still listening for
    invalidation events and has recorded fewer than 10 errors.
    """
    is_healthy = initialized and subscribed and errors < 10

    status = "healthy" if is_healthy else "degraded"
    if not initialized:
        status = "not_initialized"
    elif errors > 50:
        status = "unhealthy"

    return {
        "cache_id": cache_id,
        "initialized": initialized,
        "subscribed": subscribed,
        "errors": errors,
        "invalidations": invalidations,
        "is_healthy": is_healthy,
        "status": status,
    }


__all__ = [
    "ConfigMetrics",
    "get_metrics_snapshot",
    "get_health_snapshot",
]
