"""Hit / miss statistics for a :class:`~weakcache.cache.WeakCache`.

Counters are updated from whichever thread happens to serve a request, so
the recorder is guarded by a single lock and hands out immutable
snapshots.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class CacheStats:
    """Immutable snapshot of cache statistics."""

    hits: int = 0
    """Requests served by an already-cached value."""
    misses: int = 0
    """Requests that ran the value factory successfully."""
    failures: int = 0
    """Value factory runs that raised or produced ``None``."""
    expunged: int = 0
    """Keys whose entries were dropped after being collected."""

    @property
    def total(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Hit rate as a float in [0.0, 1.0]; 0.0 when no requests."""
        if self.total == 0:
            return 0.0
        return self.hits / self.total


class CacheStatsRecorder:
    """Thread-safe counters behind :class:`CacheStats`.

    Usage::

        stats = CacheStatsRecorder()
        stats.record_hit()
        stats.record_miss()
        print(stats.snapshot().hit_rate)
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._failures = 0
        self._expunged = 0

    def record_hit(self) -> None:
        with self._lock:
            self._hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self._misses += 1

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1

    def record_expunged(self, count: int = 1) -> None:
        with self._lock:
            self._expunged += count

    def snapshot(self) -> CacheStats:
        """Return a :class:`CacheStats` snapshot of the current counters."""
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                failures=self._failures,
                expunged=self._expunged,
            )

    def reset(self) -> None:
        with self._lock:
            self._hits = 0
            self._misses = 0
            self._failures = 0
            self._expunged = 0
