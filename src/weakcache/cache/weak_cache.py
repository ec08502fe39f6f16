"""Two-level cache mapping ``(key, sub-key) -> value``.

Keys and values are held weakly, sub-keys strongly.  Keys are passed
directly to :meth:`WeakCache.get`, together with a ``parameter``.  Sub-keys
are computed from key and parameter by the ``sub_key_factory`` given to the
constructor, values by the ``value_factory``.  Keys may be ``None`` and are
compared by identity; sub-keys are compared with ``==``; neither sub-keys
nor values may be ``None``.

Entries are expunged lazily, on each call to :meth:`~WeakCache.get`,
:meth:`~WeakCache.contains_value` or :meth:`~WeakCache.size`, once the weak
reference to their key has been cleared.  A cleared value does not cause an
expunge; the slot is simply treated as empty and the value recomputed on
the next request for that key / sub-key.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Generic, Hashable, List, Optional, Tuple, TypeVar, Union

from ..errors import InvalidArgumentError, NullComputationError, ProtocolViolationError
from ..events import ComputationFailedEvent, EventBus, KeyExpungedEvent, ValueComputedEvent
from ..events.cache_events import CacheEvent
from ..ref import ReclamationQueue
from ..settings import CacheSettings
from ..stats import CacheStats, CacheStatsRecorder
from .concurrent_map import ConcurrentMap
from .keys import CacheKey
from .values import CacheValueHandle, LookupValue

LOGGER = logging.getLogger(__name__)

K = TypeVar("K")
P = TypeVar("P")
V = TypeVar("V")

SubKeyFactory = Callable[[Optional[K], P], Hashable]
ValueFactory = Callable[[Optional[K], P], V]


class _ValuesMap(ConcurrentMap):
    """Inner map of one key: sub-key -> supplier."""

    def __init__(self, segments: int) -> None:
        super().__init__(segments)
        # Set once the owning key has been expunged.
        self.detached = False


Supplier = Union["Factory", CacheValueHandle]


class WeakCache(Generic[K, P, V]):
    """Memoize ``value_factory(key, parameter)`` for as long as *key* lives.

    Parameters
    ----------
    sub_key_factory:
        ``(key, parameter) -> sub_key``; selects the slot within a key.
    value_factory:
        ``(key, parameter) -> value``; runs at most once per slot at a time.
    settings:
        Optional :class:`CacheSettings`; defaults apply when omitted.
    event_bus:
        Optional :class:`EventBus` receiving computation and expunge events.
    """

    def __init__(
        self,
        sub_key_factory: SubKeyFactory,
        value_factory: ValueFactory,
        *,
        settings: Optional[CacheSettings] = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        if sub_key_factory is None or not callable(sub_key_factory):
            raise InvalidArgumentError("sub_key_factory must be a callable")
        if value_factory is None or not callable(value_factory):
            raise InvalidArgumentError("value_factory must be a callable")
        self._sub_key_factory = sub_key_factory
        self._value_factory = value_factory
        self._settings = settings or CacheSettings()

        self._queue = ReclamationQueue()
        segments = self._settings.map_segments
        self._segments = segments
        self._map: ConcurrentMap[Any, _ValuesMap] = ConcurrentMap(segments)
        self._reverse_index: ConcurrentMap[Any, bool] = ConcurrentMap(segments)
        # Serializes draining with size() / contains_value() so that a
        # half-expunged key is never observed.
        self._expunge_lock = threading.Lock()

        self._stats = CacheStatsRecorder() if self._settings.record_stats else None
        self._events = event_bus if self._settings.publish_events else None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: Optional[K], parameter: P) -> V:
        """Look up, or compute and cache, the value for *key* / *parameter*.

        ``sub_key_factory`` always runs; ``value_factory`` runs only when the
        slot is empty or its value has been collected.

        Raises :class:`InvalidArgumentError` if *parameter* is ``None`` and
        :class:`NullComputationError` if either factory returns ``None``.
        Exceptions raised by ``value_factory`` propagate unchanged.
        """
        if parameter is None:
            raise InvalidArgumentError("parameter must not be None")
        sub_key = self._sub_key_factory(key, parameter)
        if sub_key is None:
            raise NullComputationError(f"sub_key_factory returned None for parameter {parameter!r}")

        self._expunge_stale_entries()

        cache_key = CacheKey.value_of(key, self._queue)
        values_map = self._map.get(cache_key)
        if values_map is None:
            fresh = _ValuesMap(self._segments)
            values_map = self._map.put_if_absent(cache_key, fresh)
            if values_map is None:
                values_map = fresh

        supplier: Optional[Supplier] = values_map.get(sub_key)
        factory: Optional[Factory] = None

        while True:
            if supplier is not None:
                # Either a Factory or a CacheValueHandle
                value = supplier.get()
                if value is not None:
                    if isinstance(supplier, CacheValueHandle):
                        self._record("hit")
                    return value
            # No supplier yet, a cleared CacheValueHandle, or a Factory that
            # did not install its value.

            if factory is None:
                factory = Factory(self, key, parameter, sub_key, values_map)

            if supplier is None:
                supplier = values_map.put_if_absent(sub_key, factory)
                if supplier is None:
                    supplier = factory
                # else retry with the winning supplier
            elif values_map.replace(sub_key, supplier, factory):
                if isinstance(supplier, CacheValueHandle):
                    self._reverse_index.pop(supplier)
                supplier = factory
            else:
                supplier = values_map.get(sub_key)

    def contains_value(self, value: V) -> bool:
        """``True`` if this exact *value* object is currently cached.

        Uses identity, regardless of any ``__eq__`` the value's type defines.
        """
        if value is None:
            raise InvalidArgumentError("value must not be None")
        with self._expunge_lock:
            expunged = self._drain_queue()
            found = LookupValue(value) in self._reverse_index
        self._announce(expunged)
        return found

    def size(self) -> int:
        """Number of cached values.

        Approximate: values collected while their key is still alive are
        counted until their slot is recomputed or the key is expunged.
        """
        with self._expunge_lock:
            expunged = self._drain_queue()
            count = len(self._reverse_index)
        self._announce(expunged)
        return count

    def __len__(self) -> int:
        return self.size()

    @property
    def stats(self) -> CacheStats:
        """Snapshot of the hit / miss counters (all zero when disabled)."""
        if self._stats is None:
            return CacheStats()
        return self._stats.snapshot()

    @property
    def reclamation_queue(self) -> ReclamationQueue:
        return self._queue

    def __repr__(self) -> str:
        return f"<WeakCache keys={len(self._map)} values={len(self._reverse_index)}>"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _expunge_stale_entries(self) -> None:
        if self._queue.empty:
            return
        with self._expunge_lock:
            expunged = self._drain_queue()
        self._announce(expunged)

    def _drain_queue(self) -> List[Tuple[str, int]]:
        # Caller holds the expunge lock
        expunged: List[Tuple[str, int]] = []
        while True:
            cache_key = self._queue.poll()
            if cache_key is None:
                break
            dropped = cache_key.expunge_from(self._map, self._reverse_index)
            expunged.append((repr(cache_key), dropped))
        if expunged:
            LOGGER.debug("Expunged %d collected key(s)", len(expunged))
            if self._stats is not None:
                self._stats.record_expunged(len(expunged))
        return expunged

    def _announce(self, expunged: List[Tuple[str, int]]) -> None:
        # Published outside the expunge lock so handlers may use the cache.
        for source, dropped in expunged:
            self._publish(KeyExpungedEvent(source=source, entry_count=dropped))

    def _record(self, outcome: str) -> None:
        if self._stats is None:
            return
        if outcome == "hit":
            self._stats.record_hit()
        elif outcome == "miss":
            self._stats.record_miss()
        else:
            self._stats.record_failure()

    def _publish(self, event: CacheEvent) -> None:
        if self._events is not None:
            self._events.publish(event)


class Factory(Generic[K, P, V]):
    """Placeholder for a value that is being, or failed to be, computed.

    Installed in an inner-map slot while ``value_factory`` runs.  Callers
    that find it there block on its lock and then either see the value it
    produced or, if it failed, an empty slot they retry on their own.
    """

    def __init__(
        self,
        cache: WeakCache[K, P, V],
        key: Optional[K],
        parameter: P,
        sub_key: Hashable,
        values_map: _ValuesMap,
    ) -> None:
        self._cache = cache
        self._key = key
        self._parameter = parameter
        self._sub_key = sub_key
        self._values_map = values_map
        # Reentrant so that a value_factory re-entering the cache for the
        # same slot fails loudly instead of deadlocking.
        self._lock = threading.RLock()

    def get(self) -> Optional[V]:
        with self._lock:
            if self._values_map.get(self._sub_key) is not self:
                # Replaced by a CacheValueHandle, or removed after a failure
                # while we waited: let WeakCache.get() retry.
                return None

            cache = self._cache
            started = time.perf_counter()
            try:
                value, handle = self._compute()
            except Exception as exc:
                LOGGER.warning("Value computation failed for sub-key %r: %s", self._sub_key, exc)
                cache._record("failure")
                cache._publish(ComputationFailedEvent(sub_key=self._sub_key, error=exc))
                raise

            cache._reverse_index.put(handle, True)
            if not self._values_map.replace(self._sub_key, self, handle):
                LOGGER.error("Factory for sub-key %r lost its slot while installed", self._sub_key)
                cache._reverse_index.pop(handle)
                raise ProtocolViolationError(
                    f"Factory for sub-key {self._sub_key!r} could not be replaced by its value"
                )
            if self._values_map.detached:
                # The key was expunged while we computed: nothing will ever
                # look this value up again.
                cache._reverse_index.pop(handle)

            duration = time.perf_counter() - started
            LOGGER.debug("Computed value for sub-key %r in %.3fs", self._sub_key, duration)
            cache._record("miss")
            cache._publish(ValueComputedEvent(sub_key=self._sub_key, duration_seconds=duration))
            return value

    def _compute(self):
        handle: Optional[CacheValueHandle] = None
        try:
            value = self._cache._value_factory(self._key, self._parameter)
            if value is None:
                raise NullComputationError(
                    f"value_factory returned None for sub-key {self._sub_key!r}"
                )
            handle = CacheValueHandle(value)
        finally:
            if handle is None:
                # Free the slot before the error reaches anyone, so waiters
                # retry on their own instead of sharing our failure.
                self._values_map.remove(self._sub_key, self)
        return value, handle

    def __repr__(self) -> str:
        return f"<Factory sub_key={self._sub_key!r}>"
