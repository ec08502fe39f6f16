"""Striped-lock associative map with atomic conditional updates."""

from __future__ import annotations

import threading
from typing import Any, Dict, Generic, Hashable, List, Optional, Tuple, TypeVar

from ..config import DEFAULT_MAP_SEGMENTS

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING: Any = object()


class _Segment:
    __slots__ = ("lock", "data")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.data: Dict[Any, Any] = {}


class ConcurrentMap(Generic[K, V]):
    """Thread-safe map offering ``put_if_absent`` and compare-and-replace.

    Keys are spread over *segments* independent dicts, each guarded by its
    own :class:`threading.Lock`, so writers only contend when their keys land
    in the same segment.  Conditional operations compare the current value by
    identity (``is``), never by ``==``.

    Values must not be ``None``: ``get`` and ``put_if_absent`` use ``None``
    to mean "no mapping".
    """

    def __init__(self, segments: int = DEFAULT_MAP_SEGMENTS) -> None:
        self._segments = [_Segment() for _ in range(max(1, segments))]

    def _segment_for(self, key: K) -> _Segment:
        return self._segments[hash(key) % len(self._segments)]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: K) -> Optional[V]:
        segment = self._segment_for(key)
        with segment.lock:
            return segment.data.get(key)

    def __contains__(self, key: object) -> bool:
        segment = self._segment_for(key)  # type: ignore[arg-type]
        with segment.lock:
            return key in segment.data

    def __len__(self) -> int:
        total = 0
        for segment in self._segments:
            with segment.lock:
                total += len(segment.data)
        return total

    def values(self) -> List[V]:
        """Snapshot of the values, segment by segment."""
        result: List[V] = []
        for segment in self._segments:
            with segment.lock:
                result.extend(segment.data.values())
        return result

    def items(self) -> List[Tuple[K, V]]:
        result: List[Tuple[K, V]] = []
        for segment in self._segments:
            with segment.lock:
                result.extend(segment.data.items())
        return result

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put(self, key: K, value: V) -> Optional[V]:
        """Map *key* to *value*; return the previous value, if any."""
        segment = self._segment_for(key)
        with segment.lock:
            previous = segment.data.get(key)
            segment.data[key] = value
            return previous

    def put_if_absent(self, key: K, value: V) -> Optional[V]:
        """Insert *value* unless *key* is mapped.

        Returns ``None`` when *value* was inserted, otherwise the value that
        was already present.
        """
        segment = self._segment_for(key)
        with segment.lock:
            current = segment.data.get(key)
            if current is None:
                segment.data[key] = value
            return current

    def replace(self, key: K, expected: V, value: V) -> bool:
        """Swap *expected* for *value* if *key* currently maps to *expected*."""
        segment = self._segment_for(key)
        with segment.lock:
            if segment.data.get(key) is not expected:
                return False
            segment.data[key] = value
            return True

    def remove(self, key: K, expected: V = _MISSING) -> bool:
        """Delete *key*; with *expected*, only if it maps to that object."""
        segment = self._segment_for(key)
        with segment.lock:
            if key not in segment.data:
                return False
            if expected is not _MISSING and segment.data[key] is not expected:
                return False
            del segment.data[key]
            return True

    def pop(self, key: K) -> Optional[V]:
        """Delete *key* and return the value it mapped to, or ``None``."""
        segment = self._segment_for(key)
        with segment.lock:
            return segment.data.pop(key, None)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} size={len(self)} segments={len(self._segments)}>"
