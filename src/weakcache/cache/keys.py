"""Weakly-held, identity-compared keys for the outer cache map."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, TypeVar, Union

from ..ref import ReclamationQueue, WeakHandle

if TYPE_CHECKING:
    from .concurrent_map import ConcurrentMap

LOGGER = logging.getLogger(__name__)

K = TypeVar("K")


class _NullKey:
    """Strong stand-in for a ``None`` key, which cannot be weakly referenced."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<NULL_KEY>"


NULL_KEY = _NullKey()


class CacheKey(WeakHandle[K]):
    """Weak handle over a cache key, registered on the cache's queue.

    Hashing and equality use the key's identity, captured at construction,
    so the key type's own ``__eq__``/``__hash__`` never come into play.  A
    cleared ``CacheKey`` equals only itself: once its key is gone, a new
    ``CacheKey`` built for an unrelated object that happens to reuse the
    same ``id`` can never match the dying entry.
    """

    def __init__(self, key: K, queue: ReclamationQueue) -> None:
        super().__init__(key, queue)
        self._hash = id(key)

    @classmethod
    def value_of(cls, key: Optional[K], queue: ReclamationQueue) -> Union["CacheKey[K]", _NullKey]:
        if key is None:
            return NULL_KEY
        return cls(key, queue)

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other: Any) -> bool:
        if other is self:
            return True
        if type(other) is not type(self):
            return False
        key = self.get()
        return key is not None and key is other.get()

    def __ne__(self, other: Any) -> bool:
        return not self.__eq__(other)

    def expunge_from(self, outer_map: "ConcurrentMap", reverse_index: "ConcurrentMap") -> int:
        """Drop this key's inner map and its values from *reverse_index*.

        Removing by this key alone is safe: after it was cleared it equals
        nothing but itself.  Returns the number of slots that were dropped.
        """
        values_map = outer_map.pop(self)
        if values_map is None:
            return 0
        # Factories still running against this map check the flag after
        # installing their value and withdraw it from the reverse index.
        values_map.detached = True
        suppliers = values_map.values()
        for supplier in suppliers:
            reverse_index.pop(supplier)
        LOGGER.debug("Expunged %d cached slot(s) for %r", len(suppliers), self)
        return len(suppliers)
