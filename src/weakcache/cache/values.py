"""Identity-compared wrappers around cached values."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from ..ref import WeakHandle

V = TypeVar("V")


class Value(ABC, Generic[V]):
    """A value supplier whose equality is the identity of its referent."""

    __slots__ = ()

    @abstractmethod
    def get(self) -> Optional[V]:
        """Return the referent, or ``None`` once it has been collected."""


class LookupValue(Value[V]):
    """Strong, throw-away probe used by ``WeakCache.contains_value``.

    Avoids building a full weak handle just to ask the reverse index
    whether a value is present.
    """

    __slots__ = ("_value",)

    def __init__(self, value: V) -> None:
        self._value = value

    def get(self) -> V:
        return self._value

    def __hash__(self) -> int:
        return id(self._value)

    def __eq__(self, other: Any) -> bool:
        return other is self or (isinstance(other, Value) and self._value is other.get())

    def __ne__(self, other: Any) -> bool:
        return not self.__eq__(other)


class CacheValueHandle(WeakHandle[V], Value[V]):
    """Weak handle over a cached value; the entry stored in the reverse index.

    A cleared handle equals only itself, so it can still be removed from the
    reverse index by identity after its value is gone.
    """

    def __init__(self, value: V) -> None:
        super().__init__(value)
        self._hash = id(value)

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other: Any) -> bool:
        if other is self:
            return True
        if not isinstance(other, Value):
            return False
        value = self.get()
        return value is not None and value is other.get()

    def __ne__(self, other: Any) -> bool:
        return not self.__eq__(other)
