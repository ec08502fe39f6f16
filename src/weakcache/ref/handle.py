"""Weak handle over a referent, optionally reporting its collection.

A :class:`WeakHandle` wraps a :class:`weakref.ref`.  When the garbage
collector reclaims the referent, the weakref callback marks the handle as
cleared and, if the handle was registered with a :class:`ReclamationQueue`,
appends it there so that the owner can clean up whatever was keyed on it.
"""

from __future__ import annotations

import weakref
from typing import Callable, Generic, Optional, TypeVar

from .queue import ENQUEUED, ReclamationQueue

T = TypeVar("T")


def _collected_callback(handle: "WeakHandle") -> Callable[[weakref.ref], None]:
    # The callback must not keep the handle alive: a handle that is itself
    # garbage should vanish quietly instead of being enqueued.
    handle_ref = weakref.ref(handle)

    def _collected(_ref: weakref.ref) -> None:
        owner = handle_ref()
        if owner is not None:
            owner._referent_collected()

    return _collected


class WeakHandle(Generic[T]):
    """Weak reference with clear / enqueue-on-collect semantics.

    Parameters
    ----------
    referent:
        The object to reference.  Must support weak references, otherwise
        :class:`TypeError` is raised (e.g. plain ``int``, ``str``, ``tuple``).
    queue:
        Optional queue the handle is appended to once the referent has been
        collected.
    """

    def __init__(self, referent: T, queue: Optional[ReclamationQueue] = None) -> None:
        self._ref: Optional[weakref.ref] = weakref.ref(referent, _collected_callback(self))
        self._queue = queue
        self._next: Optional[WeakHandle] = None

    def get(self) -> Optional[T]:
        """Return the referent, or ``None`` once it has been cleared."""
        ref = self._ref
        if ref is None:
            return None
        return ref()

    def clear(self) -> None:
        """Drop the referent without enqueuing the handle."""
        # Releasing the weakref also cancels its pending callback.
        self._ref = None

    def is_cleared(self) -> bool:
        return self.get() is None

    def is_enqueued(self) -> bool:
        """``True`` while the handle sits in its reclamation queue."""
        return self._queue is ENQUEUED

    def enqueue(self) -> bool:
        """Clear the referent and push the handle onto its queue.

        Returns ``False`` when the handle has no queue, or has already been
        enqueued once.
        """
        self.clear()
        queue = self._queue
        if not isinstance(queue, ReclamationQueue):
            return False
        return queue.enqueue(self)

    def _referent_collected(self) -> None:
        self._ref = None
        queue = self._queue
        if isinstance(queue, ReclamationQueue):
            queue.enqueue(self)

    def __repr__(self) -> str:
        state = "enqueued" if self.is_enqueued() else ("cleared" if self.is_cleared() else "active")
        return f"<{type(self).__name__} {state} at {id(self):#x}>"
