"""Thread-safe FIFO of cleared weak handles.

Handles are linked through their own ``_next`` attribute so that enqueueing
never allocates.  A handle's ``_queue`` attribute tracks where it is in its
life cycle:

* the owning :class:`ReclamationQueue` while it is registered but not yet
  cleared,
* :data:`ENQUEUED` while it sits in the queue,
* ``None`` when it never had a queue or has already been removed.

A removed handle points ``_next`` at itself, which lets :meth:`for_each`
notice that a concurrent poller overtook it.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Callable, Optional

from ..config import BLOCK_FOREVER
from ..errors import InterruptedWaitError, InvalidArgumentError

if TYPE_CHECKING:
    from .handle import WeakHandle

LOGGER = logging.getLogger(__name__)


class _EnqueuedMarker:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<ENQUEUED>"


ENQUEUED = _EnqueuedMarker()


class ReclamationQueue:
    """Delivery channel for weak handles whose referents were collected.

    The host (a weakref callback) is the producer; the cache's expunge step
    is the consumer and only ever uses the non-blocking :meth:`poll`.
    :meth:`remove` exists for callers that want to wait for clear events,
    e.g. diagnostics or tests.

    A :class:`threading.RLock` guards the list because a weakref callback
    may fire, and call :meth:`enqueue`, on a thread that is already inside
    one of the queue's methods.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._not_empty = threading.Condition(self._lock)
        self._head: Optional[WeakHandle] = None
        self._tail: Optional[WeakHandle] = None
        self._length = 0
        self._interrupts = 0

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def enqueue(self, handle: WeakHandle) -> bool:
        """Append *handle*; ``False`` if it is not registered here or is
        already enqueued."""
        with self._lock:
            if handle._queue is not self:
                return False
            handle._queue = ENQUEUED
            handle._next = None
            if self._tail is None:
                self._head = handle
            else:
                self._tail._next = handle
            self._tail = handle
            self._length += 1
            self._not_empty.notify_all()
            return True

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    def poll(self) -> Optional[WeakHandle]:
        """Pop the oldest handle, or return ``None`` if the queue is empty."""
        if self._head is None:
            return None
        with self._lock:
            return self._really_poll()

    def remove(self, timeout: float = BLOCK_FOREVER) -> Optional[WeakHandle]:
        """Block until a handle is available and pop it.

        *timeout* is in seconds; ``0`` waits indefinitely.  Returns ``None``
        when the deadline passes.  Raises :class:`InterruptedWaitError` if
        :meth:`interrupt` is called while waiting.
        """
        if timeout < 0:
            raise InvalidArgumentError(f"Negative timeout value: {timeout}")
        with self._lock:
            handle = self._really_poll()
            if handle is not None:
                return handle
            generation = self._interrupts
            deadline = None if timeout == BLOCK_FOREVER else time.monotonic() + timeout
            while True:
                if deadline is None:
                    self._not_empty.wait()
                else:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return None
                    self._not_empty.wait(remaining)
                if self._interrupts != generation:
                    raise InterruptedWaitError("Wait on reclamation queue was interrupted")
                handle = self._really_poll()
                if handle is not None:
                    return handle

    def interrupt(self) -> None:
        """Wake every thread blocked in :meth:`remove` with an error."""
        with self._lock:
            LOGGER.debug("Interrupting waiters on %r", self)
            self._interrupts += 1
            self._not_empty.notify_all()

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def for_each(self, visitor: Callable[[WeakHandle], None]) -> None:
        """Call *visitor* on every queued handle without removing any.

        The traversal does not hold the lock, so handles may be polled away
        underneath it.  When that happens it restarts from the current head,
        which in a FIFO is always past the handle it just lost.
        """
        handle = self._head
        while handle is not None:
            visitor(handle)
            following = handle._next
            if following is handle:
                # Dequeued while we were looking at it
                handle = self._head
            else:
                handle = following

    @property
    def empty(self) -> bool:
        """Lock-free emptiness check; may be stale by the time it returns."""
        return self._head is None

    def __len__(self) -> int:
        with self._lock:
            return self._length

    def __repr__(self) -> str:
        return f"<ReclamationQueue length={self._length}>"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _really_poll(self) -> Optional[WeakHandle]:
        # Caller holds the lock
        handle = self._head
        if handle is None:
            return None
        self._head = handle._next
        if self._head is None:
            self._tail = None
        handle._next = handle
        handle._queue = None
        self._length -= 1
        return handle
