"""Tests for ReclamationQueue: FIFO of cleared weak handles."""

from __future__ import annotations

import gc
import threading
import time

import pytest

from weakcache.errors import InterruptedWaitError, InvalidArgumentError
from weakcache.ref import ReclamationQueue, WeakHandle


class _Referent:
    def __init__(self, name: str = "r"):
        self.name = name


def _enqueued_handles(queue: ReclamationQueue, count: int) -> list[WeakHandle]:
    keep = [_Referent(str(i)) for i in range(count)]
    handles = [WeakHandle(obj, queue) for obj in keep]
    for handle in handles:
        assert handle.enqueue()
    return handles


class TestEnqueue:
    def test_enqueue_and_poll_fifo(self):
        queue = ReclamationQueue()
        handles = _enqueued_handles(queue, 3)
        assert len(queue) == 3
        assert [queue.poll() for _ in range(3)] == handles
        assert queue.poll() is None
        assert len(queue) == 0

    def test_enqueue_is_idempotent(self):
        queue = ReclamationQueue()
        obj = _Referent()
        handle = WeakHandle(obj, queue)
        assert queue.enqueue(handle) is True
        assert queue.enqueue(handle) is False
        assert len(queue) == 1

    def test_dequeued_handle_cannot_be_requeued(self):
        queue = ReclamationQueue()
        obj = _Referent()
        handle = WeakHandle(obj, queue)
        queue.enqueue(handle)
        assert queue.poll() is handle
        assert queue.enqueue(handle) is False
        assert handle.is_enqueued() is False

    def test_handle_without_queue_is_rejected(self):
        queue = ReclamationQueue()
        obj = _Referent()
        handle = WeakHandle(obj)
        assert queue.enqueue(handle) is False
        assert queue.poll() is None

    def test_handle_of_other_queue_is_rejected(self):
        queue = ReclamationQueue()
        other = ReclamationQueue()
        obj = _Referent()
        handle = WeakHandle(obj, other)
        assert queue.enqueue(handle) is False
        assert other.enqueue(handle) is True

    def test_empty_property(self):
        queue = ReclamationQueue()
        assert queue.empty
        handles = _enqueued_handles(queue, 1)
        assert not queue.empty
        queue.poll()
        assert queue.empty


class TestRemove:
    def test_remove_returns_available_item(self):
        queue = ReclamationQueue()
        handles = _enqueued_handles(queue, 1)
        assert queue.remove(0.5) is handles[0]

    def test_remove_times_out(self):
        queue = ReclamationQueue()
        started = time.monotonic()
        assert queue.remove(0.05) is None
        assert time.monotonic() - started >= 0.04

    def test_negative_timeout_rejected(self):
        queue = ReclamationQueue()
        with pytest.raises(InvalidArgumentError):
            queue.remove(-1)

    def test_negative_timeout_is_value_error(self):
        with pytest.raises(ValueError):
            ReclamationQueue().remove(-0.5)

    def test_remove_blocks_until_collection(self):
        queue = ReclamationQueue()
        obj = _Referent()
        handle = WeakHandle(obj, queue)
        result: list = []

        def waiter():
            result.append(queue.remove())

        thread = threading.Thread(target=waiter)
        thread.start()
        time.sleep(0.05)
        del obj
        gc.collect()
        thread.join(timeout=2)
        assert not thread.is_alive()
        assert result == [handle]

    def test_interrupt_wakes_waiter_with_error(self):
        queue = ReclamationQueue()
        errors: list = []
        waiting = threading.Event()

        def waiter():
            waiting.set()
            try:
                queue.remove()
            except InterruptedWaitError as exc:
                errors.append(exc)

        thread = threading.Thread(target=waiter)
        thread.start()
        waiting.wait(1)
        time.sleep(0.05)
        queue.interrupt()
        thread.join(timeout=2)
        assert not thread.is_alive()
        assert len(errors) == 1

    def test_queue_usable_after_interrupt(self):
        queue = ReclamationQueue()
        queue.interrupt()
        handles = _enqueued_handles(queue, 1)
        assert queue.remove(0.5) is handles[0]


class TestForEach:
    def test_visits_in_order_without_removing(self):
        queue = ReclamationQueue()
        handles = _enqueued_handles(queue, 4)
        seen: list = []
        queue.for_each(seen.append)
        assert seen == handles
        assert len(queue) == 4

    def test_empty_queue(self):
        seen: list = []
        ReclamationQueue().for_each(seen.append)
        assert seen == []

    def test_tolerates_concurrent_draining(self):
        queue = ReclamationQueue()
        handles = _enqueued_handles(queue, 5)
        seen: list = []

        def visitor(handle):
            seen.append(handle)
            # Drain the handle being visited and the one after it
            queue.poll()
            queue.poll()

        queue.for_each(visitor)
        assert seen == [handles[0], handles[2], handles[4]]
        assert len(queue) == 0
