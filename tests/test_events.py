import time
from dataclasses import dataclass

from weakcache.events import CacheEvent, EventBus, KeyExpungedEvent, ValueComputedEvent


@dataclass(frozen=True)
class SimpleEvent(CacheEvent):
    payload: str = ""


def test_sync_subscribe_publish():
    bus = EventBus()
    received = []

    bus.subscribe(SimpleEvent, lambda event: received.append(event.payload))
    bus.publish(SimpleEvent(payload="hello"))

    assert received == ["hello"]


def test_async_subscribe_publish():
    bus = EventBus()
    received = []

    def handler(event: SimpleEvent):
        time.sleep(0.05)
        received.append(event.payload)

    bus.subscribe(SimpleEvent, handler, async_=True)
    bus.publish(SimpleEvent(payload="world"))
    bus.shutdown()

    assert received == ["world"]


def test_base_class_subscription_receives_subclasses():
    bus = EventBus()
    received = []

    bus.subscribe(CacheEvent, received.append)
    bus.publish(ValueComputedEvent(sub_key=1))
    bus.publish(KeyExpungedEvent(entry_count=2))

    assert [type(event) for event in received] == [ValueComputedEvent, KeyExpungedEvent]


def test_unsubscribe():
    bus = EventBus()
    received = []

    sub = bus.subscribe(SimpleEvent, received.append)
    bus.unsubscribe(sub)
    bus.publish(SimpleEvent())

    assert received == []
    assert sub.active is False


def test_cancelled_subscription_is_skipped():
    bus = EventBus()
    received = []

    sub = bus.subscribe(SimpleEvent, received.append)
    sub.cancel()
    bus.publish(SimpleEvent())

    assert received == []


def test_failing_handler_does_not_block_others():
    bus = EventBus()
    received = []

    def bad(event):
        raise ValueError("boom")

    bus.subscribe(SimpleEvent, bad)
    bus.subscribe(SimpleEvent, received.append)
    bus.publish(SimpleEvent(payload="x"))

    assert len(received) == 1


def test_publish_async_returns_futures():
    bus = EventBus()
    received = []

    bus.subscribe(SimpleEvent, received.append)
    futures = bus.publish_async(SimpleEvent(payload="f"))
    for future in futures:
        future.result(timeout=1)
    bus.shutdown()

    assert len(futures) == 1
    assert received[0].payload == "f"


def test_events_have_unique_ids():
    assert SimpleEvent().event_id != SimpleEvent().event_id
