from .bus import EventBus, Subscription
from .cache_events import (
    CacheEvent,
    ComputationFailedEvent,
    KeyExpungedEvent,
    ValueComputedEvent,
)

__all__ = [
    "CacheEvent",
    "ComputationFailedEvent",
    "EventBus",
    "KeyExpungedEvent",
    "Subscription",
    "ValueComputedEvent",
]
