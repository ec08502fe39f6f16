from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4


@dataclass(frozen=True)
class CacheEvent:
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)
    source: str = ""


@dataclass(frozen=True)
class ValueComputedEvent(CacheEvent):
    sub_key: Any = None
    duration_seconds: float = 0.0


@dataclass(frozen=True)
class ComputationFailedEvent(CacheEvent):
    sub_key: Any = None
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class KeyExpungedEvent(CacheEvent):
    entry_count: int = 0
