"""Concurrent two-level cache with weakly held keys and values."""

from .cache import WeakCache
from .errors import (
    InterruptedWaitError,
    InvalidArgumentError,
    NullComputationError,
    ProtocolViolationError,
    WeakCacheError,
)
from .ref import ReclamationQueue, WeakHandle
from .settings import CacheSettings, load_settings
from .stats import CacheStats

__version__ = "0.1.0"

__all__ = [
    "CacheSettings",
    "CacheStats",
    "InterruptedWaitError",
    "InvalidArgumentError",
    "NullComputationError",
    "ProtocolViolationError",
    "ReclamationQueue",
    "WeakCache",
    "WeakCacheError",
    "WeakHandle",
    "load_settings",
]
