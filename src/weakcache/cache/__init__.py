from .concurrent_map import ConcurrentMap
from .keys import NULL_KEY, CacheKey
from .values import CacheValueHandle, LookupValue, Value
from .weak_cache import Factory, WeakCache

__all__ = [
    "CacheKey",
    "CacheValueHandle",
    "ConcurrentMap",
    "Factory",
    "LookupValue",
    "NULL_KEY",
    "Value",
    "WeakCache",
]
