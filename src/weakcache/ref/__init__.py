from .handle import WeakHandle
from .queue import ENQUEUED, ReclamationQueue

__all__ = [
    "ENQUEUED",
    "ReclamationQueue",
    "WeakHandle",
]
