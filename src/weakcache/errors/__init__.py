"""Custom exception hierarchy for weakcache."""

from __future__ import annotations


class WeakCacheError(Exception):
    """Base class for all custom errors raised by weakcache."""


# --- Caller errors ---

class InvalidArgumentError(WeakCacheError, ValueError):
    """Raised when a caller passes ``None`` or an out-of-range argument."""


# --- Computation errors ---

class NullComputationError(WeakCacheError):
    """Raised when a sub-key or value factory produces ``None``."""


class ProtocolViolationError(WeakCacheError):
    """Raised when an installed factory cannot be replaced by its value.

    This signals a broken concurrency invariant inside the cache, not a
    caller mistake.
    """


# --- Queue errors ---

class InterruptedWaitError(WeakCacheError):
    """Raised in a thread blocked on ``ReclamationQueue.remove`` when the
    queue is interrupted."""


# --- Settings errors ---

class SettingsError(WeakCacheError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""


__all__ = [
    "InterruptedWaitError",
    "InvalidArgumentError",
    "NullComputationError",
    "ProtocolViolationError",
    "SettingsError",
    "SettingsLoadError",
    "SettingsValidationError",
    "WeakCacheError",
]
