"""Default configuration values for weakcache."""

from __future__ import annotations

from typing import Final

# Number of lock stripes in every ``ConcurrentMap`` the cache creates.  The
# outer map, each inner map and the reverse index all get their own stripes,
# so contention only happens between threads whose keys hash alike.
DEFAULT_MAP_SEGMENTS: Final[int] = 16
MAX_MAP_SEGMENTS: Final[int] = 256

SETTINGS_SCHEMA_ID: Final[str] = "weakcache/settings@1"
SETTINGS_FILE_NAME: Final[str] = "settings.json"
SETTINGS_DIR_NAME: Final[str] = "weakcache"

# Environment variable pointing at a settings JSON file.  Consulted by
# ``load_settings`` when no explicit path is given.
SETTINGS_ENV_VAR: Final[str] = "WEAKCACHE_SETTINGS"

# ``ReclamationQueue.remove`` treats this timeout as "wait forever".
BLOCK_FOREVER: Final[float] = 0.0
