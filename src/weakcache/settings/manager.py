"""Locate, load and validate weakcache settings files."""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from jsonschema import ValidationError

from ..config import (
    DEFAULT_MAP_SEGMENTS,
    SETTINGS_DIR_NAME,
    SETTINGS_ENV_VAR,
    SETTINGS_FILE_NAME,
)
from ..errors import SettingsLoadError, SettingsValidationError
from .schema import merge_with_defaults

LOGGER = logging.getLogger(__name__)


def default_settings_path() -> Path:
    """Return the default settings.json location for the current platform."""

    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / SETTINGS_DIR_NAME / SETTINGS_FILE_NAME
        return Path.home() / "AppData" / "Roaming" / SETTINGS_DIR_NAME / SETTINGS_FILE_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / SETTINGS_DIR_NAME / SETTINGS_FILE_NAME
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / SETTINGS_DIR_NAME / SETTINGS_FILE_NAME
    return Path.home() / ".config" / SETTINGS_DIR_NAME / SETTINGS_FILE_NAME


@dataclass(frozen=True)
class CacheSettings:
    """Validated, immutable view of the settings a cache runs with."""

    map_segments: int = DEFAULT_MAP_SEGMENTS
    record_stats: bool = True
    publish_events: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "CacheSettings":
        """Merge *data* with the defaults, validate, and build settings.

        Raises :class:`SettingsValidationError` when the result does not
        match the schema.
        """
        try:
            merged = merge_with_defaults(dict(data) if data else None)
        except ValidationError as exc:
            raise SettingsValidationError(exc.message) from exc
        return cls(
            map_segments=merged["map_segments"],
            record_stats=merged["record_stats"],
            publish_events=merged["publish_events"],
        )


def load_settings(path: Path | None = None) -> CacheSettings:
    """Load settings from *path*, ``$WEAKCACHE_SETTINGS`` or the default file.

    An explicitly requested file (argument or environment variable) must
    exist.  The platform default file is optional; without it the built-in
    defaults apply.
    """

    explicit = path
    if explicit is None and os.environ.get(SETTINGS_ENV_VAR):
        explicit = Path(os.environ[SETTINGS_ENV_VAR])

    if explicit is not None:
        if not explicit.exists():
            raise SettingsLoadError(f"Settings file not found: {explicit}")
        source = explicit
    else:
        source = default_settings_path()
        if not source.exists():
            LOGGER.debug("No settings file at %s; using defaults", source)
            return CacheSettings()

    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise SettingsLoadError(f"Could not read {source}: {exc}") from exc
    if not isinstance(payload, dict):
        raise SettingsValidationError(f"{source} must contain a JSON object")
    LOGGER.debug("Loaded settings from %s", source)
    return CacheSettings.from_mapping(payload)
