"""Schema helpers for weakcache settings."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import DEFAULT_MAP_SEGMENTS, MAX_MAP_SEGMENTS, SETTINGS_SCHEMA_ID

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "weakcache/settings.schema.json",
    "type": "object",
    "required": ["schema", "map_segments", "record_stats", "publish_events"],
    "properties": {
        "schema": {"const": SETTINGS_SCHEMA_ID},
        "map_segments": {
            "type": "integer",
            "minimum": 1,
            "maximum": MAX_MAP_SEGMENTS,
        },
        "record_stats": {"type": "boolean"},
        "publish_events": {"type": "boolean"},
    },
    "additionalProperties": False,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": SETTINGS_SCHEMA_ID,
    "map_segments": DEFAULT_MAP_SEGMENTS,
    "record_stats": True,
    "publish_events": True,
}

_validator = Draft202012Validator(SETTINGS_SCHEMA)


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        merged.update(data)
    _validator.validate(merged)
    return merged


def validate_settings(data: dict[str, Any]) -> None:
    """Validate *data* against the settings schema."""

    _validator.validate(data)


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults", "validate_settings"]
