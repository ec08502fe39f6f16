from .manager import CacheSettings, default_settings_path, load_settings
from .schema import DEFAULT_SETTINGS, SETTINGS_SCHEMA, merge_with_defaults, validate_settings

__all__ = [
    "CacheSettings",
    "DEFAULT_SETTINGS",
    "SETTINGS_SCHEMA",
    "default_settings_path",
    "load_settings",
    "merge_with_defaults",
    "validate_settings",
]
