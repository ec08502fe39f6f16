"""Tests for settings schema validation and file loading."""

from __future__ import annotations

import json

import pytest
from jsonschema import ValidationError

from weakcache.config import DEFAULT_MAP_SEGMENTS, SETTINGS_ENV_VAR
from weakcache.errors import SettingsLoadError, SettingsValidationError
from weakcache.settings import (
    DEFAULT_SETTINGS,
    CacheSettings,
    default_settings_path,
    load_settings,
    merge_with_defaults,
    validate_settings,
)


class TestSchema:
    def test_defaults_are_valid(self):
        validate_settings(DEFAULT_SETTINGS)

    def test_merge_overrides(self):
        merged = merge_with_defaults({"map_segments": 4})
        assert merged["map_segments"] == 4
        assert merged["record_stats"] is True

    def test_merge_none(self):
        assert merge_with_defaults(None) == DEFAULT_SETTINGS

    def test_merge_does_not_mutate_defaults(self):
        merge_with_defaults({"record_stats": False})
        assert DEFAULT_SETTINGS["record_stats"] is True

    @pytest.mark.parametrize(
        "override",
        [
            {"map_segments": 0},
            {"map_segments": 1000},
            {"map_segments": "8"},
            {"record_stats": "yes"},
            {"schema": "weakcache/settings@2"},
            {"unknown": 1},
        ],
    )
    def test_invalid_values_rejected(self, override):
        with pytest.raises(ValidationError):
            merge_with_defaults(override)


class TestCacheSettings:
    def test_defaults(self):
        settings = CacheSettings()
        assert settings.map_segments == DEFAULT_MAP_SEGMENTS
        assert settings.record_stats is True
        assert settings.publish_events is True

    def test_from_mapping(self):
        settings = CacheSettings.from_mapping({"map_segments": 2, "publish_events": False})
        assert settings.map_segments == 2
        assert settings.publish_events is False

    def test_from_mapping_invalid(self):
        with pytest.raises(SettingsValidationError):
            CacheSettings.from_mapping({"map_segments": -1})


class TestLoadSettings:
    def test_explicit_path(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"map_segments": 3}), encoding="utf-8")
        assert load_settings(path).map_segments == 3

    def test_missing_explicit_path(self, tmp_path):
        with pytest.raises(SettingsLoadError):
            load_settings(tmp_path / "absent.json")

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SettingsLoadError):
            load_settings(path)

    def test_non_object_payload(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(SettingsValidationError):
            load_settings(path)

    def test_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "env.json"
        path.write_text(json.dumps({"record_stats": False}), encoding="utf-8")
        monkeypatch.setenv(SETTINGS_ENV_VAR, str(path))
        assert load_settings().record_stats is False

    def test_defaults_when_no_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv(SETTINGS_ENV_VAR, raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        monkeypatch.setenv("APPDATA", str(tmp_path))
        monkeypatch.setenv("HOME", str(tmp_path))
        assert load_settings() == CacheSettings()

    def test_default_path_ends_with_file_name(self):
        assert default_settings_path().name == "settings.json"
