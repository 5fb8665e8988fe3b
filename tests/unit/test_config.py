"""Test Settings loading and layout paths."""

from pathlib import Path

import pytest

from sketchware_customs.core.config import Settings, load_settings
from sketchware_customs.core.errors import ConfigError


class TestSettingsDefaults:
    def test_default_settings(self):
        settings = Settings()
        assert settings.sketchware_dir == Path.home() / ".sketchware"
        assert settings.write_through is False
        assert settings.missing_ok is True
        assert settings.io_workers == 4

    def test_layout_paths(self, tmp_path):
        settings = Settings(sketchware_dir=tmp_path)
        assert settings.events_path == tmp_path / "data/system/events.json"
        assert settings.listeners_path == tmp_path / "data/system/listeners.json"
        assert settings.menus_path == tmp_path / "resources/block/Menu Block/block.json"

    def test_io_workers_must_be_positive(self):
        with pytest.raises(ValueError):
            Settings(io_workers=0)


class TestEnvironmentOverrides:
    def test_env_prefix(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SKETCHWARE_SKETCHWARE_DIR", str(tmp_path))
        monkeypatch.setenv("SKETCHWARE_WRITE_THROUGH", "true")
        settings = Settings()
        assert settings.sketchware_dir == tmp_path
        assert settings.write_through is True

    def test_nested_env(self, monkeypatch):
        monkeypatch.setenv("SKETCHWARE_OBSERVABILITY__LOG_LEVEL", "DEBUG")
        assert Settings().observability.log_level == "DEBUG"


class TestLoadSettings:
    def test_load_toml(self, tmp_path):
        config = tmp_path / "customs.toml"
        config.write_text(
            'sketchware_dir = "/sdcard/.sketchware"\n'
            "io_workers = 2\n"
            "[layout]\n"
            'menus_file = "menus.json"\n'
        )
        settings = load_settings(config)
        assert settings.sketchware_dir == Path("/sdcard/.sketchware")
        assert settings.io_workers == 2
        assert settings.menus_path == Path("/sdcard/.sketchware/menus.json")
        assert settings.layout.events_file == "events.json"

    def test_overrides_win(self, tmp_path):
        config = tmp_path / "customs.toml"
        config.write_text("write_through = false\n")
        settings = load_settings(config, overrides={"write_through": True})
        assert settings.write_through is True

    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "absent.toml")
        assert settings.io_workers == 4

    def test_malformed_toml_raises(self, tmp_path):
        config = tmp_path / "broken.toml"
        config.write_text("io_workers = = 2\n")
        with pytest.raises(ConfigError, match="Malformed"):
            load_settings(config)
