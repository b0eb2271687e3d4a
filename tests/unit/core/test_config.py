# tests/unit/core/test_config.py
"""Tests for settings schema and loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from globalconf.core.config import DatabaseSettings, GlobalConfSettings, load_settings


class TestSettingsSchema:
    def test_defaults(self) -> None:
        settings = GlobalConfSettings()
        assert settings.database.url == "sqlite:///./state/globalconf.db"
        assert settings.logging.level == "INFO"
        assert settings.version.action_count == 53

    def test_rejects_non_url_database(self) -> None:
        with pytest.raises(ValidationError, match="SQLAlchemy URL"):
            DatabaseSettings(url="./state/globalconf.db")

    def test_settings_are_frozen(self) -> None:
        settings = GlobalConfSettings()
        with pytest.raises(ValidationError):
            settings.database = DatabaseSettings()  # type: ignore[misc]


class TestLoadSettings:
    def test_loads_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text(
            "database:\n"
            "  url: sqlite:///./fleet.db\n"
            "version:\n"
            "  package_version: '25.09.0'\n"
            "  minor_version: 7\n"
        )

        settings = load_settings(path)

        assert settings.database.url == "sqlite:///./fleet.db"
        assert settings.version.package_version == "25.09.0"
        assert settings.version.minor_version == 7
        # Unset sections fall back to schema defaults
        assert settings.version.schema_version == "20.33.0"
        assert settings.logging.level == "INFO"

    def test_environment_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("version:\n  package_version: '25.09.0'\n")
        monkeypatch.setenv("GLOBALCONF_LOGGING__LEVEL", "DEBUG")

        settings = load_settings(path)

        assert settings.logging.level == "DEBUG"
        assert settings.version.package_version == "25.09.0"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml")

    def test_invalid_value(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("logging:\n  level: LOUD\n")
        with pytest.raises(ValidationError):
            load_settings(path)
