"""Unit tests for settings loading and saving."""

import tomllib
from pathlib import Path

import pytest
import typer
from extsync.core.config import (
    Messages,
    Settings,
    SettingsError,
    SettingsNotFoundError,
    SettingsParseError,
    load_settings,
    require_settings,
    save_settings,
)


class TestSettingsModel:
    """Tests for the Settings model."""

    def test_defaults(self) -> None:
        """Default settings match the documented values."""
        settings = Settings()

        assert settings.name == "Bundler"
        assert settings.update_interval_days == 1.0
        assert settings.disable_value_name == "disable"
        assert settings.default_min_version == "15.0"
        assert settings.default_max_version == "16.0"
        assert settings.messages == Messages()

    def test_effective_sub_key_defaults_to_name(self) -> None:
        """Without an override the product name is the store key."""
        assert Settings(name="Product").effective_sub_key == "Product"
        assert Settings(name="Product", registry_sub_key="Other").effective_sub_key == "Other"

    def test_effective_paths_override(self, tmp_path: Path) -> None:
        """Explicit paths win over the XDG defaults."""
        settings = Settings(
            feed_cache_path=tmp_path / "feed.json",
            ledger_path=tmp_path / "ledger.log",
            downloads_dir=tmp_path / "dl",
        )

        assert settings.effective_feed_cache_path == tmp_path / "feed.json"
        assert settings.effective_ledger_path == tmp_path / "ledger.log"
        assert settings.effective_downloads_dir == tmp_path / "dl"

    def test_negative_interval_rejected(self) -> None:
        """The update interval cannot be negative."""
        with pytest.raises(ValueError):
            Settings(update_interval_days=-1)

    def test_unknown_fields_rejected(self) -> None:
        """Typos in settings are reported."""
        with pytest.raises(ValueError):
            Settings(feed="x")  # type: ignore[call-arg]


class TestLoadSettings:
    """Tests for load_settings."""

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises SettingsNotFoundError."""
        with pytest.raises(SettingsNotFoundError):
            load_settings(tmp_path / "config.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises SettingsParseError."""
        path = tmp_path / "config.toml"
        path.write_text("name = [")

        with pytest.raises(SettingsParseError):
            load_settings(path)

    def test_invalid_content(self, tmp_path: Path) -> None:
        """Schema violations raise SettingsError."""
        path = tmp_path / "config.toml"
        path.write_text("update_interval_days = -2\n")

        with pytest.raises(SettingsError, match="Invalid settings content"):
            load_settings(path)

    def test_messages_table(self, tmp_path: Path) -> None:
        """Messages can be overridden from a [messages] table."""
        path = tmp_path / "config.toml"
        path.write_text('feed_url = "feed.json"\n\n[messages]\nok = "Fertig"\n')

        settings = load_settings(path)

        assert settings.messages.ok == "Fertig"
        assert settings.messages.failed == "Failed"


class TestSaveSettings:
    """Tests for save_settings."""

    def test_roundtrip(self, tmp_path: Path) -> None:
        """Saved settings load back unchanged."""
        path = tmp_path / "nested" / "config.toml"
        settings = Settings(
            feed_url="https://example.com/feed.json",
            gallery_dir=tmp_path / "gallery",
            messages=Messages(ok="Done"),
        )

        assert save_settings(settings, path) == path
        assert load_settings(path) == settings

    def test_none_and_default_messages_omitted(self, tmp_path: Path) -> None:
        """Unset paths and default messages are not written."""
        path = tmp_path / "config.toml"

        save_settings(Settings(feed_url="feed.json"), path)

        with open(path, "rb") as f:
            data = tomllib.load(f)
        assert "ledger_path" not in data
        assert "messages" not in data
        assert data["feed_url"] == "feed.json"


class TestRequireSettings:
    """Tests for require_settings."""

    def test_missing_settings_exit(self, tmp_path: Path) -> None:
        """Missing settings exit with code 1."""
        with pytest.raises(typer.Exit) as exc_info:
            require_settings(tmp_path / "config.toml")

        assert exc_info.value.exit_code == 1

    def test_loads_existing(self, tmp_path: Path) -> None:
        """Existing settings are returned."""
        path = save_settings(Settings(name="Product"), tmp_path / "config.toml")

        assert require_settings(path).name == "Product"
