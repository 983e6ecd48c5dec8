"""Unit tests for the TOML config store."""

import tomllib
from pathlib import Path

import pytest
from extsync.core.registry import ConfigStoreError, TomlConfigStore


class TestTomlConfigStore:
    """Tests for TomlConfigStore."""

    def test_set_value_creates_nested_table(self, tmp_path: Path) -> None:
        """Values land in a table named after the sub-key path."""
        path = tmp_path / "registry.toml"
        store = TomlConfigStore(path)

        store.create_sub_key("Bundler").set_value("disable", "ext.a;ext.b")

        with open(path, "rb") as f:
            assert tomllib.load(f) == {"Bundler": {"disable": "ext.a;ext.b"}}

    def test_get_value_roundtrip(self, tmp_path: Path) -> None:
        """get_value reads back what set_value wrote."""
        key = TomlConfigStore(tmp_path / "registry.toml").create_sub_key("A").create_sub_key("B")

        key.set_value("disable", "ext.a")

        assert key.get_value("disable") == "ext.a"
        assert key.get_value("other") is None

    def test_get_value_missing_file(self, tmp_path: Path) -> None:
        """A missing file has no values."""
        store = TomlConfigStore(tmp_path / "missing.toml").create_sub_key("Bundler")
        assert store.get_value("disable") is None

    def test_set_value_preserves_other_keys(self, tmp_path: Path) -> None:
        """Writing one key keeps unrelated tables."""
        path = tmp_path / "registry.toml"
        path.write_text('[Other]\nvalue = "keep"\n')

        TomlConfigStore(path).create_sub_key("Bundler").set_value("disable", "")

        with open(path, "rb") as f:
            data = tomllib.load(f)
        assert data["Other"] == {"value": "keep"}
        assert data["Bundler"] == {"disable": ""}

    def test_invalid_toml_raises(self, tmp_path: Path) -> None:
        """Corrupt store files raise ConfigStoreError."""
        path = tmp_path / "registry.toml"
        path.write_text("not [ valid")

        with pytest.raises(ConfigStoreError, match="Invalid TOML"):
            TomlConfigStore(path).create_sub_key("Bundler").set_value("disable", "x")

    def test_value_in_key_path_raises(self, tmp_path: Path) -> None:
        """A key path crossing a plain value is rejected."""
        path = tmp_path / "registry.toml"
        path.write_text('Bundler = "flat"\n')

        with pytest.raises(ConfigStoreError, match="not a table"):
            TomlConfigStore(path).create_sub_key("Bundler").set_value("disable", "x")

    def test_empty_sub_key_rejected(self, tmp_path: Path) -> None:
        """Sub-keys need a name."""
        with pytest.raises(ValueError):
            TomlConfigStore(tmp_path / "registry.toml").create_sub_key("")
