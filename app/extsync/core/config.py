"""Settings model and I/O for extsync.

Settings describe where the feed lives, where state is kept, how often the
feed is refreshed, and every message the installer writes to its output
pane.

Configuration is stored in ~/.config/extsync/config.toml
"""

import tomllib
from pathlib import Path
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from extsync.core.paths import (
    get_downloads_dir,
    get_feed_cache_path,
    get_ledger_path,
    get_settings_path,
)
from extsync.models.extension import DEFAULT_MAX_VERSION, DEFAULT_MIN_VERSION


class Messages(BaseModel):
    """Display strings written by the installer.

    ``uninstalling_extension`` is formatted with ``{name}``.
    """

    model_config = ConfigDict(extra="forbid")

    installation_complete: str = "Installation complete"
    uninstalling_extension: str = "Uninstalling {name}"
    installing_extension: str = "Installing extension"
    verifying: str = "Verifying"
    downloading: str = "Downloading"
    installing: str = "Installing"
    nothing_to_do: str = "nothing to do"
    not_installed: str = "not installed"
    ok: str = "OK"
    failed: str = "Failed"


class Settings(BaseModel):
    """Configuration for a reconciliation host.

    Attributes:
        name: Product name, used as output pane title and default sub-key.
        feed_url: Feed location (http(s) URL, file:// URL or path).
        feed_cache_path: Local feed cache. None = XDG cache default.
        ledger_path: Installation ledger. None = XDG state default.
        update_interval_days: Minimum age of the feed cache before refetching.
        registry_sub_key: Config store key for the disable list. None = name.
        disable_value_name: Value name of the disable list.
        default_min_version: Lower bound for feed entries without one.
        default_max_version: Upper bound for feed entries without one.
        host_version: Version reported by the folder host.
        gallery_dir: Folder gallery location (folder host only).
        extensions_dir: Install target directory (folder host only).
        downloads_dir: Download directory. None = XDG cache default.
        messages: Display strings.
    """

    model_config = ConfigDict(extra="forbid")

    name: Annotated[str, Field(min_length=1, description="Product name")] = "Bundler"
    feed_url: Annotated[str, Field(description="Feed location")] = ""
    feed_cache_path: Annotated[Path | None, Field(description="Feed cache file")] = None
    ledger_path: Annotated[Path | None, Field(description="Ledger file")] = None
    update_interval_days: Annotated[
        float,
        Field(ge=0, description="Days between feed fetches"),
    ] = 1.0
    registry_sub_key: Annotated[
        str | None,
        Field(description="Config store key for the disable list"),
    ] = None
    disable_value_name: Annotated[str, Field(min_length=1)] = "disable"
    default_min_version: Annotated[str, Field(min_length=1)] = DEFAULT_MIN_VERSION
    default_max_version: Annotated[str, Field(min_length=1)] = DEFAULT_MAX_VERSION
    host_version: Annotated[str, Field(min_length=1, description="Host version")] = "15.0"
    gallery_dir: Annotated[Path | None, Field(description="Folder gallery")] = None
    extensions_dir: Annotated[Path | None, Field(description="Install target")] = None
    downloads_dir: Annotated[Path | None, Field(description="Download directory")] = None
    messages: Annotated[Messages, Field(default_factory=Messages)]

    @property
    def effective_feed_cache_path(self) -> Path:
        """Feed cache path with the XDG default applied."""
        return self.feed_cache_path or get_feed_cache_path()

    @property
    def effective_ledger_path(self) -> Path:
        """Ledger path with the XDG default applied."""
        return self.ledger_path or get_ledger_path()

    @property
    def effective_sub_key(self) -> str:
        """Config store key with the product name as default."""
        return self.registry_sub_key or self.name

    @property
    def effective_downloads_dir(self) -> Path:
        """Download directory with the XDG default applied."""
        return self.downloads_dir or get_downloads_dir()


class SettingsError(Exception):
    """Base exception for settings errors."""


class SettingsNotFoundError(SettingsError):
    """Raised when the settings file is not found."""


class SettingsParseError(SettingsError):
    """Raised when the settings file cannot be parsed."""


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a TOML file.

    Args:
        path: Path to the settings file. If None, uses the default path.

    Returns:
        Validated Settings object.

    Raises:
        SettingsNotFoundError: If the file doesn't exist.
        SettingsParseError: If the TOML syntax is invalid.
        SettingsError: If the content doesn't match the schema.
    """
    settings_path = path or get_settings_path()

    if not settings_path.exists():
        raise SettingsNotFoundError(f"Settings not found: {settings_path}")

    try:
        with open(settings_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SettingsParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise SettingsError(f"Failed to read settings: {e}") from e

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings content: {e}") from e


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    """Save settings to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        settings: The Settings object to save.
        path: Path to save to. If None, uses the default path.

    Returns:
        Path where the settings were saved.

    Raises:
        SettingsError: If the file cannot be written.
    """
    import os
    from tempfile import NamedTemporaryFile

    settings_path = path or get_settings_path()

    settings_path.parent.mkdir(parents=True, exist_ok=True)

    data = _settings_to_dict(settings)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=settings_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(settings_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise SettingsError(f"Failed to write settings: {e}") from e

    return settings_path


def _settings_to_dict(settings: Settings) -> dict[str, object]:
    """Convert Settings to a dictionary for TOML serialization.

    None values are omitted (TOML has no null) and paths become strings.
    Messages are only written when they differ from the defaults.

    Args:
        settings: The Settings to convert.

    Returns:
        Dictionary ready for TOML serialization.
    """
    data = settings.model_dump(mode="json", exclude_none=True, exclude={"messages"})
    messages = settings.messages.model_dump(exclude_defaults=True)
    if messages:
        data["messages"] = messages
    return data


def require_settings(path: Path | None = None) -> Settings:
    """Load settings or exit with a helpful error message.

    This is a convenience wrapper around load_settings() for CLI commands.

    Args:
        path: Optional custom settings path.

    Returns:
        Loaded and validated Settings.

    Raises:
        typer.Exit: If the settings cannot be loaded.
    """
    import typer

    from extsync.utils.formatting import print_error, print_info

    settings_path = path or get_settings_path()
    try:
        return load_settings(settings_path)
    except SettingsNotFoundError as e:
        print_error(f"Settings not found: {settings_path}")
        print_info("Run 'extsync config init --feed-url URL' to create them.")
        raise typer.Exit(code=1) from e
    except SettingsError as e:
        print_error(f"Failed to load settings: {e}")
        raise typer.Exit(code=1) from e
