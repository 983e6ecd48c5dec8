"""File locations for extsync, following the XDG base directory layout.

    config  $XDG_CONFIG_HOME/extsync  (~/.config/extsync)       settings, disable list, theme
    state   $XDG_STATE_HOME/extsync   (~/.local/state/extsync)  installation ledger
    cache   $XDG_CACHE_HOME/extsync   (~/.cache/extsync)        feed copy, package downloads

Nothing here creates directories; writers create parents on demand.
"""

import os
from pathlib import Path

APP_NAME = "extsync"


def _xdg_home(env_var: str, fallback: str) -> Path:
    """Resolve an XDG base directory for this application.

    Args:
        env_var: XDG variable name (e.g. "XDG_STATE_HOME").
        fallback: Location relative to the home directory when unset or empty.
    """
    base = os.environ.get(env_var)
    root = Path(base) if base else Path.home() / fallback
    return root / APP_NAME


def get_config_dir() -> Path:
    return _xdg_home("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    return _xdg_home("XDG_STATE_HOME", ".local/state")


def get_cache_dir() -> Path:
    return _xdg_home("XDG_CACHE_HOME", ".cache")


def get_settings_path() -> Path:
    """Default settings file, used when --config is not given."""
    return get_config_dir() / "config.toml"


def get_registry_path() -> Path:
    """TOML config store that receives the published disable list."""
    return get_config_dir() / "registry.toml"


def get_user_theme_path() -> Path:
    """Optional ``[colors]`` override file."""
    return get_config_dir() / "theme.toml"


def get_ledger_path() -> Path:
    """Installation ledger (JSON list of install/uninstall entries)."""
    return get_state_dir() / "installer.log"


def get_feed_cache_path() -> Path:
    """Local copy of the last fetched feed; its mtime drives the update throttle."""
    return get_cache_dir() / "feed.json"


def get_downloads_dir() -> Path:
    """Directory receiving downloaded extension packages."""
    return get_cache_dir() / "downloads"
