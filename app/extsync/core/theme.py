"""Console colors for the extsync CLI.

Defaults can be overridden per color in ~/.config/extsync/theme.toml:

    [colors]
    install = "#00ff00"
    uninstall = "#ff5555"

Unknown names and invalid values are ignored with a warning; the remaining
overrides still apply.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from extsync.core.paths import get_user_theme_path

logger = logging.getLogger(__name__)


class ThemeColors(BaseModel):
    """Hex colors (#RGB or #RRGGBB) used by the CLI styles."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    install: str = "#c1ff62"
    uninstall: str = "#f53263"

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex_color(cls, v: object, info: Any) -> str:
        if not isinstance(v, str):
            msg = f"{info.field_name}: color must be a string"
            raise ValueError(msg)
        color = v.strip()
        if not color.startswith("#"):
            msg = f"{info.field_name}: color must start with '#'"
            raise ValueError(msg)
        digits = color[1:]
        if len(digits) not in (3, 6):
            msg = f"{info.field_name}: color must be #RGB or #RRGGBB format"
            raise ValueError(msg)
        try:
            int(digits, 16)
        except ValueError:
            msg = f"{info.field_name}: invalid hex color '{color}'"
            raise ValueError(msg) from None
        return color


def _read_overrides(path: Path) -> dict[str, object]:
    """Read the ``[colors]`` table of a theme file.

    Returns an empty dict if the file is missing or unreadable.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return {}

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Ignoring theme file %s: 'colors' is not a table", path)
        return {}
    return colors


def load_theme(path: Path | None = None) -> ThemeColors:
    """Load theme colors, applying valid user overrides on top of the defaults.

    Args:
        path: Override file. Default: ~/.config/extsync/theme.toml

    Returns:
        ThemeColors instance.
    """
    theme_path = path or get_user_theme_path()
    accepted: dict[str, str] = {}

    for name, value in _read_overrides(theme_path).items():
        if name not in ThemeColors.model_fields:
            logger.warning("Unknown theme color '%s' in %s", name, theme_path)
            continue
        try:
            accepted[name] = getattr(ThemeColors(**{name: value}), name)
        except ValidationError as e:
            logger.warning("Invalid theme color in %s: %s", theme_path, e.errors()[0]["msg"])

    if accepted:
        logger.debug("Applied %d theme overrides from %s", len(accepted), theme_path)
    return ThemeColors(**accepted)


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich theme from ``colors`` (loaded from disk if None)."""
    colors = colors or load_theme()
    return Theme(
        {
            "muted": colors.muted,
            "header": colors.header,
            "heading": f"bold {colors.header}",
            "border": colors.border,
            "success": colors.success,
            "warning": colors.warning,
            "error": f"bold {colors.error}",
            "info": colors.info,
            "install": colors.install,
            "uninstall": colors.uninstall,
        }
    )


_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Get the Rich theme, loading and caching it on first use."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme
