"""Rich console output and value formatting for the extsync CLI.

Status messages go through the shared themed consoles: ``console`` for
results, ``err_console`` for warnings and errors.
"""

import sys
from datetime import datetime

from rich.console import Console

from extsync.core.theme import get_theme
from extsync.models.extension import ExtensionVersion
from extsync.models.outcome import RestartReason


def _detect_color_system() -> str | None:
    """Use truecolor on interactive terminals, Rich auto-detection otherwise."""
    if sys.stdout.isatty():
        return "truecolor"
    return None


console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message to stderr."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")


def format_version_range(min_version: ExtensionVersion, max_version: ExtensionVersion) -> str:
    """Format a supported host version range, e.g. ``15.0 - 16.0``."""
    return f"{min_version} - {max_version}"


def format_timestamp(value: datetime) -> str:
    """Format a ledger timestamp in local time, minute precision."""
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


def format_restart_reason(reason: RestartReason) -> str:
    """Describe a restart reason for result tables (empty if none)."""
    if reason == RestartReason.NONE:
        return ""
    return f"restart required ({reason.value})"
