"""Shared helpers for CLI commands.

Builds settings, hosts and services from the global CLI options stored in
the Typer context object.
"""

from pathlib import Path

import typer

from extsync.cli.display import ConsoleHost, ConsoleLogSink
from extsync.core.config import Settings, require_settings
from extsync.core.errors import PersistenceError
from extsync.core.service import InstallerService
from extsync.hosts.folder import FolderHost
from extsync.utils.formatting import print_error, print_info


def get_settings(ctx: typer.Context) -> Settings:
    """Load settings from the --config path (or the default location)."""
    obj = ctx.obj or {}
    config_path: Path | None = obj.get("config_path")
    return require_settings(config_path)


def create_host(settings: Settings, show_progress: bool = False) -> ConsoleHost:
    """Create the terminal host for the configured folder gallery and target.

    Raises:
        typer.Exit: If the gallery or extensions directory is not configured.
    """
    if settings.gallery_dir is None or settings.extensions_dir is None:
        print_error("Both 'gallery_dir' and 'extensions_dir' must be set in the settings.")
        print_info("Run 'extsync config init --help' to see the available options.")
        raise typer.Exit(code=1)

    try:
        folder_host = FolderHost(
            gallery_dir=settings.gallery_dir,
            extensions_dir=settings.extensions_dir,
            host_version=settings.host_version,
            downloads_dir=settings.effective_downloads_dir,
        )
    except ValueError as e:
        print_error(f"Invalid host version: {e}")
        raise typer.Exit(code=1) from e
    return ConsoleHost(folder_host, show_progress=show_progress)


def create_service(
    ctx: typer.Context,
    settings: Settings,
    publish: bool = True,
) -> InstallerService:
    """Create the installer service for a CLI invocation.

    With ``publish=False`` the disable list is not written.

    Raises:
        typer.Exit: If no feed URL is configured or startup state cannot be written.
    """
    if not settings.feed_url:
        print_error("No feed URL configured.")
        print_info("Set 'feed_url' in the settings file.")
        raise typer.Exit(code=1)

    obj = ctx.obj or {}
    verbose = bool(obj.get("verbose", False))
    quiet = bool(obj.get("quiet", False))

    host = create_host(settings, show_progress=verbose)
    log = ConsoleLogSink(quiet=quiet, title=settings.name)
    try:
        return InstallerService.initialize(settings, log, host, publish=publish)
    except PersistenceError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
