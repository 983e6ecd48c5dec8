"""CLI package for extsync.

This package contains the Typer application and all subcommands.
"""

from extsync.cli.main import app

__all__ = ["app"]
