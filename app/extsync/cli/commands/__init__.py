"""CLI commands for extsync.

This package contains all subcommand implementations.
"""

from extsync.cli.commands import config, history, plan, reset, run

__all__ = ["config", "history", "plan", "reset", "run"]
