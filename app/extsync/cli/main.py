"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.logging import RichHandler

from extsync import __version__
from extsync.cli.commands import config, history, plan, reset, run
from extsync.utils.formatting import err_console

app = typer.Typer(
    name="extsync",
    help="Keep installed extensions in sync with a published feed.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _configure_logging(verbose: bool, quiet: bool) -> None:
    """Route library logging to stderr through Rich.

    Warnings are shown by default, debug output with --verbose and only
    errors with --quiet.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    handler = RichHandler(console=err_console, show_time=verbose, show_path=False)
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"extsync version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Settings file (default: ~/.config/extsync/config.toml).",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """extsync - Keep installed extensions in sync with a published feed.

    Fetches a feed of desired extensions, installs what is missing,
    uninstalls what no longer supports the host version, and remembers
    what it has done.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    _configure_logging(verbose, quiet)


app.add_typer(run.app, name="run")
app.add_typer(plan.app, name="plan")
app.add_typer(history.app, name="history")
app.add_typer(reset.app, name="reset")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
