"""Settings commands.

Provides commands to create and inspect the extsync settings file.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer

from extsync.cli.context import get_settings
from extsync.core.config import Settings, SettingsError, save_settings
from extsync.core.paths import get_settings_path
from extsync.models.extension import ExtensionVersion
from extsync.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Create and inspect settings.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def show(ctx: typer.Context) -> None:
    """Print the effective settings as TOML."""
    settings = get_settings(ctx)
    data = settings.model_dump(mode="json", exclude_none=True)
    data["effective"] = {
        "feed_cache_path": str(settings.effective_feed_cache_path),
        "ledger_path": str(settings.effective_ledger_path),
        "registry_sub_key": settings.effective_sub_key,
        "downloads_dir": str(settings.effective_downloads_dir),
    }
    console.print(tomli_w.dumps(data), markup=False, highlight=False, soft_wrap=True)


@app.command()
def init(
    ctx: typer.Context,
    feed_url: Annotated[
        str,
        typer.Option(
            "--feed-url",
            help="Feed location (http(s) URL, file:// URL or path).",
        ),
    ],
    gallery_dir: Annotated[
        Path | None,
        typer.Option(
            "--gallery-dir",
            help="Folder gallery with index.json and package archives.",
        ),
    ] = None,
    extensions_dir: Annotated[
        Path | None,
        typer.Option(
            "--extensions-dir",
            help="Directory extensions are installed into.",
        ),
    ] = None,
    host_version: Annotated[
        str,
        typer.Option(
            "--host-version",
            help="Host version used for eligibility checks.",
        ),
    ] = "15.0",
    name: Annotated[
        str,
        typer.Option(
            "--name",
            help="Product name (output title and config store key).",
        ),
    ] = "Bundler",
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing settings.",
        ),
    ] = False,
) -> None:
    """Create the settings file.

    Examples:
        extsync config init --feed-url https://example.com/extensions.json \\
            --gallery-dir ~/gallery --extensions-dir ~/.host/extensions
    """
    obj = ctx.obj or {}
    path: Path = obj.get("config_path") or get_settings_path()

    if path.exists() and not force:
        print_error(f"Settings already exist: {path}")
        print_info("Use --force to overwrite.")
        raise typer.Exit(code=1)

    try:
        ExtensionVersion.parse(host_version)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    settings = Settings(
        name=name,
        feed_url=feed_url,
        host_version=host_version,
        gallery_dir=gallery_dir.expanduser() if gallery_dir else None,
        extensions_dir=extensions_dir.expanduser() if extensions_dir else None,
    )

    try:
        saved_path = save_settings(settings, path)
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Settings created: {saved_path}")
