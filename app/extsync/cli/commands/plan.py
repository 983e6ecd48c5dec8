"""Plan command implementation.

Shows which extensions a run would uninstall and install. Nothing is
installed, uninstalled or published; --refresh only updates the feed cache.
"""

import json
from typing import Annotated

import typer

from extsync.cli.context import create_service, get_settings
from extsync.cli.display import create_plan_table
from extsync.core.errors import PersistenceError
from extsync.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show planned extension changes.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def plan(
    ctx: typer.Context,
    refresh: Annotated[
        bool,
        typer.Option(
            "--refresh",
            "-r",
            help="Fetch the feed first if the cache is due for an update.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show planned extension changes.

    Compares the cached feed with the installed extensions and the
    ledger, and lists what the next run would do.

    Examples:
        extsync plan               # Use the cached feed
        extsync plan --refresh     # Refetch the feed when due
        extsync plan --json        # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    settings = get_settings(ctx)
    service = create_service(ctx, settings, publish=False)
    context = service.context

    if refresh:
        try:
            service.check_for_updates()
        except PersistenceError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
    else:
        context.feed.parse()

    host = service.host
    result = context.installer.plan(host.current_version(), host.manager)

    if json_output:
        console.print_json(json.dumps(result.to_dict()))
        return

    if not context.feed.extensions:
        print_info("The feed cache is empty. Run 'extsync plan --refresh' to fetch it.")
        return

    if result.is_empty:
        print_success("Installed extensions are in sync with the feed. Nothing to do.")
        return

    console.print(create_plan_table(result))
    console.print(
        f"\nSummary: [uninstall]{len(result.to_uninstall)} to uninstall[/uninstall], "
        f"[install]{len(result.to_install)} to install[/install]"
    )
