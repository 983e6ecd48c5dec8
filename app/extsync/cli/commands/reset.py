"""Reset command implementation.

Clears the installation ledger and the feed cache, then reconciles from
scratch.
"""

from typing import Annotated

import typer

from extsync.cli.context import create_service, get_settings
from extsync.cli.display import create_results_table, print_results_summary
from extsync.core.errors import PersistenceError
from extsync.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Forget ledger history and the cached feed.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def reset(
    ctx: typer.Context,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompt.",
        ),
    ] = False,
    no_run: Annotated[
        bool,
        typer.Option(
            "--no-run",
            help="Only clear state, do not reconcile afterwards.",
        ),
    ] = False,
) -> None:
    """Forget ledger history and the cached feed.

    Every feed extension becomes eligible for installation again.

    Examples:
        extsync reset              # Reset with confirmation, then run
        extsync reset -y --no-run  # Only clear state
    """
    if ctx.invoked_subcommand is not None:
        return

    if not yes:
        confirm = typer.confirm("This forgets all recorded installs. Continue?")
        if not confirm:
            print_info("Cancelled.")
            return

    settings = get_settings(ctx)
    service = create_service(ctx, settings)
    context = service.context

    if no_run:
        if not context.ledger.reset():
            print_error(f"Could not delete ledger: {context.ledger.path}")
            raise typer.Exit(code=1)
        context.feed.reset()
        print_success("Ledger and feed cache cleared.")
        return

    try:
        result = service.reset()
    except PersistenceError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if result is None or not result.outcomes:
        print_success("State cleared. Installed extensions are in sync with the feed.")
        return

    console.print(create_results_table(result))
    print_results_summary(result)

    if result.failed_count:
        raise typer.Exit(code=1)
