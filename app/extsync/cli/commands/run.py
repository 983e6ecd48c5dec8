"""Run command implementation.

Fetches the feed when due and reconciles installed extensions against it.
"""

from typing import Annotated

import typer

from extsync.cli.context import create_service, get_settings
from extsync.cli.display import create_results_table, print_results_summary
from extsync.core.errors import PersistenceError
from extsync.utils.formatting import console, print_error, print_info, print_success, print_warning

app = typer.Typer(
    help="Reconcile installed extensions with the feed.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def run(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Reconcile even if the feed has not changed.",
        ),
    ] = False,
) -> None:
    """Reconcile installed extensions with the feed.

    The feed is refetched once the cache is older than the configured
    update interval. A run only happens when the feed changed, unless
    --force is given. Press Ctrl+C to stop after the current extension.

    Examples:
        extsync run              # Run if the feed changed
        extsync run --force      # Always reconcile
    """
    if ctx.invoked_subcommand is not None:
        return

    settings = get_settings(ctx)
    service = create_service(ctx, settings)

    future = service.start(force=force)
    try:
        try:
            result = future.result()
        except KeyboardInterrupt:
            print_warning("Cancelling after the current extension...")
            service.cancel()
            result = future.result()
    except PersistenceError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    finally:
        service.shutdown()

    if result is None:
        print_info("Feed unchanged. Nothing to do (use --force to reconcile anyway).")
        return

    if result.cancelled and not result.outcomes:
        print_warning("Run cancelled before any extension was processed.")
        return

    if not result.outcomes:
        print_success("Installed extensions are in sync with the feed.")
        return

    console.print(create_results_table(result))
    print_results_summary(result)

    if result.failed_count:
        raise typer.Exit(code=1)
