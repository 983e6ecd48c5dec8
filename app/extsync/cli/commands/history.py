"""History command for viewing the installation ledger.

This module provides the `extsync history` command, which lists the
install and uninstall actions recorded in the ledger.
"""

import json
from typing import Annotated

import typer

from extsync.cli.context import get_settings
from extsync.cli.display import create_history_table
from extsync.core.ledger import DISABLE_LIST_SEPARATOR, Ledger
from extsync.core.registry import TomlConfigStore
from extsync.utils.formatting import console, print_info

app = typer.Typer(
    name="history",
    help="View the installation ledger.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            min=1,
            help="Maximum number of entries to show.",
        ),
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
    disabled: Annotated[
        bool,
        typer.Option(
            "--disabled",
            help="Show the disable list published to the config store.",
        ),
    ] = False,
) -> None:
    """Show the installation ledger, newest first.

    Examples:
        extsync history              # Show last 20 entries
        extsync history -n 50        # Show last 50 entries
        extsync history --json       # JSON output for scripting
        extsync history --disabled   # Ids the host should treat as disabled
    """
    if ctx.invoked_subcommand is not None:
        return

    settings = get_settings(ctx)
    ledger = Ledger(
        config_store=TomlConfigStore(),
        sub_key=settings.effective_sub_key,
        path=settings.effective_ledger_path,
        value_name=settings.disable_value_name,
    )

    if disabled:
        ids = ledger.disabled_ids()
        if json_output:
            console.print_json(json.dumps(ids))
        elif ids:
            console.print(
                DISABLE_LIST_SEPARATOR.join(ids), markup=False, highlight=False, soft_wrap=True
            )
        else:
            print_info("No extensions are disabled.")
        return

    entries = list(reversed(ledger.entries))[:limit]

    if json_output:
        console.print_json(json.dumps([e.to_dict() for e in entries]))
        return

    if not entries:
        print_info("No actions recorded yet.")
        return

    console.print(create_history_table(entries))
