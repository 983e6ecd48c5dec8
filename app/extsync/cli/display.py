"""Console host adapters and Rich display functions.

Provides the LogSink and Host wrappers that route installer output to the
terminal, plus table builders for plans, results and ledger history.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import TYPE_CHECKING

from rich.table import Table

from extsync.hosts.base import Host, LogSink
from extsync.models.ledger import LedgerAction
from extsync.models.outcome import OutcomeKind, OutcomeStatus
from extsync.utils.formatting import (
    console,
    format_restart_reason,
    format_timestamp,
    format_version_range,
    print_success,
    print_warning,
)

if TYPE_CHECKING:
    from rich.console import Console

    from extsync.core.installer import ReconcilePlan
    from extsync.hosts.base import ExtensionManager, GalleryRepository
    from extsync.models.extension import ExtensionVersion
    from extsync.models.ledger import LedgerEntry
    from extsync.models.outcome import BatchResult, Progress


class ConsoleLogSink(LogSink):
    """Writes installer output to a Rich console.

    Attributes:
        quiet: If True, all output is dropped.
        title: Heading printed when the pane is shown.
    """

    def __init__(
        self,
        target: Console | None = None,
        quiet: bool = False,
        title: str | None = None,
    ) -> None:
        self._console = target or console
        self.quiet = quiet
        self.title = title
        self._lock = threading.Lock()

    def log(self, message: str, add_newline: bool = True) -> None:
        if self.quiet:
            return
        with self._lock:
            self._console.print(
                message,
                end="\n" if add_newline else "",
                markup=False,
                highlight=False,
            )

    def show_pane(self) -> None:
        if self.quiet or not self.title:
            return
        with self._lock:
            self._console.rule(self.title, style="border")


class ConsoleHost(Host):
    """Host wrapper that shows progress and restart prompts on the terminal.

    Gallery, manager and version come from the wrapped host.
    """

    def __init__(self, inner: Host, show_progress: bool = False) -> None:
        self._inner = inner
        self.show_progress = show_progress
        self.restart_prompted = False

    @property
    def gallery(self) -> GalleryRepository:
        return self._inner.gallery

    @property
    def manager(self) -> ExtensionManager:
        return self._inner.manager

    def current_version(self) -> ExtensionVersion:
        return self._inner.current_version()

    def report_progress(self, progress: Progress) -> None:
        if self.show_progress:
            console.print(f"[muted][{progress.percent:>3}%][/muted] {progress.text}")

    def prompt_for_restart(self) -> None:
        self.restart_prompted = True
        print_warning("Restart the host application for the changes to take effect.")


def create_plan_table(plan: ReconcilePlan) -> Table:
    """Create a Rich table displaying planned actions.

    Args:
        plan: Plan computed by the installer.

    Returns:
        Rich Table with Action, Extension, Id and Versions columns.
    """
    table = Table(
        title="Planned Actions",
        show_header=True,
        header_style="heading",
        border_style="border",
    )
    table.add_column("Action", width=11, justify="center")
    table.add_column("Extension", no_wrap=True)
    table.add_column("Id", style="muted")
    table.add_column("Versions", style="muted")

    for extension in plan.to_uninstall:
        table.add_row(
            "[uninstall]-uninstall[/uninstall]",
            f"[uninstall]{extension.name}[/uninstall]",
            extension.id,
            format_version_range(extension.min_version, extension.max_version),
        )
    for extension in plan.to_install:
        table.add_row(
            "[install]+install[/install]",
            f"[install]{extension.name}[/install]",
            extension.id,
            format_version_range(extension.min_version, extension.max_version),
        )

    return table


_STATUS_MARKUP: dict[OutcomeStatus, str] = {
    OutcomeStatus.OK: "[success]OK[/success]",
    OutcomeStatus.FAILED: "[error]FAIL[/error]",
    OutcomeStatus.NOT_FOUND: "[error]MISSING[/error]",
    OutcomeStatus.NOTHING_TO_DO: "[muted]CURRENT[/muted]",
    OutcomeStatus.NOT_INSTALLED: "[muted]SKIP[/muted]",
}


def create_results_table(result: BatchResult) -> Table:
    """Create a Rich table displaying the outcome of every processed item.

    Args:
        result: Batch result returned by a run.

    Returns:
        Rich Table with Status, Action, Extension and Message columns.
    """
    table = Table(
        title="Results",
        show_header=True,
        header_style="heading",
        border_style="border",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Action", width=9)
    table.add_column("Extension", no_wrap=True)
    table.add_column("Message")

    for outcome in result.outcomes:
        if outcome.error:
            message = outcome.error
        else:
            message = format_restart_reason(outcome.restart_reason)
        table.add_row(
            _STATUS_MARKUP[outcome.status],
            "install" if outcome.kind == OutcomeKind.INSTALL else "uninstall",
            outcome.extension.name,
            f"[muted]{message}[/muted]",
        )

    return table


def print_results_summary(result: BatchResult) -> None:
    """Print a summary line for a finished run."""
    total = len(result.outcomes)
    failed = result.failed_count

    if result.cancelled:
        print_warning(f"Run cancelled after {total} action(s).")
    elif failed == 0:
        print_success(f"All {total} action(s) completed successfully.")
    else:
        console.print(
            f"\n[success]{total - failed} succeeded[/success], [error]{failed} failed[/error]"
        )


def create_history_table(entries: Sequence[LedgerEntry]) -> Table:
    """Create a Rich table listing ledger entries.

    Args:
        entries: Entries to display, in display order.

    Returns:
        Rich Table with Date, Action, Extension and Id columns.
    """
    table = Table(
        title="Installation Ledger",
        show_header=True,
        header_style="heading",
        border_style="border",
    )
    table.add_column("Date", style="muted", no_wrap=True)
    table.add_column("Action", width=11)
    table.add_column("Extension", no_wrap=True)
    table.add_column("Id", style="muted")

    for entry in entries:
        style = "install" if entry.action == LedgerAction.INSTALLED else "uninstall"
        table.add_row(
            format_timestamp(entry.date),
            f"[{style}]{entry.action.value}[/{style}]",
            entry.name,
            entry.id,
        )

    return table
