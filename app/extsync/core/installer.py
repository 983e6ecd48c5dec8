"""Reconciliation of installed extensions against the feed.

This module provides the Installer class, which computes which extensions
to uninstall and install, then drives the host through both passes one
extension at a time.

Per-item failures are logged and never abort a batch. Ledger persistence
failures (PersistenceError) propagate to the caller.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from extsync.core.config import Messages
from extsync.models.extension import ExtensionDescriptor, ExtensionVersion
from extsync.models.outcome import (
    ActionOutcome,
    BatchResult,
    OutcomeKind,
    OutcomeStatus,
    Progress,
    RestartReason,
)

if TYPE_CHECKING:
    from extsync.core.feed import FeedCache
    from extsync.core.ledger import Ledger
    from extsync.hosts.base import (
        ExtensionManager,
        GalleryEntry,
        GalleryRepository,
        InstallablePackage,
        InstalledExtension,
        LogSink,
    )

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Progress], None]


class RunState(Enum):
    """Lifecycle of a single reconciliation run."""

    IDLE = "idle"
    COMPUTING_DELTA = "computing_delta"
    NO_OP = "no_op"
    RUNNING = "running"
    UNINSTALLING = "uninstalling"
    INSTALLING = "installing"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class ReconcilePlan:
    """Actions a run would take.

    Attributes:
        to_uninstall: Feed extensions whose version range excludes the host.
        to_install: Feed extensions that are missing and were never installed.
    """

    to_uninstall: tuple[ExtensionDescriptor, ...]
    to_install: tuple[ExtensionDescriptor, ...]

    @property
    def total_actions(self) -> int:
        """Number of planned actions."""
        return len(self.to_uninstall) + len(self.to_install)

    @property
    def is_empty(self) -> bool:
        """Check if there is nothing to do."""
        return self.total_actions == 0

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON output."""
        return {
            "total": self.total_actions,
            "uninstall": [_descriptor_to_dict(e) for e in self.to_uninstall],
            "install": [_descriptor_to_dict(e) for e in self.to_install],
        }


def _descriptor_to_dict(extension: ExtensionDescriptor) -> dict[str, str]:
    return {
        "id": extension.id,
        "name": extension.name,
        "min_version": str(extension.min_version),
        "max_version": str(extension.max_version),
    }


class Installer:
    """Drives uninstall and install passes for the feed's extensions.

    The installer borrows the feed cache and the ledger for the duration
    of a run; it owns neither file.

    Example:
        >>> installer = Installer(feed, ledger, log)
        >>> result = installer.run(version, gallery, manager)
        >>> if result.must_restart:
        ...     print("Restart required")
    """

    def __init__(
        self,
        feed: FeedCache,
        ledger: Ledger,
        log: LogSink,
        messages: Messages | None = None,
    ) -> None:
        """Initialize the installer.

        Args:
            feed: Feed cache providing the desired extensions.
            ledger: Ledger of past actions.
            log: Output pane for human-readable progress.
            messages: Display strings. Defaults to the built-in English set.
        """
        self.feed = feed
        self.ledger = ledger
        self._log = log
        self._messages = messages or Messages()
        self._state = RunState.IDLE
        self._progress: Progress | None = None
        self._on_progress: ProgressCallback | None = None

    @property
    def state(self) -> RunState:
        """Current run state."""
        return self._state

    def plan(self, host_version: ExtensionVersion, manager: ExtensionManager) -> ReconcilePlan:
        """Compute the actions for the current feed without executing them.

        Args:
            host_version: Running host version.
            manager: Local extension manager.

        Returns:
            ReconcilePlan with uninstall and install candidates in feed order.
        """
        to_uninstall = self.get_extensions_marked_for_deletion(host_version)
        uninstall_ids = {e.id for e in to_uninstall}
        to_install = tuple(
            e for e in self.get_missing_extensions(manager) if e.id not in uninstall_ids
        )
        return ReconcilePlan(to_uninstall=to_uninstall, to_install=to_install)

    def get_extensions_marked_for_deletion(
        self, host_version: ExtensionVersion
    ) -> tuple[ExtensionDescriptor, ...]:
        """Feed extensions that do not support the host version."""
        return tuple(e for e in self.feed.extensions if not e.supports(host_version))

    def get_missing_extensions(self, manager: ExtensionManager) -> tuple[ExtensionDescriptor, ...]:
        """Feed extensions not installed on the host and never installed by us."""
        installed_ids = {ext.id for ext in manager.list_installed()}
        return tuple(
            e
            for e in self.feed.extensions
            if e.id not in installed_ids and not self.ledger.has_been_installed(e.id)
        )

    def run(
        self,
        host_version: ExtensionVersion,
        gallery: GalleryRepository,
        manager: ExtensionManager,
        cancel: threading.Event | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Run one reconciliation: uninstall pass, then install pass.

        Args:
            host_version: Running host version.
            gallery: Remote gallery to query and download from.
            manager: Local extension manager.
            cancel: Event polled before each item; set it to stop early.
            on_progress: Called on the worker thread with each progress
                snapshot, in processing order.

        Returns:
            BatchResult with every processed outcome.

        Raises:
            PersistenceError: If the ledger cannot be saved.
        """
        cancel = cancel or threading.Event()
        self._state = RunState.COMPUTING_DELTA
        plan = self.plan(host_version, manager)

        if plan.is_empty:
            logger.debug("Nothing to reconcile")
            self._state = RunState.NO_OP
            return BatchResult.nothing_to_do()

        self._state = RunState.RUNNING
        self._progress = Progress(total=plan.total_actions)
        self._on_progress = on_progress
        result = BatchResult()
        self._log.show_pane()
        logger.info(
            "Reconciling: %d to uninstall, %d to install",
            len(plan.to_uninstall),
            len(plan.to_install),
        )

        try:
            self._state = RunState.UNINSTALLING
            self._uninstall(plan.to_uninstall, manager, cancel, result)
            self._state = RunState.INSTALLING
            self._install(plan.to_install, gallery, manager, cancel, result)
        finally:
            self._on_progress = None
            self._state = RunState.COMPLETED

        result.cancelled = cancel.is_set()
        self._log.log(f"\n{self._messages.installation_complete}\n")
        return result

    def _uninstall(
        self,
        extensions: tuple[ExtensionDescriptor, ...],
        manager: ExtensionManager,
        cancel: threading.Event,
        result: BatchResult,
    ) -> None:
        if not extensions or cancel.is_set():
            return

        try:
            for extension in extensions:
                if cancel.is_set():
                    logger.info("Uninstall pass cancelled")
                    return
                result.add(self._uninstall_extension(extension, manager))
        finally:
            self.ledger.save()

    def _uninstall_extension(
        self,
        extension: ExtensionDescriptor,
        manager: ExtensionManager,
    ) -> ActionOutcome:
        msg = self._messages.uninstalling_extension.format(name=extension.name)
        self._report(msg)
        self._log.log(f"{msg}... ", add_newline=False)

        try:
            installed = manager.try_get_installed(extension.id)
            if installed is None:
                self._log.log(self._messages.not_installed)
                return ActionOutcome(extension, OutcomeKind.UNINSTALL, OutcomeStatus.NOT_INSTALLED)

            manager.uninstall(installed)
            self.ledger.mark_uninstalled(extension)
            self._log.log(self._messages.ok)
            return ActionOutcome(extension, OutcomeKind.UNINSTALL, OutcomeStatus.OK)
        except Exception as e:
            logger.warning("Failed to uninstall %s: %s", extension.id, e)
            self._log.log(self._messages.failed)
            return ActionOutcome(
                extension, OutcomeKind.UNINSTALL, OutcomeStatus.FAILED, error=str(e)
            )

    def _install(
        self,
        extensions: tuple[ExtensionDescriptor, ...],
        gallery: GalleryRepository,
        manager: ExtensionManager,
        cancel: threading.Event,
        result: BatchResult,
    ) -> None:
        if not extensions or cancel.is_set():
            return

        try:
            for extension in extensions:
                if cancel.is_set():
                    logger.info("Install pass cancelled")
                    return
                result.add(self._install_extension(extension, gallery, manager))
        finally:
            self.ledger.save()

    def _install_extension(
        self,
        extension: ExtensionDescriptor,
        gallery: GalleryRepository,
        manager: ExtensionManager,
    ) -> ActionOutcome:
        entry: GalleryEntry | None = None
        m = self._messages
        self._report(f"{m.installing_extension} ({extension.name})")

        try:
            self._log.log(f"\n{extension.name}")
            self._log.log(f"  {m.verifying}... ", add_newline=False)

            matches = gallery.find_by_id([extension.id])
            entry = next((e for e in matches if e.id == extension.id), None)
            if entry is None:
                self._log.log(m.failed)
                return ActionOutcome(extension, OutcomeKind.INSTALL, OutcomeStatus.NOT_FOUND)
            self._log.log(m.ok)

            installed = manager.try_get_installed(extension.id)
            self._log.log(f"  {m.downloading}... ", add_newline=False)
            if installed is None:
                package = gallery.download(entry)
            else:
                package = self._fetch_if_updated(installed, gallery, entry)

            if package is None:
                self._log.log(m.nothing_to_do)
                return ActionOutcome(extension, OutcomeKind.INSTALL, OutcomeStatus.NOTHING_TO_DO)

            self._log.log(m.ok)
            self._log.log(f"  {m.installing}... ", add_newline=False)
            reason = manager.install(package, requires_elevation=False)
            self._log.log(m.ok)
            return ActionOutcome(
                extension, OutcomeKind.INSTALL, OutcomeStatus.OK, restart_reason=reason
            )
        except Exception as e:
            logger.warning("Failed to install %s: %s", extension.id, e)
            self._log.log(m.failed)
            return ActionOutcome(
                extension,
                OutcomeKind.INSTALL,
                OutcomeStatus.FAILED,
                restart_reason=RestartReason.NONE,
                error=str(e),
            )
        finally:
            # A found-but-failed install still uses up the extension's one attempt
            if entry is not None:
                self.ledger.mark_installed(extension)

    def _fetch_if_updated(
        self,
        installed: InstalledExtension,
        gallery: GalleryRepository,
        entry: GalleryEntry,
    ) -> InstallablePackage | None:
        """Download the gallery package only if it is newer than the installed copy."""
        current = ExtensionVersion.parse(installed.version)
        latest = ExtensionVersion.parse(gallery.query_latest_version(installed.id))
        if latest > current:
            return gallery.download(entry)
        return None

    def _report(self, text: str) -> None:
        if self._progress is None:
            return
        self._progress = self._progress.advance(text)
        if self._on_progress is not None:
            self._on_progress(self._progress)
