"""Orchestration of reconciliation runs for a host process.

This module wires settings, ledger, feed cache and installer into an
explicit InstallerContext and provides InstallerService, which decides
when a run is due, executes it on a single background worker and relays
progress, cancellation and restart prompts to the host.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from extsync.core.feed import FeedCache
from extsync.core.installer import Installer
from extsync.core.ledger import Ledger
from extsync.core.registry import ConfigStore, TomlConfigStore
from extsync.models.outcome import BatchResult

if TYPE_CHECKING:
    from extsync.core.config import Settings
    from extsync.hosts.base import Host, LogSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InstallerContext:
    """Everything a reconciliation run needs, built once at startup.

    Attributes:
        settings: Loaded settings.
        ledger: Installation ledger.
        feed: Feed cache.
        installer: Installer operating on ``feed`` and ``ledger``.
        log: Output pane.
    """

    settings: Settings
    ledger: Ledger
    feed: FeedCache
    installer: Installer
    log: LogSink


def build_context(
    settings: Settings,
    log: LogSink,
    config_store: ConfigStore | None = None,
) -> InstallerContext:
    """Construct the ledger, feed cache and installer from settings.

    Args:
        settings: Loaded settings.
        log: Output pane for the installer.
        config_store: Store for the disable list. Default: TomlConfigStore.

    Returns:
        InstallerContext ready for use.
    """
    store = config_store if config_store is not None else TomlConfigStore()
    ledger = Ledger(
        config_store=store,
        sub_key=settings.effective_sub_key,
        path=settings.effective_ledger_path,
        value_name=settings.disable_value_name,
    )
    feed = FeedCache(
        url=settings.feed_url,
        cache_path=settings.effective_feed_cache_path,
        default_min_version=settings.default_min_version,
        default_max_version=settings.default_max_version,
    )
    installer = Installer(feed, ledger, log, settings.messages)
    return InstallerContext(
        settings=settings,
        ledger=ledger,
        feed=feed,
        installer=installer,
        log=log,
    )


class InstallerService:
    """Coordinates reconciliation runs for one host.

    At most one run executes at a time, on a dedicated worker thread.

    Example:
        >>> service = InstallerService.initialize(settings, log, host)
        >>> future = service.start()
        >>> result = future.result()
    """

    def __init__(self, context: InstallerContext, host: Host) -> None:
        """Initialize the service.

        Args:
            context: Context built by :func:`build_context`.
            host: Host services (gallery, manager, version, UI).
        """
        self.context = context
        self.host = host
        self._cancel = threading.Event()
        self._executor: ThreadPoolExecutor | None = None

    @classmethod
    def initialize(
        cls,
        settings: Settings,
        log: LogSink,
        host: Host,
        config_store: ConfigStore | None = None,
        publish: bool = True,
    ) -> InstallerService:
        """Build the context and publish the current disable list.

        Pass ``publish=False`` for read-only uses that must leave the config
        store untouched.

        Raises:
            PersistenceError: If the disable list cannot be published.
        """
        logger.debug("Initializing installer service for %s", settings.name)
        context = build_context(settings, log, config_store)
        if publish:
            context.ledger.publish_disable_list()
        return cls(context, host)

    @property
    def cancel_requested(self) -> bool:
        """Check if the current run was asked to stop."""
        return self._cancel.is_set()

    def is_due(self, now: datetime | None = None) -> bool:
        """Check if the feed cache is missing or older than the update interval."""
        last = self.context.feed.last_fetched()
        if last is None:
            return True
        now = now or datetime.now()
        interval = timedelta(days=self.context.settings.update_interval_days)
        return last < now - interval

    def check_for_updates(self) -> bool:
        """Refresh the feed if due, otherwise parse the cached copy.

        Returns:
            True if the feed content changed.
        """
        if self.is_due():
            return self.context.feed.update()
        self.context.feed.parse()
        return False

    def _begin_run(self) -> threading.Event:
        self._cancel = threading.Event()
        return self._cancel

    def run_if_due(
        self,
        force: bool = False,
        cancel: threading.Event | None = None,
    ) -> BatchResult | None:
        """Run a reconciliation if the feed has changed.

        A cancel request made at any point, including during the feed
        refresh, stops the run.

        Args:
            force: Run even if the feed is unchanged.
            cancel: Event for this run. Default: a fresh one.

        Returns:
            BatchResult of the run, or None if no run was due.

        Raises:
            PersistenceError: If the ledger or feed cache cannot be written.
        """
        if cancel is None:
            cancel = self._begin_run()

        has_updates = self.check_for_updates()
        if not has_updates and not force:
            logger.debug("No feed updates, skipping run")
            return None

        if cancel.is_set():
            logger.info("Run cancelled before reconciling")
            return BatchResult(cancelled=True)

        host = self.host
        result = self.context.installer.run(
            host.current_version(),
            host.gallery,
            host.manager,
            cancel=cancel,
            on_progress=host.report_progress,
        )

        if not cancel.is_set() and result.must_restart:
            host.prompt_for_restart()
        return result

    def start(self, force: bool = False) -> Future[BatchResult | None]:
        """Schedule :meth:`run_if_due` on the background worker."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="extsync")
        return self._executor.submit(self.run_if_due, force, self._begin_run())

    def cancel(self) -> None:
        """Ask the current run to stop after the item in progress."""
        self._cancel.set()

    def reset(self) -> BatchResult | None:
        """Forget all ledger history and the cached feed, then run again."""
        if not self.context.ledger.reset():
            logger.warning("Ledger could not be reset")
        self.context.feed.reset()
        return self.run_if_due()

    def shutdown(self, wait: bool = True) -> None:
        """Stop the background worker."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
