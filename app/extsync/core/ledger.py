"""Installation ledger persistence.

This module provides the Ledger class, the append-only record of every
install and uninstall action the reconciler has taken. The ledger keeps
extensions from being installed twice and derives the disable list that
is published to the host's config store.
"""

import json
import logging
from collections.abc import Sequence
from pathlib import Path

from extsync.core.errors import PersistenceError
from extsync.core.paths import get_ledger_path
from extsync.core.registry import ConfigStore, ConfigStoreError
from extsync.models.extension import ExtensionDescriptor
from extsync.models.ledger import LedgerAction, LedgerEntry, create_ledger_entry

logger = logging.getLogger(__name__)

# Separator for ids in the published disable list
DISABLE_LIST_SEPARATOR = ";"


class Ledger:
    """Append-only installation log stored as a JSON array.

    Storage location: ~/.local/state/extsync/installer.log

    The whole entry list is rewritten on every save. A file that cannot be
    parsed on load is deleted and the ledger starts empty.

    Attributes:
        path: Ledger file.
        sub_key: Config store key that receives the disable list.
        value_name: Value name of the disable list under ``sub_key``.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        sub_key: str,
        path: Path | None = None,
        value_name: str = "disable",
    ) -> None:
        """Initialize the ledger and load any existing entries.

        Args:
            config_store: Store that receives the disable list.
            sub_key: Sub-key of ``config_store`` to write under.
            path: Optional override for the ledger file.
                  Default: ~/.local/state/extsync/installer.log
            value_name: Name of the disable list value.
        """
        self.path = path if path is not None else get_ledger_path()
        self.sub_key = sub_key
        self.value_name = value_name
        self._config_store = config_store
        self._entries: list[LedgerEntry] = []
        self.load()

    @property
    def entries(self) -> Sequence[LedgerEntry]:
        """Recorded entries, oldest first."""
        return tuple(self._entries)

    def load(self) -> None:
        """Replace the in-memory entries with the contents of the ledger file.

        A missing file leaves the ledger empty. A corrupt file is deleted.
        """
        self._entries = []
        if not self.path.exists():
            return

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, list):
                msg = "ledger root must be a list"
                raise ValueError(msg)
            self._entries = [LedgerEntry.from_dict(item) for item in data]
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding corrupt ledger %s: %s", self.path, e)
            self._entries = []
            try:
                self.path.unlink(missing_ok=True)
            except OSError as unlink_error:
                logger.warning("Could not delete corrupt ledger %s: %s", self.path, unlink_error)
            return

        logger.debug("Loaded %d ledger entries from %s", len(self._entries), self.path)

    def mark_installed(self, extension: ExtensionDescriptor) -> None:
        """Record an install of the extension."""
        self._entries.append(create_ledger_entry(extension, LedgerAction.INSTALLED))

    def mark_uninstalled(self, extension: ExtensionDescriptor) -> None:
        """Record an uninstall of the extension."""
        self._entries.append(create_ledger_entry(extension, LedgerAction.UNINSTALLED))

    def has_been_installed(self, extension_id: str) -> bool:
        """Check if the extension was ever marked installed.

        A later uninstall does not clear this: once installed, an id is
        never selected for install again.
        """
        return any(
            e.id == extension_id and e.action == LedgerAction.INSTALLED for e in self._entries
        )

    def disabled_ids(self) -> list[str]:
        """Ids with at least one uninstall entry, in first-seen order."""
        seen: dict[str, None] = {}
        for entry in self._entries:
            if entry.action == LedgerAction.UNINSTALLED:
                seen.setdefault(entry.id, None)
        return list(seen)

    def save(self) -> None:
        """Write all entries to disk and publish the disable list.

        Raises:
            PersistenceError: If the file or the config store cannot be written.
        """
        payload = json.dumps([e.to_dict() for e in self._entries], indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload, encoding="utf-8")
        except OSError as e:
            msg = f"Failed to write ledger {self.path}: {e}"
            raise PersistenceError(msg) from e

        logger.debug("Saved %d ledger entries to %s", len(self._entries), self.path)
        self.publish_disable_list()

    def publish_disable_list(self) -> None:
        """Write the disable list to the config store.

        Raises:
            PersistenceError: If the config store rejects the write.
        """
        value = DISABLE_LIST_SEPARATOR.join(self.disabled_ids())
        try:
            key = self._config_store.create_sub_key(self.sub_key)
            key.set_value(self.value_name, value)
        except ConfigStoreError as e:
            msg = f"Failed to publish disable list: {e}"
            raise PersistenceError(msg) from e

    def reset(self) -> bool:
        """Delete the ledger file and forget all entries.

        Returns:
            True if the ledger was cleared, False if the file could not be deleted.
        """
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to delete ledger %s: %s", self.path, e)
            return False
        self._entries.clear()
        return True
