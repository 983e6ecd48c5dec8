"""Key/value config store that receives the ledger's disable list.

The host consults this store to decide which extensions to treat as
inactive. ``TomlConfigStore`` keeps each sub-key as a TOML table in a
single file, e.g.::

    [Bundler]
    disable = "ext.one;ext.two"
"""

from __future__ import annotations

import logging
import os
import tomllib
from abc import ABC, abstractmethod
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

import tomli_w

from extsync.core.paths import get_registry_path

logger = logging.getLogger(__name__)


class ConfigStoreError(Exception):
    """Raised when the config store cannot be read or written."""


class ConfigStore(ABC):
    """Hierarchical key/value store owned by the host."""

    @abstractmethod
    def create_sub_key(self, name: str) -> ConfigStore:
        """Open (creating if needed) a child key."""

    @abstractmethod
    def set_value(self, name: str, value: str) -> None:
        """Set a value on this key.

        Raises:
            ConfigStoreError: If the value cannot be stored.
        """

    @abstractmethod
    def get_value(self, name: str) -> str | None:
        """Return a value on this key, or None if it is not set."""


class TomlConfigStore(ConfigStore):
    """Config store persisted as nested TOML tables.

    Attributes:
        path: TOML file backing the store.
        key_path: Table path of this key (empty for the root).
    """

    def __init__(self, path: Path | None = None, key_path: tuple[str, ...] = ()) -> None:
        """Initialize the store.

        Args:
            path: Backing file. Default: ~/.config/extsync/registry.toml
            key_path: Table path of this key within the file.
        """
        self.path = path if path is not None else get_registry_path()
        self.key_path = key_path

    def create_sub_key(self, name: str) -> TomlConfigStore:
        if not name:
            msg = "Sub-key name cannot be empty"
            raise ValueError(msg)
        return TomlConfigStore(self.path, (*self.key_path, name))

    def set_value(self, name: str, value: str) -> None:
        data = self._read()
        table = data
        for part in self.key_path:
            child = table.setdefault(part, {})
            if not isinstance(child, dict):
                msg = f"Key '{part}' in {self.path} is a value, not a table"
                raise ConfigStoreError(msg)
            table = child
        table[name] = value
        self._write(data)
        logger.debug("Set %s/%s in %s", "/".join(self.key_path), name, self.path)

    def get_value(self, name: str) -> str | None:
        table: Any = self._read()
        for part in self.key_path:
            table = table.get(part) if isinstance(table, dict) else None
            if table is None:
                return None
        if not isinstance(table, dict):
            return None
        value = table.get(name)
        return value if isinstance(value, str) else None

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigStoreError(f"Invalid TOML syntax in {self.path}: {e}") from e
        except OSError as e:
            raise ConfigStoreError(f"Failed to read {self.path}: {e}") from e

    def _write(self, data: dict[str, Any]) -> None:
        tmp_path: Path | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                mode="wb",
                dir=self.path.parent,
                delete=False,
                suffix=".tmp",
            ) as f:
                tmp_path = Path(f.name)
                tomli_w.dump(data, f)
            os.replace(str(tmp_path), str(self.path))
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise ConfigStoreError(f"Failed to write {self.path}: {e}") from e
