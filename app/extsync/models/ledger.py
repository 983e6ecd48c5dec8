"""Ledger entry model for recording install and uninstall actions.

This module defines the records persisted in the installation ledger,
which keeps the reconciler from repeating work on later runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from extsync.models.extension import ExtensionDescriptor


class LedgerAction(str, Enum):
    """Action recorded in the ledger.

    The values are the strings written to the ledger file.

    Attributes:
        INSTALLED: Extension was installed (or an install was attempted).
        UNINSTALLED: Extension was removed from the host.
    """

    INSTALLED = "Installed"
    UNINSTALLED = "Uninstalled"


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """Record of a single install or uninstall action.

    Attributes:
        id: Identifier of the extension.
        name: Display name copied from the descriptor at action time.
        action: Action performed.
        date: When the action was recorded (timezone-aware).
    """

    id: str
    name: str
    action: LedgerAction
    date: datetime

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.id:
            msg = "Ledger entry id cannot be empty"
            raise ValueError(msg)

    def __str__(self) -> str:
        return f"{self.date:%Y-%m-%d} {self.action.value} {self.name}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage.

        Returns:
            Dictionary representation of the ledger entry.
        """
        return {
            "id": self.id,
            "name": self.name,
            "action": self.action.value,
            "date": self.date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerEntry:
        """Deserialize from dictionary.

        Args:
            data: Dictionary containing entry data.

        Returns:
            LedgerEntry instance.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If action or date is invalid.
        """
        date = datetime.fromisoformat(data["date"])
        if date.tzinfo is None:
            date = date.replace(tzinfo=UTC)
        return cls(
            id=data["id"],
            name=data.get("name") or data["id"],
            action=LedgerAction(data["action"]),
            date=date,
        )


def create_ledger_entry(
    descriptor: ExtensionDescriptor,
    action: LedgerAction,
) -> LedgerEntry:
    """Factory function to create a LedgerEntry stamped with the current time.

    Args:
        descriptor: Extension the action applies to.
        action: Action being recorded.

    Returns:
        New LedgerEntry.
    """
    return LedgerEntry(
        id=descriptor.id,
        name=descriptor.name,
        action=action,
        date=datetime.now(UTC),
    )
