"""Data models for extsync.

This module exports the core data structures used throughout the application.
"""

from extsync.models.extension import ExtensionDescriptor, ExtensionVersion, FeedEntry
from extsync.models.ledger import LedgerAction, LedgerEntry, create_ledger_entry
from extsync.models.outcome import (
    ActionOutcome,
    BatchResult,
    OutcomeKind,
    OutcomeStatus,
    Progress,
    RestartReason,
)

__all__ = [
    "ActionOutcome",
    "BatchResult",
    "ExtensionDescriptor",
    "ExtensionVersion",
    "FeedEntry",
    "LedgerAction",
    "LedgerEntry",
    "OutcomeKind",
    "OutcomeStatus",
    "Progress",
    "RestartReason",
    "create_ledger_entry",
]
