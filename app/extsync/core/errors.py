"""Shared exception types for the reconciliation engine."""


class PersistenceError(Exception):
    """Raised when ledger, feed cache or config store state cannot be written.

    Persistence failures are never swallowed: they propagate out of a
    reconciliation run so the caller can report them.
    """
