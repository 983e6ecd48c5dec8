"""Progress and outcome models for reconciliation runs.

This module defines the transient values produced while a run is in
flight (progress snapshots) and the per-item and batch results it returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from extsync.models.extension import ExtensionDescriptor


class RestartReason(str, Enum):
    """Why the host must restart for a change to take effect.

    Attributes:
        NONE: No restart needed.
        EXTENSION: An already loaded extension was replaced.
        HOST: The host itself requested a restart.
    """

    NONE = "none"
    EXTENSION = "extension"
    HOST = "host"


class OutcomeKind(Enum):
    """Kind of action an outcome belongs to."""

    INSTALL = "install"
    UNINSTALL = "uninstall"


class OutcomeStatus(Enum):
    """Terminal status of a single action.

    Attributes:
        OK: The host call completed.
        FAILED: The host or gallery raised an error.
        NOT_FOUND: The gallery has no entry for the extension.
        NOTHING_TO_DO: The installed copy is already the latest version.
        NOT_INSTALLED: Nothing to uninstall on the host.
    """

    OK = "ok"
    FAILED = "failed"
    NOT_FOUND = "not_found"
    NOTHING_TO_DO = "nothing_to_do"
    NOT_INSTALLED = "not_installed"


@dataclass(frozen=True, slots=True)
class Progress:
    """Snapshot of an in-flight reconciliation run.

    Attributes:
        total: Number of planned actions.
        current: Number of actions started so far.
        text: Status text for the current action.
    """

    total: int
    current: int = 0
    text: str = ""

    @property
    def percent(self) -> int:
        """Completion percentage (0-100)."""
        if self.total <= 0:
            return 0
        return int(self.current * 100 / self.total)

    def advance(self, text: str) -> Progress:
        """Return the snapshot for the next started action."""
        return Progress(total=self.total, current=self.current + 1, text=text)


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    """Result of a single install or uninstall attempt.

    Attributes:
        extension: Descriptor the action was taken for.
        kind: Install or uninstall.
        status: Terminal status of the attempt.
        restart_reason: Restart signal reported by the host.
        error: Error message if the attempt failed.
    """

    extension: ExtensionDescriptor
    kind: OutcomeKind
    status: OutcomeStatus
    restart_reason: RestartReason = RestartReason.NONE
    error: str | None = None

    @property
    def success(self) -> bool:
        """Check if the attempt did not fail."""
        return self.status not in (OutcomeStatus.FAILED, OutcomeStatus.NOT_FOUND)

    @property
    def failed(self) -> bool:
        """Check if the attempt failed."""
        return not self.success

    @property
    def requires_restart(self) -> bool:
        """Check if the host reported a restart reason."""
        return self.restart_reason != RestartReason.NONE


@dataclass(slots=True)
class BatchResult:
    """Aggregated outcomes of one reconciliation run.

    Attributes:
        uninstalls: Outcomes of the uninstall pass, in processing order.
        installs: Outcomes of the install pass, in processing order.
        cancelled: Whether cancellation was observed during the run.
    """

    uninstalls: list[ActionOutcome] = field(default_factory=list)
    installs: list[ActionOutcome] = field(default_factory=list)
    cancelled: bool = False

    @classmethod
    def nothing_to_do(cls) -> BatchResult:
        """Create an empty result."""
        return cls()

    @property
    def any(self) -> bool:
        """Check if any install outcome was recorded."""
        return bool(self.installs)

    @property
    def must_restart(self) -> bool:
        """Check if any outcome asks for a host restart."""
        return any(o.requires_restart for o in (*self.uninstalls, *self.installs))

    @property
    def outcomes(self) -> list[ActionOutcome]:
        """All outcomes, uninstalls first."""
        return [*self.uninstalls, *self.installs]

    @property
    def failed_count(self) -> int:
        """Number of failed outcomes."""
        return sum(1 for o in self.outcomes if o.failed)

    def add(self, outcome: ActionOutcome) -> None:
        """Append an outcome to the matching pass."""
        if outcome.kind == OutcomeKind.UNINSTALL:
            self.uninstalls.append(outcome)
        else:
            self.installs.append(outcome)
