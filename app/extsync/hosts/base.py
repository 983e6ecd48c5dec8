"""Abstract capabilities the reconciler consumes from its host.

The host application owns the extension gallery, the local extension
manager, its own version number and the UI. This module defines the
interfaces the core calls, plus the small value types passed across them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from extsync.models.extension import ExtensionVersion
from extsync.models.outcome import Progress, RestartReason

# Locale passed to gallery queries when the caller does not specify one
DEFAULT_LOCALE = 1033


class GalleryError(Exception):
    """Raised by gallery implementations when a query or download fails."""


@dataclass(frozen=True, slots=True)
class GalleryEntry:
    """An extension as listed by the remote gallery.

    Attributes:
        id: Extension identifier.
        name: Display name.
        version: Latest published version.
        author: Publisher name, if known.
    """

    id: str
    name: str
    version: str
    author: str | None = None


@dataclass(frozen=True, slots=True)
class InstallablePackage:
    """A downloaded package ready to be handed to the extension manager.

    Attributes:
        id: Extension identifier.
        version: Version contained in the package.
        path: Local path of the downloaded package.
    """

    id: str
    version: str
    path: Path


@dataclass(frozen=True, slots=True)
class InstalledExtension:
    """An extension currently installed on the host.

    Attributes:
        id: Extension identifier.
        version: Installed version.
        author: Publisher name, if known.
    """

    id: str
    version: str
    author: str | None = None


class GalleryRepository(ABC):
    """Remote catalog the installer queries and downloads from."""

    @abstractmethod
    def query_latest_version(self, extension_id: str) -> str:
        """Return the latest published version of an extension.

        Raises:
            GalleryError: If the extension is unknown or the query fails.
        """

    @abstractmethod
    def find_by_id(
        self,
        extension_ids: list[str],
        locale: int = DEFAULT_LOCALE,
    ) -> list[GalleryEntry]:
        """Return gallery entries for the given identifiers.

        Unknown identifiers are left out of the result.
        """

    @abstractmethod
    def download(self, entry: GalleryEntry) -> InstallablePackage:
        """Download the package for a gallery entry.

        Raises:
            GalleryError: If the package cannot be fetched.
        """


class ExtensionManager(ABC):
    """Local install target managed by the host."""

    @abstractmethod
    def list_installed(self) -> list[InstalledExtension]:
        """Return every extension currently installed."""

    def try_get_installed(self, extension_id: str) -> InstalledExtension | None:
        """Return the installed copy of an extension, if any."""
        for installed in self.list_installed():
            if installed.id == extension_id:
                return installed
        return None

    @abstractmethod
    def install(
        self,
        package: InstallablePackage,
        requires_elevation: bool = False,
    ) -> RestartReason:
        """Install a downloaded package.

        Returns:
            Restart reason reported by the host.
        """

    @abstractmethod
    def uninstall(self, extension: InstalledExtension) -> None:
        """Remove an installed extension."""


class LogSink(ABC):
    """Output pane the installer writes its human-readable log to.

    Implementations must be safe to call from the worker thread.
    """

    @abstractmethod
    def log(self, message: str, add_newline: bool = True) -> None:
        """Write a message, optionally terminating the line."""

    def show_pane(self) -> None:  # noqa: B027
        """Bring the output pane to the front (no-op by default)."""


class Host(ABC):
    """Bundle of host services an orchestration run needs.

    Example:
        >>> host = FolderHost(gallery_dir, extensions_dir, "15.5", downloads_dir)
        >>> installer.run(host.current_version(), host.gallery, host.manager)
    """

    @property
    @abstractmethod
    def gallery(self) -> GalleryRepository:
        """Return the gallery repository handle."""

    @property
    @abstractmethod
    def manager(self) -> ExtensionManager:
        """Return the local extension manager handle."""

    @abstractmethod
    def current_version(self) -> ExtensionVersion:
        """Return the running host version."""

    def report_progress(self, progress: Progress) -> None:  # noqa: B027
        """Show a progress update (no-op by default)."""

    def prompt_for_restart(self) -> None:  # noqa: B027
        """Ask the user to restart the host (no-op by default)."""
