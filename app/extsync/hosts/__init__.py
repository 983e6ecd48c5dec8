"""Host capabilities consumed by the reconciler.

This module exports the abstract host interfaces and the folder-backed
implementation.
"""

from extsync.hosts.base import (
    ExtensionManager,
    GalleryEntry,
    GalleryError,
    GalleryRepository,
    Host,
    InstallablePackage,
    InstalledExtension,
    LogSink,
)
from extsync.hosts.folder import FolderExtensionManager, FolderGallery, FolderHost

__all__ = [
    "ExtensionManager",
    "FolderExtensionManager",
    "FolderGallery",
    "FolderHost",
    "GalleryEntry",
    "GalleryError",
    "GalleryRepository",
    "Host",
    "InstallablePackage",
    "InstalledExtension",
    "LogSink",
]
