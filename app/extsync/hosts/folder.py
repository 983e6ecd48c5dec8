"""Folder-backed host implementation.

The gallery is a directory holding an ``index.json`` and one zip archive
per extension::

    gallery/
        index.json   {"ext.markdown": {"name": "Markdown Editor",
                                       "version": "1.4", "file": "markdown-1.4.zip"}}
        markdown-1.4.zip

Extensions are installed by unpacking the archive into
``<extensions_dir>/<id>/`` next to an ``extension.json`` metadata file.
"""

import json
import logging
import shutil
import zipfile
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from extsync.hosts.base import (
    DEFAULT_LOCALE,
    ExtensionManager,
    GalleryEntry,
    GalleryError,
    GalleryRepository,
    Host,
    InstallablePackage,
    InstalledExtension,
)
from extsync.models.extension import ExtensionVersion
from extsync.models.outcome import RestartReason

logger = logging.getLogger(__name__)

METADATA_FILENAME = "extension.json"


class GalleryIndexEntry(BaseModel):
    """One extension listed in a folder gallery's index.json."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    version: Annotated[str, Field(min_length=1)]
    file: Annotated[str, Field(min_length=1)]
    author: str | None = None


class FolderGallery(GalleryRepository):
    """Gallery served from a local directory.

    Attributes:
        root: Gallery directory containing index.json.
        downloads_dir: Where downloaded packages are copied.
    """

    INDEX_FILENAME = "index.json"

    def __init__(self, root: Path, downloads_dir: Path) -> None:
        self.root = root
        self.downloads_dir = downloads_dir

    def _load_index(self) -> dict[str, GalleryIndexEntry]:
        index_path = self.root / self.INDEX_FILENAME
        try:
            data = json.loads(index_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            msg = f"Cannot read gallery index {index_path}: {e}"
            raise GalleryError(msg) from e
        if not isinstance(data, dict):
            msg = f"Gallery index {index_path} is not a JSON object"
            raise GalleryError(msg)

        index: dict[str, GalleryIndexEntry] = {}
        for extension_id, raw in data.items():
            try:
                index[extension_id] = GalleryIndexEntry.model_validate(raw)
            except ValidationError as e:
                logger.warning("Skipping invalid gallery entry '%s': %s", extension_id, e)
        return index

    def query_latest_version(self, extension_id: str) -> str:
        entry = self._load_index().get(extension_id)
        if entry is None:
            msg = f"Extension not in gallery: {extension_id}"
            raise GalleryError(msg)
        return entry.version

    def find_by_id(
        self,
        extension_ids: list[str],
        locale: int = DEFAULT_LOCALE,
    ) -> list[GalleryEntry]:
        index = self._load_index()
        return [
            GalleryEntry(
                id=extension_id,
                name=index[extension_id].name or extension_id,
                version=index[extension_id].version,
                author=index[extension_id].author,
            )
            for extension_id in extension_ids
            if extension_id in index
        ]

    def download(self, entry: GalleryEntry) -> InstallablePackage:
        indexed = self._load_index().get(entry.id)
        if indexed is None:
            msg = f"Extension not in gallery: {entry.id}"
            raise GalleryError(msg)

        source = self.root / indexed.file
        target = self.downloads_dir / f"{_safe_dirname(entry.id)}-{indexed.version}.zip"
        try:
            self.downloads_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except OSError as e:
            msg = f"Failed to download {entry.id}: {e}"
            raise GalleryError(msg) from e

        logger.debug("Downloaded %s %s to %s", entry.id, indexed.version, target)
        return InstallablePackage(id=entry.id, version=indexed.version, path=target)


class FolderExtensionManager(ExtensionManager):
    """Install target made of one directory per extension.

    Replacing an already installed copy reports RestartReason.EXTENSION,
    since the host may still have the old copy loaded.

    Attributes:
        root: Directory holding installed extensions.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def _extension_dir(self, extension_id: str) -> Path:
        """Folder of one extension, always a direct child of the install root.

        Raises:
            ValueError: If the id does not name a folder below the root.
        """
        root = self.root.resolve()
        target = (root / _safe_dirname(extension_id)).resolve()
        if target.parent != root:
            msg = f"Extension id '{extension_id}' does not map to a folder below {root}"
            raise ValueError(msg)
        return target

    def list_installed(self) -> list[InstalledExtension]:
        if not self.root.is_dir():
            return []

        installed: list[InstalledExtension] = []
        for metadata_path in sorted(self.root.glob(f"*/{METADATA_FILENAME}")):
            try:
                data = json.loads(metadata_path.read_text(encoding="utf-8"))
                installed.append(
                    InstalledExtension(
                        id=data["id"],
                        version=data["version"],
                        author=data.get("author"),
                    )
                )
            except (OSError, json.JSONDecodeError, KeyError, TypeError) as e:
                logger.warning("Skipping unreadable extension metadata %s: %s", metadata_path, e)
                continue
        return installed

    def install(
        self,
        package: InstallablePackage,
        requires_elevation: bool = False,
    ) -> RestartReason:
        target = self._extension_dir(package.id)
        replaced = target.exists()
        if replaced:
            shutil.rmtree(target)

        target.mkdir(parents=True)
        with zipfile.ZipFile(package.path) as archive:
            archive.extractall(target)

        metadata = {"id": package.id, "version": package.version}
        (target / METADATA_FILENAME).write_text(json.dumps(metadata, indent=2), encoding="utf-8")
        logger.info("Installed %s %s into %s", package.id, package.version, target)

        return RestartReason.EXTENSION if replaced else RestartReason.NONE

    def uninstall(self, extension: InstalledExtension) -> None:
        target = self._extension_dir(extension.id)
        shutil.rmtree(target)
        logger.info("Uninstalled %s from %s", extension.id, target)


class FolderHost(Host):
    """Host made of a folder gallery, a folder install target and a fixed version."""

    def __init__(
        self,
        gallery_dir: Path,
        extensions_dir: Path,
        host_version: str,
        downloads_dir: Path,
    ) -> None:
        self._gallery = FolderGallery(gallery_dir, downloads_dir)
        self._manager = FolderExtensionManager(extensions_dir)
        self._version = ExtensionVersion.parse(host_version)

    @property
    def gallery(self) -> FolderGallery:
        return self._gallery

    @property
    def manager(self) -> FolderExtensionManager:
        return self._manager

    def current_version(self) -> ExtensionVersion:
        return self._version


def _safe_dirname(extension_id: str) -> str:
    """Map an extension id to a single path component.

    Raises:
        ValueError: If nothing but dots remains (".", ".." or an empty id).
    """
    name = "".join(c if c.isalnum() or c in "-_." else "_" for c in extension_id)
    if not name.strip("."):
        msg = f"Invalid extension id '{extension_id}'"
        raise ValueError(msg)
    return name
