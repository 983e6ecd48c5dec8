"""Unit tests for the folder-backed host."""

import json
import zipfile
from pathlib import Path

import pytest
from extsync.hosts.base import GalleryEntry, GalleryError, InstallablePackage, InstalledExtension
from extsync.hosts.folder import FolderExtensionManager, FolderGallery, FolderHost
from extsync.models.extension import ExtensionVersion
from extsync.models.outcome import RestartReason


def _make_archive(path: Path, files: dict[str, str]) -> Path:
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return path


@pytest.fixture
def gallery_dir(tmp_path: Path) -> Path:
    """Gallery with one valid and one invalid entry."""
    root = tmp_path / "gallery"
    root.mkdir()
    _make_archive(root / "markdown-1.4.zip", {"main.js": "console.log('hi')"})
    index = {
        "ext.markdown": {"name": "Markdown Editor", "version": "1.4", "file": "markdown-1.4.zip"},
        "ext.broken": {"name": "Broken"},
    }
    (root / "index.json").write_text(json.dumps(index), encoding="utf-8")
    return root


@pytest.fixture
def folder_gallery(gallery_dir: Path, tmp_path: Path) -> FolderGallery:
    """Folder gallery downloading into the temporary directory."""
    return FolderGallery(gallery_dir, tmp_path / "downloads")


class TestFolderGallery:
    """Tests for FolderGallery."""

    def test_find_by_id(self, folder_gallery: FolderGallery) -> None:
        """Known ids are returned; unknown and invalid ones are skipped."""
        entries = folder_gallery.find_by_id(["ext.markdown", "ext.broken", "ext.missing"])

        assert entries == [GalleryEntry(id="ext.markdown", name="Markdown Editor", version="1.4")]

    def test_query_latest_version(self, folder_gallery: FolderGallery) -> None:
        """The index version is the latest version."""
        assert folder_gallery.query_latest_version("ext.markdown") == "1.4"

    def test_query_unknown_raises(self, folder_gallery: FolderGallery) -> None:
        """Unknown ids raise GalleryError."""
        with pytest.raises(GalleryError, match="not in gallery"):
            folder_gallery.query_latest_version("ext.missing")

    def test_download_copies_archive(self, folder_gallery: FolderGallery) -> None:
        """download copies the archive into the downloads directory."""
        entry = folder_gallery.find_by_id(["ext.markdown"])[0]

        package = folder_gallery.download(entry)

        assert package.path == folder_gallery.downloads_dir / "ext.markdown-1.4.zip"
        assert package.path.exists()
        assert package.version == "1.4"

    def test_missing_index_raises(self, tmp_path: Path) -> None:
        """A gallery without index.json is an error."""
        gallery = FolderGallery(tmp_path / "empty", tmp_path / "downloads")

        with pytest.raises(GalleryError, match="Cannot read gallery index"):
            gallery.find_by_id(["ext.markdown"])


class TestFolderExtensionManager:
    """Tests for FolderExtensionManager."""

    def test_install_list_uninstall(self, folder_gallery: FolderGallery, tmp_path: Path) -> None:
        """Installed extensions are listed until uninstalled."""
        manager = FolderExtensionManager(tmp_path / "extensions")
        package = folder_gallery.download(folder_gallery.find_by_id(["ext.markdown"])[0])

        reason = manager.install(package)

        assert reason == RestartReason.NONE
        assert manager.list_installed() == [InstalledExtension(id="ext.markdown", version="1.4")]
        assert (tmp_path / "extensions" / "ext.markdown" / "main.js").exists()

        installed = manager.try_get_installed("ext.markdown")
        assert installed is not None
        manager.uninstall(installed)

        assert manager.list_installed() == []
        assert manager.try_get_installed("ext.markdown") is None

    def test_reinstall_requires_restart(
        self, folder_gallery: FolderGallery, tmp_path: Path
    ) -> None:
        """Replacing an installed copy asks for a restart."""
        manager = FolderExtensionManager(tmp_path / "extensions")
        package = folder_gallery.download(folder_gallery.find_by_id(["ext.markdown"])[0])
        manager.install(package)

        assert manager.install(package) == RestartReason.EXTENSION

    def test_missing_root_lists_nothing(self, tmp_path: Path) -> None:
        """A missing install directory has no extensions."""
        assert FolderExtensionManager(tmp_path / "none").list_installed() == []

    def test_unreadable_metadata_skipped(self, tmp_path: Path) -> None:
        """Directories with broken metadata are ignored."""
        root = tmp_path / "extensions"
        (root / "broken").mkdir(parents=True)
        (root / "broken" / "extension.json").write_text("{")

        assert FolderExtensionManager(root).list_installed() == []

    @pytest.mark.parametrize("extension_id", [".", "..", "", "..."])
    def test_install_rejects_dot_ids(self, extension_id: str, tmp_path: Path) -> None:
        """Ids that would name the install root or its parent are refused."""
        root = tmp_path / "extensions"
        (root / "other").mkdir(parents=True)
        (root / "other" / "extension.json").write_text('{"id": "other", "version": "1.0"}')
        package = InstallablePackage(
            id=extension_id,
            version="1.0",
            path=_make_archive(tmp_path / "evil.zip", {"x.js": ""}),
        )
        manager = FolderExtensionManager(root)

        with pytest.raises(ValueError, match="extension id"):
            manager.install(package)

        assert (root / "other" / "extension.json").exists()
        assert manager.list_installed() == [InstalledExtension(id="other", version="1.0")]

    def test_uninstall_rejects_parent_id(self, tmp_path: Path) -> None:
        """Uninstalling '..' never removes the parent of the install root."""
        root = tmp_path / "extensions"
        root.mkdir()

        with pytest.raises(ValueError):
            FolderExtensionManager(root).uninstall(InstalledExtension(id="..", version="1.0"))

        assert root.exists()

    def test_dotted_ids_keep_their_folder(
        self, folder_gallery: FolderGallery, tmp_path: Path
    ) -> None:
        """Ordinary ids with dots still install into their own folder."""
        manager = FolderExtensionManager(tmp_path / "extensions")
        package = folder_gallery.download(folder_gallery.find_by_id(["ext.markdown"])[0])

        manager.install(package)

        assert (tmp_path / "extensions" / "ext.markdown" / "extension.json").exists()


class TestFolderHost:
    """Tests for FolderHost."""

    def test_version_and_components(self, gallery_dir: Path, tmp_path: Path) -> None:
        """The host wires gallery, manager and version together."""
        host = FolderHost(gallery_dir, tmp_path / "extensions", "15.5", tmp_path / "dl")

        assert host.current_version() == ExtensionVersion.parse("15.5")
        assert host.gallery.root == gallery_dir
        assert host.manager.root == tmp_path / "extensions"

    def test_invalid_version_rejected(self, gallery_dir: Path, tmp_path: Path) -> None:
        """An unparsable host version fails fast."""
        with pytest.raises(ValueError):
            FolderHost(gallery_dir, tmp_path / "extensions", "latest", tmp_path / "dl")
