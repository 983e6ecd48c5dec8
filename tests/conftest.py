"""Pytest configuration and shared fixtures.

This module contains in-memory host fakes and fixtures used across all
test modules.
"""

import json
import logging
import zipfile
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from extsync.core.config import Settings, save_settings
from extsync.core.feed import FeedCache
from extsync.core.installer import Installer
from extsync.core.ledger import Ledger
from extsync.core.registry import TomlConfigStore
from extsync.hosts.base import (
    DEFAULT_LOCALE,
    ExtensionManager,
    GalleryEntry,
    GalleryError,
    GalleryRepository,
    Host,
    InstallablePackage,
    InstalledExtension,
    LogSink,
)
from extsync.models.extension import ExtensionDescriptor, ExtensionVersion
from extsync.models.outcome import Progress, RestartReason


class FakeGallery(GalleryRepository):
    """Gallery backed by a dict of id -> latest version."""

    def __init__(self, versions: dict[str, str] | None = None) -> None:
        self.versions: dict[str, str] = dict(versions or {})
        self.fail_download: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def query_latest_version(self, extension_id: str) -> str:
        self.calls.append(("query", extension_id))
        if extension_id not in self.versions:
            raise GalleryError(f"unknown extension {extension_id}")
        return self.versions[extension_id]

    def find_by_id(
        self,
        extension_ids: list[str],
        locale: int = DEFAULT_LOCALE,
    ) -> list[GalleryEntry]:
        for extension_id in extension_ids:
            self.calls.append(("find", extension_id))
        return [
            GalleryEntry(id=i, name=i, version=self.versions[i])
            for i in extension_ids
            if i in self.versions
        ]

    def download(self, entry: GalleryEntry) -> InstallablePackage:
        self.calls.append(("download", entry.id))
        if entry.id in self.fail_download:
            raise GalleryError(f"download failed for {entry.id}")
        return InstallablePackage(
            id=entry.id,
            version=self.versions[entry.id],
            path=Path(f"/downloads/{entry.id}.zip"),
        )


class FakeManager(ExtensionManager):
    """Extension manager keeping installed extensions in a dict."""

    def __init__(self, installed: dict[str, str] | None = None) -> None:
        self.installed: dict[str, InstalledExtension] = {
            i: InstalledExtension(id=i, version=v) for i, v in (installed or {}).items()
        }
        self.fail_install: set[str] = set()
        self.fail_uninstall: set[str] = set()
        self.restart_reason = RestartReason.NONE
        self.calls: list[tuple[str, str]] = []

    def list_installed(self) -> list[InstalledExtension]:
        return list(self.installed.values())

    def install(
        self,
        package: InstallablePackage,
        requires_elevation: bool = False,
    ) -> RestartReason:
        self.calls.append(("install", package.id))
        if package.id in self.fail_install:
            raise RuntimeError(f"install failed for {package.id}")
        self.installed[package.id] = InstalledExtension(id=package.id, version=package.version)
        return self.restart_reason

    def uninstall(self, extension: InstalledExtension) -> None:
        self.calls.append(("uninstall", extension.id))
        if extension.id in self.fail_uninstall:
            raise RuntimeError(f"uninstall failed for {extension.id}")
        del self.installed[extension.id]


class RecordingLogSink(LogSink):
    """Log sink that keeps every message."""

    def __init__(self) -> None:
        self.messages: list[str] = []
        self.panes_shown = 0

    def log(self, message: str, add_newline: bool = True) -> None:
        self.messages.append(message + ("\n" if add_newline else ""))

    def show_pane(self) -> None:
        self.panes_shown += 1

    @property
    def text(self) -> str:
        return "".join(self.messages)


class FakeHost(Host):
    """Host bundling the fakes and recording UI calls."""

    def __init__(self, gallery: FakeGallery, manager: FakeManager, version: str = "15.5") -> None:
        self._gallery = gallery
        self._manager = manager
        self.version = ExtensionVersion.parse(version)
        self.progress: list[Progress] = []
        self.restart_prompts = 0

    @property
    def gallery(self) -> FakeGallery:
        return self._gallery

    @property
    def manager(self) -> FakeManager:
        return self._manager

    def current_version(self) -> ExtensionVersion:
        return self.version

    def report_progress(self, progress: Progress) -> None:
        self.progress.append(progress)

    def prompt_for_restart(self) -> None:
        self.restart_prompts += 1


def _make_descriptor(
    extension_id: str,
    name: str | None = None,
    min_version: str = "15.0",
    max_version: str = "16.0",
) -> ExtensionDescriptor:
    """Create a descriptor with the default version range."""
    return ExtensionDescriptor(
        id=extension_id,
        name=name or extension_id,
        min_version=ExtensionVersion.parse(min_version),
        max_version=ExtensionVersion.parse(max_version),
    )


def _write_feed(path: Path, data: dict[str, Any]) -> Path:
    """Write a feed JSON object to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    """Undo the logging setup done by CLI invocations."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def gallery() -> FakeGallery:
    """Empty fake gallery."""
    return FakeGallery()


@pytest.fixture
def manager() -> FakeManager:
    """Fake extension manager with nothing installed."""
    return FakeManager()


@pytest.fixture
def log_sink() -> RecordingLogSink:
    """Log sink recording all installer output."""
    return RecordingLogSink()


@pytest.fixture
def config_store(tmp_path: Path) -> TomlConfigStore:
    """TOML config store in a temporary directory."""
    return TomlConfigStore(tmp_path / "registry.toml")


@pytest.fixture
def ledger(tmp_path: Path, config_store: TomlConfigStore) -> Ledger:
    """Empty ledger in a temporary directory."""
    return Ledger(config_store=config_store, sub_key="Bundler", path=tmp_path / "installer.log")


@pytest.fixture
def feed(tmp_path: Path) -> FeedCache:
    """Feed cache reading from a local feed file in a temporary directory."""
    return FeedCache(url=str(tmp_path / "remote.json"), cache_path=tmp_path / "cache" / "feed.json")


@pytest.fixture
def installer(feed: FeedCache, ledger: Ledger, log_sink: RecordingLogSink) -> Installer:
    """Installer wired to the temporary feed and ledger."""
    return Installer(feed, ledger, log_sink)


@pytest.fixture
def make_descriptor() -> Callable[..., ExtensionDescriptor]:
    """Factory for descriptors with the default version range."""
    return _make_descriptor


@pytest.fixture
def write_feed() -> Callable[[Path, dict[str, Any]], Path]:
    """Helper writing a feed JSON object to a path."""
    return _write_feed


@pytest.fixture
def host(gallery: FakeGallery, manager: FakeManager) -> FakeHost:
    """Fake host running version 15.5."""
    return FakeHost(gallery, manager)


@pytest.fixture
def cli_settings(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Path:
    """Settings file for CLI tests with a folder gallery offering ext.a.

    All XDG directories point into ``tmp_path``. The feed lists
    "Alpha" (ext.a) with the default version range; the host runs 15.5.
    """
    for var in ("XDG_CONFIG_HOME", "XDG_STATE_HOME", "XDG_CACHE_HOME"):
        monkeypatch.setenv(var, str(tmp_path / var.lower()))

    gallery_dir = tmp_path / "gallery"
    gallery_dir.mkdir()
    with zipfile.ZipFile(gallery_dir / "alpha-1.0.zip", "w") as archive:
        archive.writestr("alpha.js", "// alpha")
    index = {"ext.a": {"name": "Alpha", "version": "1.0", "file": "alpha-1.0.zip"}}
    (gallery_dir / "index.json").write_text(json.dumps(index), encoding="utf-8")

    feed_path = _write_feed(tmp_path / "feed.json", {"Alpha": {"id": "ext.a"}})
    settings = Settings(
        feed_url=str(feed_path),
        gallery_dir=gallery_dir,
        extensions_dir=tmp_path / "extensions",
        host_version="15.5",
    )
    return save_settings(settings, tmp_path / "config.toml")
