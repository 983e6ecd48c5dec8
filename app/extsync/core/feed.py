"""Feed download, change detection and parsing.

This module provides the FeedCache class, which mirrors the remote feed
into a local cache file and parses it into extension descriptors.

The feed is a JSON object keyed by extension name::

    {
        "Markdown Editor": {"id": "ext.markdown", "minVersion": "15.0"},
        "Image Optimizer": {"id": "ext.images", "maxVersion": "16.0"}
    }
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from tempfile import NamedTemporaryFile
from urllib.parse import unquote, urlparse

import httpx
from pydantic import ValidationError

from extsync.core.errors import PersistenceError
from extsync.core.paths import get_feed_cache_path
from extsync.models.extension import (
    DEFAULT_MAX_VERSION,
    DEFAULT_MIN_VERSION,
    ExtensionDescriptor,
    FeedEntry,
)

logger = logging.getLogger(__name__)


class FeedCache:
    """Local mirror of the remote extension feed.

    Storage location: ~/.cache/extsync/feed.json

    Network and parse failures never escape this class: callers see either
    an unchanged cache or the previously parsed extensions. Only a failed
    write of new content raises, as PersistenceError.

    Attributes:
        url: Feed location (http(s) URL, file:// URL or local path).
        cache_path: Local cache file.
        extensions: Descriptors from the last successful parse.
    """

    # Timeout for feed downloads (seconds)
    _FETCH_TIMEOUT: float = 30.0

    def __init__(
        self,
        url: str,
        cache_path: Path | None = None,
        default_min_version: str = DEFAULT_MIN_VERSION,
        default_max_version: str = DEFAULT_MAX_VERSION,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the feed cache.

        Args:
            url: Feed location.
            cache_path: Optional override for the cache file.
                        Default: ~/.cache/extsync/feed.json
            default_min_version: Lower bound for entries without ``minVersion``.
            default_max_version: Upper bound for entries without ``maxVersion``.
            client: Optional HTTP client (a new one is opened per fetch otherwise).
        """
        self.url = url
        self.cache_path = cache_path if cache_path is not None else get_feed_cache_path()
        self.default_min_version = default_min_version
        self.default_max_version = default_max_version
        self.extensions: tuple[ExtensionDescriptor, ...] = ()
        self._client = client

    def update(self) -> bool:
        """Fetch the feed and parse the cache.

        Returns:
            True if new feed content was written to the cache.
        """
        changed = self.fetch_if_changed()
        self.parse()
        return changed

    def fetch_if_changed(self) -> bool:
        """Download the feed and store it if it differs from the cache.

        Content that is byte-identical to the cache is not written. New
        content that is not a JSON object is rejected and the old cache
        is kept.

        Returns:
            True if the cache file was rewritten.

        Raises:
            PersistenceError: If new content cannot be written.
        """
        try:
            old_content = self.cache_path.read_bytes() if self.cache_path.exists() else b""
        except OSError as e:
            logger.warning("Failed to read feed cache %s: %s", self.cache_path, e)
            old_content = b""

        try:
            new_content = self._download()
        except (httpx.HTTPError, OSError) as e:
            logger.warning("Failed to download feed from %s: %s", self.url, e)
            return False

        if new_content == old_content:
            logger.debug("Feed unchanged: %s", self.url)
            return False

        try:
            data = json.loads(new_content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Ignoring malformed feed from %s: %s", self.url, e)
            return False
        if not isinstance(data, dict):
            logger.warning("Ignoring feed from %s: root is not a JSON object", self.url)
            return False

        self._write_cache(new_content)
        logger.info("Feed updated from %s", self.url)
        return True

    def parse(self) -> None:
        """Parse the cache file into a fresh tuple of descriptors.

        Without a cache file the extensions stay empty. If the file cannot
        be read or is not a JSON object, the previous extensions are kept.
        Individual invalid entries are skipped.
        """
        if not self.cache_path.exists():
            return

        try:
            data = json.loads(self.cache_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Failed to parse feed cache %s: %s", self.cache_path, e)
            return
        if not isinstance(data, dict):
            logger.warning("Feed cache %s is not a JSON object", self.cache_path)
            return

        extensions: list[ExtensionDescriptor] = []
        for name, raw in data.items():
            try:
                entry = FeedEntry.model_validate(raw)
                extensions.append(
                    entry.to_descriptor(
                        name,
                        default_min=self.default_min_version,
                        default_max=self.default_max_version,
                    )
                )
            except (ValidationError, ValueError) as e:
                logger.warning("Skipping invalid feed entry '%s': %s", name, e)
                continue

        self.extensions = tuple(extensions)
        logger.debug("Parsed %d extensions from %s", len(self.extensions), self.cache_path)

    def reset(self) -> None:
        """Delete the cache file. Failures are logged, not raised."""
        try:
            self.cache_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to delete feed cache %s: %s", self.cache_path, e)

    def last_fetched(self) -> datetime | None:
        """Return when the cache file was last written, or None if absent."""
        try:
            return datetime.fromtimestamp(self.cache_path.stat().st_mtime)
        except FileNotFoundError:
            return None

    def _download(self) -> bytes:
        """Fetch the raw feed bytes.

        Raises:
            httpx.HTTPError: On network or HTTP status errors.
            OSError: If a local feed file cannot be read.
        """
        parsed = urlparse(self.url)
        if parsed.scheme in ("http", "https"):
            if self._client is not None:
                response = self._client.get(self.url)
            else:
                with httpx.Client(timeout=self._FETCH_TIMEOUT, follow_redirects=True) as client:
                    response = client.get(self.url)
            response.raise_for_status()
            return response.content

        if parsed.scheme == "file":
            return Path(unquote(parsed.path)).read_bytes()

        return Path(self.url).expanduser().read_bytes()

    def _write_cache(self, content: bytes) -> None:
        tmp_path: Path | None = None
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                mode="wb",
                dir=self.cache_path.parent,
                delete=False,
                suffix=".tmp",
            ) as f:
                tmp_path = Path(f.name)
                f.write(content)
            os.replace(str(tmp_path), str(self.cache_path))
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            msg = f"Failed to write feed cache {self.cache_path}: {e}"
            raise PersistenceError(msg) from e
