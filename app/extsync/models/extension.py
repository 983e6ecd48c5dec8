"""Extension models for feed entries and version gating.

This module defines the data structures describing which extensions a
feed publishes and the host versions each extension supports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Version bounds applied when the feed omits them
DEFAULT_MIN_VERSION = "15.0"
DEFAULT_MAX_VERSION = "16.0"


@dataclass(frozen=True, slots=True, order=True)
class ExtensionVersion:
    """Dotted numeric version such as ``15.0`` or ``16.11.34``.

    Trailing zero components are dropped from the comparison key, so
    ``15.0``, ``15`` and ``15.0.0`` compare equal.

    Attributes:
        key: Normalized integer components used for ordering.
        text: Original text, kept for display.
    """

    key: tuple[int, ...]
    text: str = field(compare=False)

    @classmethod
    def parse(cls, value: str) -> ExtensionVersion:
        """Parse a dotted version string.

        Args:
            value: Version text (e.g. "15.0").

        Returns:
            ExtensionVersion instance.

        Raises:
            ValueError: If the text is empty or has a non-numeric component.
        """
        text = value.strip()
        if not text:
            msg = "Version cannot be empty"
            raise ValueError(msg)

        parts: list[int] = []
        for part in text.split("."):
            if not part.isdigit():
                msg = f"Invalid version '{value}'"
                raise ValueError(msg)
            parts.append(int(part))

        while len(parts) > 1 and parts[-1] == 0:
            parts.pop()

        return cls(key=tuple(parts), text=text)

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class ExtensionDescriptor:
    """An extension published by the feed.

    Descriptors are rebuilt from scratch on every feed parse and never
    modified afterwards.

    Attributes:
        id: Stable unique identifier of the extension.
        name: Display name (the feed key).
        min_version: Lowest supported host version (inclusive).
        max_version: Highest supported host version (inclusive).
    """

    id: str
    name: str
    min_version: ExtensionVersion
    max_version: ExtensionVersion

    def __post_init__(self) -> None:
        """Validate descriptor data after initialization."""
        if not self.id:
            msg = "Extension id cannot be empty"
            raise ValueError(msg)

    def supports(self, host_version: ExtensionVersion) -> bool:
        """Check if the host version lies within the supported range."""
        return self.min_version <= host_version <= self.max_version


class FeedEntry(BaseModel):
    """Raw value of a single feed entry.

    Attributes:
        id: Extension identifier.
        min_version: Optional lower bound (``minVersion`` in the feed).
        max_version: Optional upper bound (``maxVersion`` in the feed).
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Annotated[str, Field(min_length=1, description="Extension identifier")]
    min_version: Annotated[
        str | None,
        Field(alias="minVersion", description="Lowest supported host version"),
    ] = None
    max_version: Annotated[
        str | None,
        Field(alias="maxVersion", description="Highest supported host version"),
    ] = None

    @field_validator("min_version", "max_version")
    @classmethod
    def validate_version(cls, v: str | None) -> str | None:
        """Reject version strings that cannot be parsed."""
        if v is not None:
            ExtensionVersion.parse(v)
        return v

    def to_descriptor(
        self,
        name: str,
        default_min: str = DEFAULT_MIN_VERSION,
        default_max: str = DEFAULT_MAX_VERSION,
    ) -> ExtensionDescriptor:
        """Build a descriptor, filling in missing version bounds.

        Args:
            name: Display name of the extension (the feed key).
            default_min: Lower bound used when the entry has none.
            default_max: Upper bound used when the entry has none.

        Returns:
            ExtensionDescriptor for this entry.
        """
        return ExtensionDescriptor(
            id=self.id,
            name=name,
            min_version=ExtensionVersion.parse(self.min_version or default_min),
            max_version=ExtensionVersion.parse(self.max_version or default_max),
        )
