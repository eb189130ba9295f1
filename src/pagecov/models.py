"""Defines the data models used throughout PageCov."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pagecov.ranges import Range, calculate_used_bytes


@dataclass(frozen=True)
class ResourceRecord:
    """A script or stylesheet whose source text has been fetched from the page."""

    resource_id: str
    url: str
    text: str


@dataclass(frozen=True)
class CoverageEntry:
    """
    The coverage report of a single script or stylesheet.

    Attributes:
        url: The resource URL, or a synthetic URL for anonymous scripts.
        text: The full source text of the resource.
        ranges: Used ranges of `text`, sorted and non-overlapping.

    """

    url: str
    text: str
    ranges: tuple[Range, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Freeze the ranges so the entry cannot be mutated through them."""
        if not isinstance(self.ranges, tuple):
            object.__setattr__(self, "ranges", tuple(self.ranges))

    @property
    def total_bytes(self) -> int:
        """Return the length of the resource text."""
        return len(self.text)

    @property
    def used_bytes(self) -> int:
        """Return the number of offsets covered by the used ranges."""
        return calculate_used_bytes(self.ranges)

    @property
    def usage_ratio(self) -> float:
        """Return the used share of the text (0.0 - 1.0); an empty text counts as fully used."""
        if not self.text:
            return 1.0
        return self.used_bytes / self.total_bytes

    def to_dict(self) -> dict[str, Any]:
        """Serialize the entry in the `{url, ranges, text}` report shape."""
        return {
            "url": self.url,
            "ranges": [r.to_dict() for r in self.ranges],
            "text": self.text,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CoverageEntry:
        """Build an entry from its serialized form."""
        return cls(
            url=data["url"],
            text=data["text"],
            ranges=tuple(Range(int(r["start"]), int(r["end"])) for r in data.get("ranges", [])),
        )
