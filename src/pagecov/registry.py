"""Tracks the scripts and stylesheets seen by a collector between resets."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pagecov.models import ResourceRecord

if TYPE_CHECKING:
    from collections.abc import Iterator


class ResourceRegistry:
    """
    Map resource ids to their URL and source text.

    Each collector owns one registry. A record is stored with a single map
    assignment, so a resource is either fully known (URL and text) or absent.
    `clear()` rebinds the map, which drops every record collected since the
    last start or reset at once.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._records: dict[str, ResourceRecord] = {}

    def add(self, resource_id: str, url: str, text: str) -> ResourceRecord:
        """Register a resource, replacing any earlier record with the same id."""
        record = ResourceRecord(resource_id=resource_id, url=url, text=text)
        self._records[resource_id] = record
        return record

    def get(self, resource_id: str) -> ResourceRecord | None:
        """Return the record of a resource, or None if it is unknown."""
        return self._records.get(resource_id)

    def url(self, resource_id: str) -> str | None:
        """Return the URL of a resource, or None if it is unknown."""
        record = self._records.get(resource_id)
        return record.url if record else None

    def text(self, resource_id: str) -> str | None:
        """Return the source text of a resource, or None if it is unknown."""
        record = self._records.get(resource_id)
        return record.text if record else None

    def ids(self) -> list[str]:
        """Return the registered ids in registration order."""
        return list(self._records)

    def records(self) -> list[ResourceRecord]:
        """Return a snapshot of the registered records in registration order."""
        return list(self._records.values())

    def clear(self) -> None:
        """Drop all records."""
        self._records = {}

    def __len__(self) -> int:
        """Return the number of registered resources."""
        return len(self._records)

    def __contains__(self, resource_id: object) -> bool:
        """Check whether a resource id is registered."""
        return resource_id in self._records

    def __iter__(self) -> Iterator[str]:
        """Iterate over a snapshot of the registered ids."""
        return iter(self.ids())
