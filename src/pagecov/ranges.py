"""
Range normalization for coverage reports.

The instrumentation backend reports coverage as raw ranges that carry a hit
count (scripts) or a used flag (stylesheets). Raw ranges for one resource may
nest and overlap arbitrarily: a function range contains the ranges of its
blocks, and an inner range with a zero count marks code inside an executed
function that never ran. This module reduces them to the flat list of used
ranges reported to callers.

Main components:
- RawRange: A backend range with its hit count
- Range: A disjoint `[start, end)` range of used code
- convert_to_disjoint_ranges(): The interval sweep producing disjoint ranges
- calculate_used_bytes(): Helper for summing the width of disjoint ranges

Usage example:
    >>> convert_to_disjoint_ranges([RawRange(0, 10, 1), RawRange(2, 5, 0)])
    [Range(start=0, end=2), Range(start=5, end=10)]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cmp_to_key
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

_START = 0
_END = 1


@dataclass(frozen=True)
class RawRange:
    """
    A range as reported by the backend.

    Attributes:
        start_offset: Start offset in the resource text (inclusive).
        end_offset: End offset in the resource text (exclusive).
        count: Hit count for scripts; 1 (used) or 0 (unused) for stylesheets.

    """

    start_offset: int
    end_offset: int
    count: int

    @property
    def length(self) -> int:
        """Return the width of the range."""
        return self.end_offset - self.start_offset

    @classmethod
    def from_dict(cls, data: dict) -> RawRange:
        """Build a raw range from a protocol `CoverageRange` payload."""
        return cls(
            start_offset=int(data["startOffset"]),
            end_offset=int(data["endOffset"]),
            count=int(data.get("count", 0)),
        )


@dataclass(frozen=True)
class Range:
    """A used range of a resource text, `start` inclusive and `end` exclusive."""

    start: int
    end: int

    @property
    def length(self) -> int:
        """Return the number of offsets covered by the range."""
        return self.end - self.start

    def to_dict(self) -> dict[str, int]:
        """Serialize the range as `{"start": ..., "end": ...}`."""
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class _Point:
    """A boundary of a raw range: where it opens or where it closes."""

    offset: int
    kind: int
    range: RawRange


def _compare_points(a: _Point, b: _Point) -> int:
    """
    Order boundary points so that opening and closing form a valid parenthesis sequence.

    Points are ordered by offset. At equal offsets, closing points go before
    opening points; two opening points put the longer range first, and two
    closing points put the shorter range first.
    """
    if a.offset != b.offset:
        return a.offset - b.offset
    if a.kind != b.kind:
        return b.kind - a.kind
    if a.kind == _START:
        return b.range.length - a.range.length
    return a.range.length - b.range.length


def convert_to_disjoint_ranges(raw_ranges: Iterable[RawRange]) -> list[Range]:
    """
    Convert nested or overlapping hit-counted ranges into disjoint used ranges.

    Algorithm: Emit an opening and a closing point per raw range, sort them
    with `_compare_points`, then sweep from left to right keeping a stack of
    hit counts. The span between two consecutive points is used when the
    innermost open range has a positive count. Contiguous used spans are
    merged, and ranges of width 1 or less are dropped at the end.
    Time complexity: O(n log n), where n is the number of raw ranges.

    Args:
        raw_ranges: Raw ranges of a single resource, in any order.

    Returns:
        Disjoint ranges sorted by start, each wider than one offset.

    Examples:
        >>> convert_to_disjoint_ranges([RawRange(0, 5, 1), RawRange(5, 10, 1)])
        [Range(start=0, end=10)]
        >>> convert_to_disjoint_ranges([RawRange(3, 4, 1)])
        []

    """
    points: list[_Point] = []
    for raw in raw_ranges:
        # Empty or inverted ranges cover nothing and would unbalance the stack
        if raw.end_offset <= raw.start_offset:
            if raw.end_offset < raw.start_offset:
                logger.debug("Ignoring inverted coverage range %s", raw)
            continue
        points.append(_Point(offset=raw.start_offset, kind=_START, range=raw))
        points.append(_Point(offset=raw.end_offset, kind=_END, range=raw))

    points.sort(key=cmp_to_key(_compare_points))

    hit_count_stack: list[int] = []
    results: list[Range] = []
    last_offset = 0
    for point in points:
        if hit_count_stack and last_offset < point.offset and hit_count_stack[-1] > 0:
            if results and results[-1].end == last_offset:
                results[-1] = Range(results[-1].start, point.offset)
            else:
                results.append(Range(last_offset, point.offset))
        last_offset = point.offset
        if point.kind == _START:
            hit_count_stack.append(point.range.count)
        else:
            hit_count_stack.pop()

    return [r for r in results if r.length > 1]


def calculate_used_bytes(ranges: Iterable[Range]) -> int:
    """
    Calculate the number of offsets covered by a list of disjoint ranges.

    Examples:
        >>> calculate_used_bytes([Range(0, 3), Range(5, 8)])
        6

    """
    return sum(r.length for r in ranges)
