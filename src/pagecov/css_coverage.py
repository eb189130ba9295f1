"""CSS rule-usage coverage."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any

from pagecov.collector import CoverageCollector
from pagecov.config import CSSCoverageOptions, resolve_options
from pagecov.models import CoverageEntry
from pagecov.ranges import RawRange, convert_to_disjoint_ranges
from pagecov.session import (
    CSS_DISABLE,
    CSS_ENABLE,
    CSS_GET_STYLE_SHEET_TEXT,
    CSS_START_RULE_USAGE_TRACKING,
    CSS_STOP_RULE_USAGE_TRACKING,
    DOM_DISABLE,
    DOM_ENABLE,
    STYLE_SHEET_ADDED,
)

__all__ = ["CSSCoverage"]

logger = logging.getLogger(__name__)


def _group_rule_usage(rule_usage: list[dict[str, Any]]) -> defaultdict[str, list[RawRange]]:
    """Group rule-usage entries by stylesheet; a used rule counts as one hit, an unused rule as zero."""
    by_stylesheet: defaultdict[str, list[RawRange]] = defaultdict(list)
    for usage in rule_usage:
        by_stylesheet[str(usage["styleSheetId"])].append(
            RawRange(
                start_offset=int(usage["startOffset"]),
                end_offset=int(usage["endOffset"]),
                count=1 if usage.get("used") else 0,
            )
        )
    return by_stylesheet


class CSSCoverage(CoverageCollector):
    """Collect the byte ranges of page stylesheets whose rules were used."""

    kind = "CSS"

    async def start(self, options: CSSCoverageOptions | None = None, *, reset_on_navigation: bool | None = None) -> None:
        """
        Start collecting CSS coverage.

        Raises:
            CoverageStateError: If CSS coverage is already started.

        """
        resolved: CSSCoverageOptions = resolve_options(options, CSSCoverageOptions, {"reset_on_navigation": reset_on_navigation})
        self._begin(reset_on_navigation=resolved.reset_on_navigation)

        self._subscribe(STYLE_SHEET_ADDED, self._on_style_sheet_added)
        self._subscribe_to_reset()
        # Stylesheet tracking requires the DOM domain
        await self._enable_backend(
            self._session.send(DOM_ENABLE),
            self._session.send(CSS_ENABLE),
            self._session.send(CSS_START_RULE_USAGE_TRACKING),
        )
        logger.debug("CSS coverage started (%s).", resolved)

    def _on_style_sheet_added(self, params: dict[str, Any]) -> None:
        header = params.get("header") or {}
        url = header.get("sourceURL") or ""
        # Dynamically injected style without a sourceURL cannot be attributed
        if not url:
            return
        style_sheet_id = str(header["styleSheetId"])
        self._schedule_fetch(style_sheet_id, url, lambda: self._get_style_sheet_text(style_sheet_id))

    async def _get_style_sheet_text(self, style_sheet_id: str) -> str:
        response = await self._session.send(CSS_GET_STYLE_SHEET_TEXT, {"styleSheetId": style_sheet_id})
        return response["text"]

    async def stop(self) -> list[CoverageEntry]:
        """
        Stop collecting CSS coverage.

        Returns:
            One entry per registered stylesheet, including stylesheets without
            any rule usage (their ranges are empty).

        Raises:
            CoverageStateError: If CSS coverage is not started.

        """
        self._end()
        try:
            rule_tracking_response = await self._session.send(CSS_STOP_RULE_USAGE_TRACKING)
            await asyncio.gather(
                self._session.send(CSS_DISABLE),
                self._session.send(DOM_DISABLE),
            )
        except Exception:
            self._abandon_fetches()
            raise
        finally:
            self._release_subscriptions()
        await self._settle_fetches()

        ranges_by_stylesheet = _group_rule_usage(rule_tracking_response.get("ruleUsage", []))

        coverage: list[CoverageEntry] = []
        for record in self._registry.records():
            ranges = convert_to_disjoint_ranges(ranges_by_stylesheet.get(record.resource_id, []))
            coverage.append(CoverageEntry(url=record.url, text=record.text, ranges=tuple(ranges)))

        logger.debug("CSS coverage stopped: %d stylesheets reported.", len(coverage))
        return coverage
