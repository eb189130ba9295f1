"""JavaScript execution coverage."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Final

from pagecov.collector import DEFAULT_SETTLE_TIMEOUT, CoverageCollector
from pagecov.config import JSCoverageOptions, resolve_options
from pagecov.models import CoverageEntry
from pagecov.ranges import RawRange, convert_to_disjoint_ranges
from pagecov.session import (
    DEBUGGER_DISABLE,
    DEBUGGER_ENABLE,
    DEBUGGER_GET_SCRIPT_SOURCE,
    DEBUGGER_SET_SKIP_ALL_PAUSES,
    PROFILER_DISABLE,
    PROFILER_ENABLE,
    PROFILER_START_PRECISE_COVERAGE,
    PROFILER_STOP_PRECISE_COVERAGE,
    PROFILER_TAKE_PRECISE_COVERAGE,
    SCRIPT_PARSED,
)

if TYPE_CHECKING:
    from pagecov.session import DevToolsSession

__all__ = [
    "ANONYMOUS_SCRIPT_URL_PREFIX",
    "EVALUATION_SCRIPT_URL",
    "JSCoverage",
    "anonymous_script_url",
    "parse_anonymous_script_url",
]

logger = logging.getLogger(__name__)

# Source URL given to scripts injected by the automation client itself; they are never reported.
EVALUATION_SCRIPT_URL: Final = "__puppeteer_evaluation_script__"

ANONYMOUS_SCRIPT_URL_PREFIX: Final = "debugger://VM"


def anonymous_script_url(script_id: str) -> str:
    """
    Return the URL reported for a script that has no URL of its own.

    The format is `debugger://VM<scriptId>`, e.g. `debugger://VM42`.
    """
    return f"{ANONYMOUS_SCRIPT_URL_PREFIX}{script_id}"


def parse_anonymous_script_url(url: str) -> str | None:
    """Return the script id encoded in a URL from `anonymous_script_url`, or None for other URLs."""
    if not url.startswith(ANONYMOUS_SCRIPT_URL_PREFIX):
        return None
    script_id = url[len(ANONYMOUS_SCRIPT_URL_PREFIX) :]
    return script_id or None


def _flatten_function_ranges(script_coverage: dict[str, Any]) -> list[RawRange]:
    """Collect the ranges of every function of a script into a single list."""
    return [RawRange.from_dict(raw) for function in script_coverage.get("functions", []) for raw in function.get("ranges", [])]


class JSCoverage(CoverageCollector):
    """
    Collect the byte ranges of page scripts that were executed.

    Precise coverage is recorded by the profiler. The debugger is enabled only
    so that script sources can be fetched; all pauses are skipped so the page
    is never interrupted.
    """

    kind = "JS"

    def __init__(self, session: DevToolsSession, *, settle_timeout: float = DEFAULT_SETTLE_TIMEOUT) -> None:
        """Initialize an idle JS collector on the given session."""
        super().__init__(session, settle_timeout=settle_timeout)
        self._report_anonymous_scripts = False

    async def start(
        self,
        options: JSCoverageOptions | None = None,
        *,
        reset_on_navigation: bool | None = None,
        report_anonymous_scripts: bool | None = None,
    ) -> None:
        """
        Start collecting JavaScript coverage.

        Args:
            options: Coverage options; defaults to `JSCoverageOptions()`.
            reset_on_navigation: Override for `options.reset_on_navigation`.
            report_anonymous_scripts: Override for `options.report_anonymous_scripts`.

        Raises:
            CoverageStateError: If JS coverage is already started.

        """
        resolved: JSCoverageOptions = resolve_options(
            options,
            JSCoverageOptions,
            {"reset_on_navigation": reset_on_navigation, "report_anonymous_scripts": report_anonymous_scripts},
        )
        self._begin(reset_on_navigation=resolved.reset_on_navigation)
        self._report_anonymous_scripts = resolved.report_anonymous_scripts

        self._subscribe(SCRIPT_PARSED, self._on_script_parsed)
        self._subscribe_to_reset()
        await self._enable_backend(
            self._session.send(PROFILER_ENABLE),
            self._session.send(PROFILER_START_PRECISE_COVERAGE, {"callCount": False, "detailed": True}),
            self._session.send(DEBUGGER_ENABLE),
            self._session.send(DEBUGGER_SET_SKIP_ALL_PAUSES, {"skip": True}),
        )
        logger.debug("JS coverage started (%s).", resolved)

    def _on_script_parsed(self, params: dict[str, Any]) -> None:
        url = params.get("url") or ""
        # Ignore scripts injected by the automation client
        if url == EVALUATION_SCRIPT_URL:
            return
        # Ignore other anonymous scripts unless they are explicitly requested
        if not url and not self._report_anonymous_scripts:
            return
        script_id = str(params["scriptId"])
        self._schedule_fetch(script_id, url, lambda: self._get_script_source(script_id))

    async def _get_script_source(self, script_id: str) -> str:
        response = await self._session.send(DEBUGGER_GET_SCRIPT_SOURCE, {"scriptId": script_id})
        return response["scriptSource"]

    async def stop(self) -> list[CoverageEntry]:
        """
        Stop collecting JavaScript coverage.

        Returns:
            One entry per script with a known text and URL. Anonymous scripts
            are only included when `report_anonymous_scripts` was set, under
            the URL returned by `anonymous_script_url`.

        Raises:
            CoverageStateError: If JS coverage is not started.

        """
        self._end()
        try:
            # The snapshot is requested first so it freezes what gets reported
            profile_response, *_ = await asyncio.gather(
                self._session.send(PROFILER_TAKE_PRECISE_COVERAGE),
                self._session.send(PROFILER_STOP_PRECISE_COVERAGE),
                self._session.send(PROFILER_DISABLE),
                self._session.send(DEBUGGER_DISABLE),
            )
        except Exception:
            self._abandon_fetches()
            raise
        finally:
            self._release_subscriptions()
        await self._settle_fetches()

        coverage: list[CoverageEntry] = []
        for script_coverage in profile_response.get("result", []):
            script_id = str(script_coverage["scriptId"])
            record = self._registry.get(script_id)
            url = record.url if record else ""
            if not url and self._report_anonymous_scripts:
                url = anonymous_script_url(script_id)
            if record is None or not url:
                continue
            ranges = convert_to_disjoint_ranges(_flatten_function_ranges(script_coverage))
            coverage.append(CoverageEntry(url=url, text=record.text, ranges=tuple(ranges)))

        logger.debug("JS coverage stopped: %d scripts reported.", len(coverage))
        return coverage
