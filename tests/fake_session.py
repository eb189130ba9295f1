"""An in-memory protocol session for driving the coverage collectors in tests."""

import asyncio
from collections.abc import Callable
from typing import Any

from pagecov.errors import ProtocolError
from pagecov.session import (
    CSS_GET_STYLE_SHEET_TEXT,
    CSS_STOP_RULE_USAGE_TRACKING,
    DEBUGGER_GET_SCRIPT_SOURCE,
    EXECUTION_CONTEXTS_CLEARED,
    PROFILER_TAKE_PRECISE_COVERAGE,
    SCRIPT_PARSED,
    STYLE_SHEET_ADDED,
    EventEmitterSession,
)


def script_coverage(script_id: str, *functions: list[tuple[int, int, int]], url: str = "") -> dict[str, Any]:
    """Build a `ScriptCoverage` payload; each function is a list of (start, end, count) ranges."""
    return {
        "scriptId": script_id,
        "url": url,
        "functions": [
            {
                "functionName": f"f{index}",
                "isBlockCoverage": True,
                "ranges": [{"startOffset": start, "endOffset": end, "count": count} for start, end, count in ranges],
            }
            for index, ranges in enumerate(functions)
        ],
    }


def rule_usage(style_sheet_id: str, start: int, end: int, *, used: bool) -> dict[str, Any]:
    """Build a `RuleUsage` payload."""
    return {"styleSheetId": style_sheet_id, "startOffset": start, "endOffset": end, "used": used}


async def settle() -> None:
    """Let scheduled handler tasks run to completion."""
    for _ in range(10):
        await asyncio.sleep(0)


class FakeSession(EventEmitterSession):
    """
    A session that answers commands from in-memory data.

    Resource texts are served from `script_sources` and `style_sheet_texts`;
    a missing text fails the fetch like a page that navigated away. A fetch
    can be held back with `hold_fetch()` until the returned event is set.
    """

    def __init__(self) -> None:
        """Initialize an empty page."""
        super().__init__()
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.script_sources: dict[str, str] = {}
        self.style_sheet_texts: dict[str, str] = {}
        self.precise_coverage: list[dict[str, Any]] = []
        self.rule_usage: list[dict[str, Any]] = []
        self.failing_commands: dict[str, Exception] = {}
        self.before_reply: dict[str, Callable[[], None]] = {}
        self._fetch_gates: dict[str, asyncio.Event] = {}

    async def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Record the command and answer it."""
        params = params or {}
        self.calls.append((method, params))
        await asyncio.sleep(0)
        if method in self.before_reply:
            self.before_reply[method]()
        if method in self.failing_commands:
            raise self.failing_commands[method]

        if method == DEBUGGER_GET_SCRIPT_SOURCE:
            return {"scriptSource": await self._fetch(method, params["scriptId"], self.script_sources)}
        if method == CSS_GET_STYLE_SHEET_TEXT:
            return {"text": await self._fetch(method, params["styleSheetId"], self.style_sheet_texts)}
        if method == PROFILER_TAKE_PRECISE_COVERAGE:
            return {"result": self.precise_coverage, "timestamp": 1.0}
        if method == CSS_STOP_RULE_USAGE_TRACKING:
            return {"ruleUsage": self.rule_usage}
        return {}

    async def _fetch(self, method: str, resource_id: str, texts: dict[str, str]) -> str:
        gate = self._fetch_gates.get(resource_id)
        if gate is not None:
            await gate.wait()
        if resource_id not in texts:
            raise ProtocolError(method, f"No resource with given id found: {resource_id}")
        return texts[resource_id]

    def hold_fetch(self, resource_id: str) -> asyncio.Event:
        """Hold back the text fetch of a resource until the returned event is set."""
        gate = asyncio.Event()
        self._fetch_gates[resource_id] = gate
        return gate

    def parse_script(self, script_id: str, url: str, source: str | None = None) -> None:
        """Simulate the page parsing a script; without a source its fetch fails."""
        if source is not None:
            self.script_sources[script_id] = source
        self.emit(SCRIPT_PARSED, {"scriptId": script_id, "url": url, "startLine": 0, "startColumn": 0})

    def add_style_sheet(self, style_sheet_id: str, source_url: str, text: str | None = None) -> None:
        """Simulate the page adding a stylesheet; without a text its fetch fails."""
        if text is not None:
            self.style_sheet_texts[style_sheet_id] = text
        self.emit(STYLE_SHEET_ADDED, {"header": {"styleSheetId": style_sheet_id, "sourceURL": source_url, "origin": "regular"}})

    def navigate(self) -> None:
        """Simulate a navigation clearing all execution contexts."""
        self.emit(EXECUTION_CONTEXTS_CLEARED, {})

    def methods(self) -> list[str]:
        """Return the names of the commands sent so far."""
        return [method for method, _ in self.calls]
