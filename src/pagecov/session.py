"""
Defines the protocol session used by the coverage collectors.

The collectors do not speak the wire protocol themselves. They send commands
and subscribe to notifications through a `DevToolsSession`, which a transport
(a WebSocket client, a browser driver, or a test double) implements.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Callable
from typing import Any, Final

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict[str, Any]], None]

# Commands
PROFILER_ENABLE: Final = "Profiler.enable"
PROFILER_DISABLE: Final = "Profiler.disable"
PROFILER_START_PRECISE_COVERAGE: Final = "Profiler.startPreciseCoverage"
PROFILER_STOP_PRECISE_COVERAGE: Final = "Profiler.stopPreciseCoverage"
PROFILER_TAKE_PRECISE_COVERAGE: Final = "Profiler.takePreciseCoverage"
DEBUGGER_ENABLE: Final = "Debugger.enable"
DEBUGGER_DISABLE: Final = "Debugger.disable"
DEBUGGER_SET_SKIP_ALL_PAUSES: Final = "Debugger.setSkipAllPauses"
DEBUGGER_GET_SCRIPT_SOURCE: Final = "Debugger.getScriptSource"
DOM_ENABLE: Final = "DOM.enable"
DOM_DISABLE: Final = "DOM.disable"
CSS_ENABLE: Final = "CSS.enable"
CSS_DISABLE: Final = "CSS.disable"
CSS_START_RULE_USAGE_TRACKING: Final = "CSS.startRuleUsageTracking"
CSS_STOP_RULE_USAGE_TRACKING: Final = "CSS.stopRuleUsageTracking"
CSS_GET_STYLE_SHEET_TEXT: Final = "CSS.getStyleSheetText"

# Notifications
SCRIPT_PARSED: Final = "Debugger.scriptParsed"
STYLE_SHEET_ADDED: Final = "CSS.styleSheetAdded"
EXECUTION_CONTEXTS_CLEARED: Final = "Runtime.executionContextsCleared"


class Subscription:
    """A handle to an event handler registration; `cancel()` removes the handler."""

    def __init__(self, event: str, cancel: Callable[[], None]) -> None:
        """
        Initialize the handle.

        Args:
            event: The notification name the handler listens to.
            cancel: Callback that removes the handler from the session.

        """
        self.event = event
        self._cancel = cancel
        self.cancelled = False

    def cancel(self) -> None:
        """Remove the handler. Calling it again has no effect."""
        if self.cancelled:
            return
        self.cancelled = True
        self._cancel()


class DevToolsSession(ABC):
    """Abstract base class for the protocol session a collector talks to."""

    @abstractmethod
    async def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Send a command and wait for its result.

        Args:
            method: The protocol method, e.g. 'Profiler.takePreciseCoverage'.
            params: The command parameters.

        Returns:
            The result payload of the command.

        Raises:
            ProtocolError: If the backend rejects the command.

        """
        raise NotImplementedError

    @abstractmethod
    def on(self, event: str, handler: EventHandler) -> Subscription:
        """
        Register a handler for a notification.

        Args:
            event: The notification name, e.g. 'Debugger.scriptParsed'.
            handler: Called with the notification parameters.

        Returns:
            A Subscription that removes the handler when cancelled.

        """
        raise NotImplementedError


class EventEmitterSession(DevToolsSession):
    """
    A session base class that keeps handler bookkeeping in memory.

    Transports subclass it, implement `send()`, and call `emit()` for every
    notification they receive.
    """

    def __init__(self) -> None:
        """Initialize the handler table."""
        self._handlers: defaultdict[str, list[EventHandler]] = defaultdict(list)

    def on(self, event: str, handler: EventHandler) -> Subscription:
        """Register a handler and return its subscription handle."""
        self._handlers[event].append(handler)

        def _remove() -> None:
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

        return Subscription(event, _remove)

    def listener_count(self, event: str) -> int:
        """Return the number of handlers registered for an event."""
        return len(self._handlers.get(event, []))

    def emit(self, event: str, params: dict[str, Any] | None = None) -> None:
        """Deliver a notification to every handler registered for it."""
        # Handlers may cancel their own subscription while being called
        for handler in list(self._handlers.get(event, [])):
            handler(params or {})
