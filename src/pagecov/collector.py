"""Base class for coverage collectors."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from pagecov.errors import CoverageStateError
from pagecov.registry import ResourceRegistry
from pagecov.session import EXECUTION_CONTEXTS_CLEARED

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from pagecov.models import CoverageEntry
    from pagecov.session import DevToolsSession, EventHandler, Subscription

__all__ = ["DEFAULT_SETTLE_TIMEOUT", "CoverageCollector"]

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_TIMEOUT = 1.0


class CoverageCollector(ABC):
    """
    Abstract base class for the JS and CSS coverage collectors.

    A collector is either idle or started. While started it listens to
    resource notifications, fetches the text of every accepted resource, and
    keeps it in its own `ResourceRegistry`. Handlers run on the event loop
    that drives the session; each text fetch runs as an independent task, and
    a failed fetch only drops its own resource.
    """

    kind = "coverage"

    def __init__(self, session: DevToolsSession, *, settle_timeout: float = DEFAULT_SETTLE_TIMEOUT) -> None:
        """
        Initialize an idle collector.

        Args:
            session: The protocol session commands and notifications go through.
            settle_timeout: Seconds `stop` waits for text fetches still in flight
                after the coverage snapshot. Fetches unanswered by then are cancelled
                and their resources are left out of the result.

        """
        self._session = session
        self._registry = ResourceRegistry()
        self._subscriptions: list[Subscription] = []
        self._pending_fetches: set[asyncio.Task[None]] = set()
        self._enabled = False
        self._reset_on_navigation = False
        self._settle_timeout = settle_timeout

    @property
    def enabled(self) -> bool:
        """Whether coverage collection is currently started."""
        return self._enabled

    @property
    def registry(self) -> ResourceRegistry:
        """The resources collected since the last start or reset."""
        return self._registry

    @abstractmethod
    async def start(self, *args: Any, **kwargs: Any) -> None:  # noqa: ANN401
        """Start collecting coverage."""
        raise NotImplementedError

    @abstractmethod
    async def stop(self) -> list[CoverageEntry]:
        """Stop collecting coverage and return one entry per attributable resource."""
        raise NotImplementedError

    def _begin(self, *, reset_on_navigation: bool) -> None:
        """Move from idle to started and forget resources from a previous run."""
        if self._enabled:
            msg = f"{self.kind} coverage is already enabled"
            raise CoverageStateError(msg)
        self._enabled = True
        self._reset_on_navigation = reset_on_navigation
        self._registry.clear()

    def _end(self) -> None:
        """Move from started to idle before any teardown command is awaited."""
        if not self._enabled:
            msg = f"{self.kind} coverage is not enabled"
            raise CoverageStateError(msg)
        self._enabled = False

    async def _enable_backend(self, *commands: Awaitable[Any]) -> None:
        """Run the enabling commands; on failure, return to idle and re-raise."""
        try:
            await asyncio.gather(*commands)
        except Exception:
            logger.debug("Failed to start %s coverage; releasing subscriptions.", self.kind)
            self._enabled = False
            self._release_subscriptions()
            raise

    def _subscribe(self, event: str, handler: EventHandler) -> None:
        self._subscriptions.append(self._session.on(event, handler))

    def _subscribe_to_reset(self) -> None:
        self._subscribe(EXECUTION_CONTEXTS_CLEARED, self._on_execution_contexts_cleared)

    def _release_subscriptions(self) -> None:
        """Cancel every subscription taken at start."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.cancel()

    def _on_execution_contexts_cleared(self, _params: dict[str, Any]) -> None:
        if not self._reset_on_navigation:
            return
        logger.debug("Page navigated; dropping %d collected %s resources.", len(self._registry), self.kind)
        # Fetches still in flight insert into the emptied registry when they complete
        self._registry.clear()

    def _schedule_fetch(self, resource_id: str, url: str, fetch: Callable[[], Awaitable[str]]) -> None:
        """Fetch a resource text in the background and register it on success."""
        task = asyncio.ensure_future(self._fetch_and_register(resource_id, url, fetch))
        self._pending_fetches.add(task)
        task.add_done_callback(self._pending_fetches.discard)

    async def _fetch_and_register(self, resource_id: str, url: str, fetch: Callable[[], Awaitable[str]]) -> None:
        try:
            text = await fetch()
        except Exception:
            # This might happen if the page has already navigated away.
            logger.debug("Could not fetch the text of %s resource %s (%s)", self.kind, resource_id, url or "<anonymous>", exc_info=True)
            return
        self._registry.add(resource_id, url, text)

    async def _settle_fetches(self) -> None:
        """Give the text fetches still in flight a bounded time to finish, then abandon the rest."""
        pending = [task for task in self._pending_fetches if not task.done()]
        if not pending:
            return
        _, unfinished = await asyncio.wait(pending, timeout=self._settle_timeout)
        if unfinished:
            logger.debug("Abandoning %d unanswered %s text fetches.", len(unfinished), self.kind)
            self._abandon_fetches()

    def _abandon_fetches(self) -> None:
        for task in list(self._pending_fetches):
            task.cancel()
