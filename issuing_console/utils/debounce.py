"""Debounced free-text search trigger"""

import asyncio
from typing import Awaitable, Callable, Optional, Set

from issuing_console.config import settings
from issuing_console.infrastructure.observability.metrics import search_request_counter


class DebouncedSearch:
    """
    Turn keystrokes into rate-limited search calls.

    Every update restarts the quiet-period timer. Text shorter than the minimum
    length clears results immediately instead of waiting. Only the timer is
    cancellable: once a search has been issued it runs to completion and the
    pager decides whether its response is still wanted.
    """

    def __init__(
        self,
        on_search: Callable[[str], Awaitable[None]],
        on_clear: Callable[[], None],
        delay: Optional[float] = None,
        min_length: Optional[int] = None,
    ):
        self._on_search = on_search
        self._on_clear = on_clear
        self.delay = settings.search_debounce_seconds if delay is None else delay
        self.min_length = settings.search_min_length if min_length is None else min_length
        self._timer: Optional[asyncio.Task] = None
        self._searches: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def update(self, text: Optional[str]) -> None:
        self.cancel()
        query = (text or "").strip()
        if len(query) < self.min_length:
            self._on_clear()
            return
        self._timer = asyncio.get_running_loop().create_task(self._wait_then_search(query))

    def cancel(self) -> None:
        """Drop a pending timer (restart, unmount, or query identity change)"""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _wait_then_search(self, query: str) -> None:
        await asyncio.sleep(self.delay)
        # Hand the search off so a later cancel() only hits the next timer
        search = asyncio.get_running_loop().create_task(self._on_search(query))
        self._searches.add(search)
        search.add_done_callback(self._searches.discard)
        self._timer = None
        search_request_counter.inc()

    async def wait_idle(self) -> None:
        """Await the pending timer and any issued searches"""
        if self._timer is not None:
            await asyncio.wait({self._timer})
        if self._searches:
            await asyncio.gather(*list(self._searches))
