"""Cursor and offset pagers used by every listing view"""

import enum
import logging
from typing import Awaitable, Callable, Generic, List, Optional, TypeVar

from issuing_console.domain.exceptions import BackendAPIError
from issuing_console.domain.models import CursorResult, PagedResult
from issuing_console.infrastructure.observability.metrics import record_stale_discard

logger = logging.getLogger(__name__)

Q = TypeVar("Q")
T = TypeVar("T")

CursorFetch = Callable[[Q, Optional[str]], Awaitable[CursorResult[T]]]
PageFetch = Callable[[Q, int], Awaitable[PagedResult[T]]]


class PagerState(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADING_MORE = "loading_more"
    LOADED = "loaded"
    ERROR = "error"


class _Pager(Generic[Q]):
    """Shared query tagging: every request remembers the generation it was issued in"""

    def __init__(self, name: str, error_message: str):
        self.name = name
        self.error_message = error_message
        self.query: Optional[Q] = None
        self.state = PagerState.IDLE
        self.error: Optional[str] = None
        self._generation = 0

    @property
    def is_loading(self) -> bool:
        return self.state in (PagerState.LOADING, PagerState.LOADING_MORE)

    def _begin_query(self, query: Q) -> int:
        self._generation += 1
        self.query = query
        self.error = None
        self.state = PagerState.LOADING
        return self._generation

    def _is_stale(self, generation: int) -> bool:
        if generation != self._generation:
            record_stale_discard(self.name)
            logger.debug(
                "Discarding stale response",
                extra={"pager": self.name, "generation": generation, "current": self._generation},
            )
            return True
        return False

    def _fail(self, error: BackendAPIError) -> None:
        self.state = PagerState.ERROR
        self.error = error.user_message(self.error_message)
        logger.error(
            f"{self.error_message}: {error}",
            extra={"pager": self.name, "status_code": error.status_code},
        )


class CursorPager(_Pager[Q], Generic[Q, T]):
    """
    Accumulating cursor pager: fetch chunk 0 on reset, append on load_more.

    States: IDLE -> LOADING -> LOADED, LOADED -> LOADING_MORE -> LOADED, and
    ERROR from either loading state. A reset bumps the generation so any
    continuation still in flight for the previous query is dropped when it
    lands, and only the newest of several overlapping resets is applied.
    """

    def __init__(self, fetch: CursorFetch, name: str = "cursor", error_message: str = "Failed to load results"):
        super().__init__(name, error_message)
        self._fetch = fetch
        self.items: List[T] = []
        self.next_cursor: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None

    async def reset(self, query: Q) -> None:
        generation = self._begin_query(query)
        self.items = []
        self.next_cursor = None

        try:
            result = await self._fetch(query, None)
        except BackendAPIError as e:
            if not self._is_stale(generation):
                # Initial load failure shows the empty/error state
                self._fail(e)
            return

        if self._is_stale(generation):
            return
        self.items = list(result.items)
        self.next_cursor = result.next_cursor or None
        self.state = PagerState.LOADED

    async def load_more(self) -> None:
        if self.next_cursor is None or self.is_loading:
            return

        generation = self._generation
        cursor = self.next_cursor
        self.state = PagerState.LOADING_MORE
        self.error = None

        try:
            result = await self._fetch(self.query, cursor)
        except BackendAPIError as e:
            if not self._is_stale(generation):
                # Keep what is already visible; the cursor stays for a retry
                self._fail(e)
            return

        if self._is_stale(generation):
            return
        self.items = [*self.items, *result.items]
        self.next_cursor = result.next_cursor or None
        self.state = PagerState.LOADED

    async def reload(self) -> None:
        """Explicit refresh of the current query"""
        if self.query is not None:
            await self.reset(self.query)

    def clear(self) -> None:
        """Drop results without fetching; in-flight responses become stale"""
        self._generation += 1
        self.query = None
        self.items = []
        self.next_cursor = None
        self.error = None
        self.state = PagerState.IDLE


class OffsetPager(_Pager[Q], Generic[Q, T]):
    """
    Page-index pager for cards, card groups and virtual accounts.

    Changing the page replaces the displayed content. total_pages from the
    server decides which indexes may be requested; anything else is rejected
    before a request is made.
    """

    def __init__(self, fetch: PageFetch, name: str = "offset", error_message: str = "Failed to load results"):
        super().__init__(name, error_message)
        self._fetch = fetch
        self.result: Optional[PagedResult[T]] = None
        self.page = 0

    @property
    def items(self) -> List[T]:
        return list(self.result.content) if self.result else []

    @property
    def total_pages(self) -> int:
        return self.result.total_pages if self.result else 0

    @property
    def total_elements(self) -> int:
        return self.result.total_elements if self.result else 0

    @property
    def has_previous(self) -> bool:
        return self.result is not None and self.page > 0

    @property
    def has_next(self) -> bool:
        return self.result is not None and self.page + 1 < self.result.total_pages

    def is_valid_page(self, index: int) -> bool:
        if index < 0:
            return False
        if self.result is None:
            return index == 0
        return index < self.result.total_pages

    async def reset(self, query: Q) -> None:
        generation = self._begin_query(query)
        self.result = None
        self.page = 0
        await self._load(generation, 0, initial=True)

    async def load_page(self, index: int) -> bool:
        """Load page `index`; returns False when rejected client-side"""
        if self.query is None or not self.is_valid_page(index):
            return False
        self._generation += 1
        self.state = PagerState.LOADING
        self.error = None
        await self._load(self._generation, index, initial=False)
        return True

    async def next_page(self) -> bool:
        return await self.load_page(self.page + 1)

    async def previous_page(self) -> bool:
        return await self.load_page(self.page - 1)

    async def reload(self) -> None:
        if self.query is not None and not await self.load_page(self.page):
            await self.reset(self.query)

    async def _load(self, generation: int, index: int, initial: bool) -> None:
        try:
            result = await self._fetch(self.query, index)
        except BackendAPIError as e:
            if not self._is_stale(generation):
                if initial:
                    self.result = None
                self._fail(e)
            return

        if self._is_stale(generation):
            return
        self.result = result
        self.page = result.page
        self.state = PagerState.LOADED
