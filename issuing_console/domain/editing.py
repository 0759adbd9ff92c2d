"""Per-modal editing session: selection state plus its own merchant search"""

from dataclasses import dataclass
from datetime import date
from typing import Awaitable, Callable, List, Optional

from issuing_console.config import settings
from issuing_console.domain.constraints import (
    ConstraintSelection,
    SpendingConstraintPayload,
    build_validated_constraint,
    selection_from_constraint,
)
from issuing_console.domain.lookups import LabelResolver
from issuing_console.domain.models import CursorResult, Merchant, StoredConstraint
from issuing_console.domain.pagination import CursorPager
from issuing_console.utils.debounce import DebouncedSearch

MerchantSearch = Callable[[int, str, Optional[str]], Awaitable[CursorResult[Merchant]]]


@dataclass(frozen=True)
class MerchantSearchQuery:
    account_id: int
    text: str


class ConstraintEditSession:
    """
    Everything one create/edit form mutates.

    Each open editor gets its own session so two modals never share a
    selection buffer or a search result list.
    """

    def __init__(
        self,
        account_id: int,
        search_merchants: MerchantSearch,
        selection: Optional[ConstraintSelection] = None,
        labels: Optional[LabelResolver] = None,
        debounce_seconds: Optional[float] = None,
        min_search_length: Optional[int] = None,
    ):
        self.account_id = account_id
        self.selection = selection or ConstraintSelection()
        self.labels = labels
        self._search_merchants = search_merchants
        self.merchant_search: CursorPager[MerchantSearchQuery, Merchant] = CursorPager(
            self._fetch_merchants, name="merchant_search", error_message="Merchant search failed"
        )
        self.search = DebouncedSearch(
            on_search=self._run_search,
            on_clear=self.merchant_search.clear,
            delay=debounce_seconds,
            min_length=min_search_length,
        )

    @classmethod
    def for_existing(
        cls,
        account_id: int,
        search_merchants: MerchantSearch,
        constraint: Optional[StoredConstraint],
        **kwargs,
    ) -> "ConstraintEditSession":
        return cls(account_id, search_merchants, selection=selection_from_constraint(constraint), **kwargs)

    @property
    def known_merchants(self) -> List[Merchant]:
        return self.merchant_search.items

    async def _fetch_merchants(self, query: MerchantSearchQuery, cursor: Optional[str]) -> CursorResult[Merchant]:
        result = await self._search_merchants(query.account_id, query.text, cursor)
        if self.labels is not None:
            self.labels.remember_merchants(result.items)
        return result

    async def _run_search(self, text: str) -> None:
        await self.merchant_search.reset(MerchantSearchQuery(self.account_id, text))

    def set_search_text(self, text: str) -> None:
        self.search.update(text)

    async def load_more_merchants(self) -> None:
        await self.merchant_search.load_more()

    def toggle_merchant(self, merchant_id: str) -> None:
        name = next((m.name for m in self.known_merchants if m.id == merchant_id), None)
        self.selection.toggle_merchant(merchant_id, name)

    def switch_account(self, account_id: int) -> None:
        """A different account invalidates the search in progress"""
        self.search.cancel()
        self.merchant_search.clear()
        self.account_id = account_id

    def close(self) -> None:
        self.search.cancel()
        self.merchant_search.clear()

    def build(self, today: Optional[date] = None) -> SpendingConstraintPayload:
        """Validate and build the payload; raises ConstraintValidationError"""
        return build_validated_constraint(
            self.selection,
            self.known_merchants,
            today=today,
            timezone=settings.utilization_timezone,
        )
