"""Transaction listing: query identity, server filters, client-side post-filter"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from issuing_console.domain.models import Transaction
from issuing_console.domain.pagination import CursorFetch, CursorPager


@dataclass(frozen=True)
class TransactionQuery:
    """Everything that identifies a transaction listing; any change means reset"""

    account_id: int
    virtual_account_id: Optional[str] = None
    card_id: Optional[str] = None
    status: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    extra_filters: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def filter_params(self) -> Dict[str, str]:
        """Literal "filter:<key>" query keys, only for non-empty values"""
        candidates = [
            ("status", self.status),
            ("cardId", self.card_id),
            ("from_date", self.date_from),
            ("to_date", self.date_to),
            *self.extra_filters,
        ]
        params: Dict[str, str] = {}
        for key, value in candidates:
            if value is None:
                continue
            text = str(value).strip()
            if text:
                params[f"filter:{key}"] = text
        return params


def searchable_text(transaction: Transaction) -> str:
    parts = (
        transaction.description,
        transaction.merchant_description,
        transaction.memo,
        transaction.merchant_data_description,
    )
    return " ".join(p for p in parts if p).lower()


def filter_transactions(transactions: Iterable[Transaction], text: Optional[str]) -> List[Transaction]:
    """Case-insensitive substring match over the already-fetched window"""
    needle = (text or "").strip().lower()
    if not needle:
        return list(transactions)
    return [t for t in transactions if needle in searchable_text(t)]


class TransactionBrowser:
    """Cursor-paged transaction history with a local narrowing filter"""

    def __init__(self, fetch: CursorFetch):
        self.pager: CursorPager[TransactionQuery, Transaction] = CursorPager(
            fetch, name="transactions", error_message="Failed to load transactions"
        )
        self.filter_text = ""

    @property
    def visible(self) -> List[Transaction]:
        return filter_transactions(self.pager.items, self.filter_text)

    def set_filter_text(self, text: str) -> None:
        # Narrows what is shown only; never fetches, never touches the cursor
        self.filter_text = text or ""

    async def change_query(self, query: TransactionQuery) -> None:
        if query != self.pager.query:
            await self.pager.reset(query)

    async def refresh(self) -> None:
        await self.pager.reload()

    async def load_more(self) -> None:
        await self.pager.load_more()
