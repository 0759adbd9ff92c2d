"""Domain models - pure Python dataclasses representing card platform entities"""

from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")

ALLOWLIST = "allowlist"


@dataclass
class RestrictionRule:
    """Allow/deny rule over one constraint dimension"""

    items: List[str]
    restriction: Optional[str] = None  # "allowlist" | "denylist" | None

    @property
    def is_allowlist(self) -> bool:
        return self.restriction == ALLOWLIST and bool(self.items)


@dataclass
class StoredConstraint:
    """Spending constraint as the backend currently holds it"""

    country_rule: Optional[RestrictionRule] = None
    mcc_rule: Optional[RestrictionRule] = None
    merchant_category_rule: Optional[RestrictionRule] = None
    merchant_rule: Optional[RestrictionRule] = None
    utilization_limit_cents: Optional[int] = None
    utilization_preset: Optional[str] = None
    min_transaction_cents: Optional[int] = None
    max_transaction_cents: Optional[int] = None
    merchant_names: List[str] = field(default_factory=list)


@dataclass
class VirtualAccount:
    id: int
    slash_id: Optional[str] = None
    name: Optional[str] = None


@dataclass
class Card:
    """Issued card, optionally carrying vault fields merged in by the detail view"""

    id: int
    name: str
    status: Optional[str] = None
    last4: Optional[str] = None
    expiry_month: Optional[str] = None
    expiry_year: Optional[str] = None
    virtual_account_id: Optional[int] = None
    card_group_id: Optional[int] = None
    constraint: StoredConstraint = field(default_factory=StoredConstraint)
    pan: Optional[str] = None
    cvv: Optional[str] = None


@dataclass
class CardDetail:
    """Vault-sourced sensitive card fields"""

    pan: Optional[str] = None
    cvv: Optional[str] = None
    last4: Optional[str] = None
    expiry_month: Optional[str] = None
    expiry_year: Optional[str] = None


@dataclass
class CardGroup:
    id: int
    name: str
    virtual_account_id: Optional[int] = None
    start_date: Optional[str] = None
    hidden: bool = False
    constraint: StoredConstraint = field(default_factory=StoredConstraint)


@dataclass
class Utilization:
    """Spend against the recurring utilization limit"""

    spent_cents: int
    limit_cents: Optional[int] = None
    preset: Optional[str] = None
    start_date: Optional[str] = None


@dataclass
class Merchant:
    id: str
    name: Optional[str] = None
    category: Optional[str] = None


@dataclass
class MerchantCategory:
    id: str
    name: str
    display_order: int = 0


@dataclass
class CountryOption:
    code: str
    name: str
    region: Optional[str] = None


@dataclass
class MccCodeOption:
    code: str
    name: str


@dataclass
class Transaction:
    """Card transaction from the backend transaction search"""

    id: str
    date: Optional[str]
    amount_cents: int
    status: Optional[str] = None
    description: Optional[str] = None
    merchant_description: Optional[str] = None
    memo: Optional[str] = None
    merchant_data_description: Optional[str] = None
    card_id: Optional[str] = None
    virtual_account_id: Optional[str] = None


@dataclass
class PagedResult(Generic[T]):
    """Offset-paged collection; page is zero-based"""

    content: List[T]
    total_pages: int
    total_elements: int
    page: int


@dataclass
class CursorResult(Generic[T]):
    """Cursor-paged chunk; next_cursor None means exhausted"""

    items: List[T]
    next_cursor: Optional[str] = None
    count: Optional[int] = None
