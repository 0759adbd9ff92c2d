"""Card presentation helpers"""

import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from issuing_console.domain.models import Card, CardDetail

_MASKED_PAN = "**** **** **** ****"


def _group_by_four(digits: str) -> str:
    return " ".join(digits[i:i + 4] for i in range(0, len(digits), 4))


def format_pan(pan: Optional[str], last4: Optional[str] = None) -> str:
    """Grouped PAN when we have one, else a mask ending in last4"""
    compact = re.sub(r"\s+", "", pan or "")
    if len(compact) >= 12:
        return _group_by_four(compact)
    if last4:
        return _group_by_four(f"************{last4}")
    return _MASKED_PAN


def merge_card_detail(card: Card, detail: CardDetail) -> Card:
    """Overlay vault fields onto a card without mutating the listed record"""
    return replace(
        card,
        pan=detail.pan or card.pan,
        cvv=detail.cvv or card.cvv,
        last4=detail.last4 or card.last4,
        expiry_month=detail.expiry_month or card.expiry_month,
        expiry_year=detail.expiry_year or card.expiry_year,
    )


@dataclass(frozen=True)
class CardListQuery:
    """Identity of a card listing; any change resets to page 0"""

    account_id: int
    virtual_account_id: Optional[int] = None
    card_group_id: Optional[int] = None
    search: Optional[str] = None
    status: Optional[str] = None
    sort: Optional[str] = None
    dir: Optional[str] = None

    def to_params(self, page: int, size: int) -> Dict[str, Any]:
        params: Dict[str, Any] = {"accountId": self.account_id, "page": page, "size": size}
        if self.virtual_account_id is not None:
            params["virtualAccountId"] = self.virtual_account_id
        if self.card_group_id is not None:
            params["cardGroupId"] = self.card_group_id
        for key in ("search", "status", "sort", "dir"):
            value = getattr(self, key)
            if value and value.strip():
                params[key] = value.strip()
        return params


@dataclass(frozen=True)
class CardGroupListQuery:
    account_id: int
    virtual_account_id: Optional[int] = None
    search: Optional[str] = None

    def to_params(self, page: int, size: int) -> Dict[str, Any]:
        params: Dict[str, Any] = {"accountId": self.account_id, "page": page, "size": size}
        if self.virtual_account_id is not None:
            params["virtualAccountId"] = self.virtual_account_id
        if self.search and self.search.strip():
            params["search"] = self.search.strip()
        return params
