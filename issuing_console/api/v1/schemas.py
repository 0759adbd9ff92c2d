"""Pydantic schemas for API request/response validation"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from issuing_console.domain.constraints import ConstraintSelection
from issuing_console.domain.toggles import MerchantSelection


class ConstraintSelectionSchema(BaseModel):
    """Editor selections and the limit values exactly as typed (dollars)"""

    countries: List[str] = Field(default_factory=list)
    mcc_codes: List[str] = Field(default_factory=list)
    merchant_categories: List[str] = Field(default_factory=list)
    merchant_ids: List[str] = Field(default_factory=list)
    merchant_names: List[str] = Field(default_factory=list)
    daily_limit: Optional[str] = None
    min_transaction: Optional[str] = None
    max_transaction: Optional[str] = None

    def to_selection(self) -> ConstraintSelection:
        return ConstraintSelection(
            countries=list(self.countries),
            mcc_codes=list(self.mcc_codes),
            merchant_categories=list(self.merchant_categories),
            merchants=MerchantSelection(ids=list(self.merchant_ids), names=list(self.merchant_names)),
            daily_limit=self.daily_limit,
            min_transaction=self.min_transaction,
            max_transaction=self.max_transaction,
        )


class ConstraintPreviewResponse(BaseModel):
    payload: Dict[str, Any]


class CreateCardBody(BaseModel):
    """Request body for POST /v1/cards"""

    account_id: Optional[int] = None
    virtual_account_id: Optional[int] = None
    card_group_id: Optional[int] = None
    name: str = Field(..., min_length=1)
    constraint: ConstraintSelectionSchema = Field(default_factory=ConstraintSelectionSchema)


class UpdateCardBody(BaseModel):
    """Request body for PUT /v1/cards/{card_id}"""

    name: Optional[str] = None
    status: Optional[str] = None
    constraint: ConstraintSelectionSchema = Field(default_factory=ConstraintSelectionSchema)


class CardGroupBody(BaseModel):
    """Request body for POST /v1/card-groups"""

    account_id: int
    virtual_account_id: Optional[int] = None
    name: str
    start_date: Optional[str] = None
    constraint: ConstraintSelectionSchema = Field(default_factory=ConstraintSelectionSchema)


class CardSchema(BaseModel):
    id: int
    name: str
    status: Optional[str] = None
    last4: Optional[str] = None
    pan: Optional[str] = None
    cvv: Optional[str] = None
    expiry_month: Optional[str] = None
    expiry_year: Optional[str] = None
    virtual_account_id: Optional[int] = None
    card_group_id: Optional[int] = None
    daily_limit: str = "-"
    min_transaction: str = "-"
    max_transaction: str = "-"
    merchant_names: List[str] = Field(default_factory=list)


class CardPageResponse(BaseModel):
    content: List[CardSchema]
    page: int
    total_pages: int
    total_elements: int
    has_next: bool
    has_previous: bool


class CardGroupResponse(BaseModel):
    id: int
    name: str
    notice: Optional[str] = None


class TransactionSchema(BaseModel):
    id: str
    date: Optional[str] = None
    amount: str
    status: Optional[str] = None
    description: Optional[str] = None
    merchant_description: Optional[str] = None
    memo: Optional[str] = None


class TransactionPageResponse(BaseModel):
    """One cursor chunk; next_cursor is the server's, regardless of q"""

    items: List[TransactionSchema]
    next_cursor: Optional[str] = None
    fetched_count: int
