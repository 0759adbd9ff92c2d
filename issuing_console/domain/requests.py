"""Typed request bodies for card and card group mutations"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from issuing_console.domain.constraints import SpendingConstraintPayload
from issuing_console.domain.exceptions import ConstraintValidationError


def _merge_user_data(body: Dict[str, Any], user_data: Optional[Dict[str, Any]]) -> None:
    if not user_data:
        return
    merged = dict(user_data)
    merged.update(body.get("userData", {}))
    body["userData"] = merged


@dataclass
class CreateCardRequest:
    account_id: Optional[int]
    virtual_account_id: Optional[int]
    name: str
    constraint: SpendingConstraintPayload = field(default_factory=SpendingConstraintPayload)
    card_group_id: Optional[int] = None
    user_data: Optional[Dict[str, Any]] = None

    def validate(self) -> None:
        if not self.account_id or not self.virtual_account_id:
            raise ConstraintValidationError("Missing account or virtual account")

    def to_request_body(self) -> Dict[str, Any]:
        body = self.constraint.to_request_body()
        body.update(
            {
                "accountId": self.account_id,
                "virtualAccountId": self.virtual_account_id,
                "name": self.name,
            }
        )
        if self.card_group_id is not None:
            body["cardGroupId"] = self.card_group_id
        _merge_user_data(body, self.user_data)
        return body


@dataclass
class UpdateCardRequest:
    constraint: SpendingConstraintPayload = field(default_factory=SpendingConstraintPayload)
    status: Optional[str] = None
    name: Optional[str] = None

    def to_request_body(self) -> Dict[str, Any]:
        body = self.constraint.to_request_body()
        if self.name:
            body["name"] = self.name
        if self.status and self.status.strip():
            body["status"] = self.status.strip()
        return body


@dataclass
class CardGroupRequest:
    """Card group create/update body; rules are patched separately"""

    name: str
    virtual_account_id: Optional[int] = None
    start_date: Optional[str] = None
    constraint: SpendingConstraintPayload = field(default_factory=SpendingConstraintPayload)

    def validate(self, creating: bool = True) -> None:
        if not self.name or not self.name.strip():
            raise ConstraintValidationError("Name cannot be empty")
        if creating and not self.virtual_account_id:
            raise ConstraintValidationError("Please select a virtual account")

    def to_request_body(self) -> Dict[str, Any]:
        limit = self.constraint.utilization_limit
        has_txn_limit = (
            self.constraint.min_transaction_cents is not None
            or self.constraint.max_transaction_cents is not None
        )
        body: Dict[str, Any] = {
            "name": self.name.strip(),
            "startDate": self.start_date or None,
            "utilizationLimitOn": limit is not None,
            "transactionLimitOn": has_txn_limit,
        }
        if self.virtual_account_id is not None:
            body["virtualAccountId"] = self.virtual_account_id
        if limit is not None:
            body["utilizationLimitAmountCents"] = limit.amount_cents
            body["utilizationPreset"] = limit.preset
            body["utilizationStartDate"] = limit.start_date
            body["utilizationTimezone"] = limit.timezone
        if self.constraint.min_transaction_cents is not None:
            body["minTransactionCents"] = self.constraint.min_transaction_cents
        if self.constraint.max_transaction_cents is not None:
            body["maxTransactionCents"] = self.constraint.max_transaction_cents
        return body
