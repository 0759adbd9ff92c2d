"""Spending-constraint composition: selection state -> backend restriction payload"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from issuing_console.config import settings
from issuing_console.domain.exceptions import ConstraintValidationError
from issuing_console.domain.models import ALLOWLIST, Merchant, StoredConstraint
from issuing_console.domain.money import (
    LimitState,
    Number,
    format_amount,
    parse_limit_input,
    to_display_units,
    to_minor_units,
)
from issuing_console.domain.toggles import MerchantSelection, toggle
from issuing_console.utils.date_utils import today_in

logger = logging.getLogger(__name__)

UTILIZATION_PRESET_DAILY = "daily"
DEFAULT_TIMEZONE = "UTC"

_COUNTRY_CODE = re.compile(r"^[A-Z]{2}$")


@dataclass
class ConstraintSelection:
    """
    Current UI selections for one create/edit session.

    Limits are kept as the raw display values the user typed; they are only
    converted to cents at build time.
    """

    countries: List[str] = field(default_factory=list)
    mcc_codes: List[str] = field(default_factory=list)
    merchant_categories: List[str] = field(default_factory=list)
    merchants: MerchantSelection = field(default_factory=MerchantSelection)
    daily_limit: Optional[Number] = None
    min_transaction: Optional[Number] = None
    max_transaction: Optional[Number] = None

    def toggle_country(self, code: str) -> None:
        self.countries = toggle(self.countries, code)

    def toggle_mcc(self, code: str) -> None:
        self.mcc_codes = toggle(self.mcc_codes, code)

    def toggle_merchant_category(self, category_id: str) -> None:
        self.merchant_categories = toggle(self.merchant_categories, category_id)

    def toggle_merchant(self, merchant_id: str, name: Optional[str] = None) -> None:
        self.merchants.toggle(merchant_id, name)


@dataclass
class UtilizationLimitPayload:
    amount_cents: int
    preset: str
    start_date: str
    timezone: str


@dataclass
class SpendingConstraintPayload:
    """Restriction body sent to the backend; None fields are omitted on the wire"""

    country_allow: Optional[List[str]] = None
    mcc_allow: Optional[List[str]] = None
    merchant_category_allow: Optional[List[str]] = None
    merchant_allow: Optional[List[str]] = None
    utilization_limit: Optional[UtilizationLimitPayload] = None
    min_transaction_cents: Optional[int] = None
    max_transaction_cents: Optional[int] = None
    merchant_names: Optional[List[str]] = None

    @property
    def has_rules(self) -> bool:
        return any(
            (self.country_allow, self.mcc_allow, self.merchant_category_allow, self.merchant_allow)
        )

    def rules_only(self) -> "SpendingConstraintPayload":
        """Copy holding just the allow-list dimensions (card group rule patch)"""
        return SpendingConstraintPayload(
            country_allow=self.country_allow,
            mcc_allow=self.mcc_allow,
            merchant_category_allow=self.merchant_category_allow,
            merchant_allow=self.merchant_allow,
        )

    def to_request_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {}

        for prefix, items in (
            ("country", self.country_allow),
            ("mcc", self.mcc_allow),
            ("merchantCategory", self.merchant_category_allow),
            ("merchant", self.merchant_allow),
        ):
            if items:
                body[f"{prefix}Allow"] = list(items)
                body[f"{prefix}Restriction"] = ALLOWLIST

        if self.utilization_limit is not None:
            body["utilizationLimitAmountCents"] = self.utilization_limit.amount_cents
            body["utilizationPreset"] = self.utilization_limit.preset
            body["utilizationStartDate"] = self.utilization_limit.start_date
            body["utilizationTimezone"] = self.utilization_limit.timezone

        if self.min_transaction_cents is not None:
            body["minTransactionCents"] = self.min_transaction_cents
        if self.max_transaction_cents is not None:
            body["maxTransactionCents"] = self.max_transaction_cents

        if self.merchant_names:
            body["userData"] = {"merchantNames": list(self.merchant_names)}

        return body


def normalize_country_codes(codes: Iterable[Any]) -> List[str]:
    """Trim + uppercase, keep only ISO-2 shaped codes, drop duplicates"""
    normalized: List[str] = []
    for code in codes:
        if not isinstance(code, str):
            continue
        candidate = code.strip().upper()
        if _COUNTRY_CODE.match(candidate) and candidate not in normalized:
            normalized.append(candidate)
    return normalized


def _clean_ids(values: Iterable[Any]) -> List[str]:
    cleaned: List[str] = []
    for value in values:
        if value is None:
            continue
        text = str(value).strip()
        if text and text not in cleaned:
            cleaned.append(text)
    return cleaned


def resolve_merchant_names(
    selection: MerchantSelection,
    known_merchants: Sequence[Merchant] = (),
) -> List[str]:
    """
    Display name for each selected merchant id, index-aligned with the ids.

    A tracked name wins; a name that is just the id placeholder is looked up in
    the last known search results; the id itself is the last resort.
    """
    lookup = {m.id: (m.name or m.id) for m in known_merchants if m.id}
    names: List[str] = []
    for merchant_id, tracked in zip(selection.ids, selection.names):
        if tracked and tracked != merchant_id:
            names.append(tracked)
        else:
            names.append(lookup.get(merchant_id, merchant_id))
    return names


def _positive_cents(value: Optional[Number]) -> Optional[int]:
    cents = to_minor_units(value)
    return cents if cents > 0 else None


def build_spending_constraint(
    selection: ConstraintSelection,
    known_merchants: Sequence[Merchant] = (),
    today: Optional[date] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> SpendingConstraintPayload:
    """
    Produce the restriction payload for the active dimensions only.

    Empty selections are omitted entirely: an empty allow-list would deny all
    spend. Invalid inputs degrade to "dimension omitted"; this function does
    not raise and does not re-check min < max (see validate_selection).
    """
    payload = SpendingConstraintPayload()

    countries = normalize_country_codes(selection.countries)
    if countries:
        payload.country_allow = countries

    mcc_codes = _clean_ids(selection.mcc_codes)
    if mcc_codes:
        payload.mcc_allow = mcc_codes

    categories = _clean_ids(selection.merchant_categories)
    if categories:
        payload.merchant_category_allow = categories

    resolved = resolve_merchant_names(selection.merchants, known_merchants)
    merchant_ids: List[str] = []
    merchant_names: List[str] = []
    for merchant_id, name in zip(selection.merchants.ids, resolved):
        text = str(merchant_id).strip() if merchant_id is not None else ""
        if text and text not in merchant_ids:
            merchant_ids.append(text)
            merchant_names.append(name)
    if merchant_ids:
        payload.merchant_allow = merchant_ids
        payload.merchant_names = merchant_names

    daily_cents = _positive_cents(selection.daily_limit)
    if daily_cents is not None:
        payload.utilization_limit = UtilizationLimitPayload(
            amount_cents=daily_cents,
            preset=UTILIZATION_PRESET_DAILY,
            start_date=(today or today_in(timezone)).isoformat(),
            timezone=timezone,
        )

    payload.min_transaction_cents = _positive_cents(selection.min_transaction)
    payload.max_transaction_cents = _positive_cents(selection.max_transaction)

    return payload


def validate_selection(selection: ConstraintSelection) -> None:
    """
    Reject limit input that must never reach the builder.

    Raises:
        ConstraintValidationError: malformed/zero limit, or minimum >= maximum
    """
    labelled = (
        ("Daily limit", selection.daily_limit),
        ("Minimum transaction", selection.min_transaction),
        ("Maximum transaction", selection.max_transaction),
    )
    parsed = {}
    for label, raw in labelled:
        limit = parse_limit_input(raw)
        if limit.state == LimitState.INVALID:
            raise ConstraintValidationError(
                f"{label} must be a positive amount no greater than "
                f"{format_amount(settings.max_limit_cents)}; leave it empty for no limit"
            )
        parsed[label] = limit

    minimum = parsed["Minimum transaction"]
    maximum = parsed["Maximum transaction"]
    if minimum.is_set and maximum.is_set and minimum.cents >= maximum.cents:
        raise ConstraintValidationError("Minimum transaction must be less than maximum")


def build_validated_constraint(
    selection: ConstraintSelection,
    known_merchants: Sequence[Merchant] = (),
    today: Optional[date] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> SpendingConstraintPayload:
    """Submission path: validate first, build only when validation passes"""
    try:
        validate_selection(selection)
    except ConstraintValidationError as e:
        logger.warning(f"Constraint rejected: {e}", extra={"step": "constraint_validation"})
        raise
    return build_spending_constraint(selection, known_merchants, today=today, timezone=timezone)


def _display_text(cents: Optional[int]) -> str:
    if cents is None or cents <= 0:
        return ""
    return str(to_display_units(cents))


def selection_from_constraint(constraint: Optional[StoredConstraint]) -> ConstraintSelection:
    """
    Seed an edit session from what the backend holds.

    Only allow-list rules become selections; deny-lists and empty rules are
    left out because the editor only expresses allow-lists.
    """
    if constraint is None:
        return ConstraintSelection()

    def allowed(rule) -> List[str]:
        if rule is None or not rule.is_allowlist:
            return []
        return [str(item) for item in rule.items]

    merchant_ids = allowed(constraint.merchant_rule)
    return ConstraintSelection(
        countries=[c.upper() for c in allowed(constraint.country_rule)],
        mcc_codes=allowed(constraint.mcc_rule),
        merchant_categories=allowed(constraint.merchant_category_rule),
        merchants=MerchantSelection(
            ids=merchant_ids,
            names=list(constraint.merchant_names) if merchant_ids else [],
        ),
        daily_limit=_display_text(constraint.utilization_limit_cents),
        min_transaction=_display_text(constraint.min_transaction_cents),
        max_transaction=_display_text(constraint.max_transaction_cents),
    )
