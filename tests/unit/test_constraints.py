"""Unit tests for spending-constraint payload building"""

from datetime import date

import pytest

from issuing_console.domain.constraints import (
    ConstraintSelection,
    build_spending_constraint,
    build_validated_constraint,
    normalize_country_codes,
    selection_from_constraint,
    validate_selection,
)
from issuing_console.domain.exceptions import ConstraintValidationError
from issuing_console.domain.models import RestrictionRule, StoredConstraint
from issuing_console.domain.toggles import MerchantSelection

TODAY = date(2026, 3, 14)

DIMENSION_KEYS = {
    "countries": ("countryAllow", "countryRestriction"),
    "mcc_codes": ("mccAllow", "mccRestriction"),
    "merchant_categories": ("merchantCategoryAllow", "merchantCategoryRestriction"),
}


def test_empty_selection_produces_empty_body():
    body = build_spending_constraint(ConstraintSelection(), today=TODAY).to_request_body()
    assert body == {}


@pytest.mark.parametrize("dimension", list(DIMENSION_KEYS))
def test_empty_dimension_is_omitted(dimension):
    """Only the populated dimension shows up; empty ones send no keys at all"""
    selection = ConstraintSelection(countries=["US"], mcc_codes=["5812"], merchant_categories=["cat_food"])
    setattr(selection, dimension, [])

    body = build_spending_constraint(selection, today=TODAY).to_request_body()

    allow_key, restriction_key = DIMENSION_KEYS[dimension]
    assert allow_key not in body
    assert restriction_key not in body
    for other, (other_allow, other_restriction) in DIMENSION_KEYS.items():
        if other != dimension:
            assert body[other_restriction] == "allowlist"
            assert body[other_allow]


def test_empty_merchant_selection_omits_merchant_rule_and_names():
    body = build_spending_constraint(ConstraintSelection(countries=["US"]), today=TODAY).to_request_body()
    assert "merchantAllow" not in body
    assert "merchantRestriction" not in body
    assert "userData" not in body


def test_country_codes_normalized():
    """Mixed-case selections come out as uppercase ISO-2 codes"""
    selection = ConstraintSelection(countries=["US", "vn"])
    body = build_spending_constraint(selection, today=TODAY).to_request_body()

    assert body["countryAllow"] == ["US", "VN"]
    assert body["countryRestriction"] == "allowlist"


def test_malformed_country_codes_are_dropped():
    assert normalize_country_codes([" us ", "USA", "1A", "", None, "ca", "CA"]) == ["US", "CA"]

    body = build_spending_constraint(ConstraintSelection(countries=["USA", "X"]), today=TODAY).to_request_body()
    assert "countryAllow" not in body


def test_daily_limit_becomes_utilization_limit():
    selection = ConstraintSelection(daily_limit="12.5")
    body = build_spending_constraint(selection, today=TODAY, timezone="UTC").to_request_body()

    assert body["utilizationLimitAmountCents"] == 1250
    assert body["utilizationPreset"] == "daily"
    assert body["utilizationStartDate"] == "2026-03-14"
    assert body["utilizationTimezone"] == "UTC"


@pytest.mark.parametrize("daily_limit", [None, "", "0", "-4", "abc", 0])
def test_non_positive_daily_limit_is_omitted(daily_limit):
    body = build_spending_constraint(ConstraintSelection(daily_limit=daily_limit), today=TODAY).to_request_body()
    assert "utilizationLimitAmountCents" not in body
    assert "utilizationPreset" not in body


def test_transaction_limits_included_independently():
    body = build_spending_constraint(ConstraintSelection(min_transaction="5"), today=TODAY).to_request_body()
    assert body["minTransactionCents"] == 500
    assert "maxTransactionCents" not in body

    body = build_spending_constraint(ConstraintSelection(max_transaction="99.99"), today=TODAY).to_request_body()
    assert body["maxTransactionCents"] == 9999
    assert "minTransactionCents" not in body


def test_merchant_names_prefer_tracked_then_search_results_then_id(sample_merchants):
    selection = ConstraintSelection(
        merchants=MerchantSelection(ids=["m_1", "m_2", "m_404"], names=["Acme Corp", "m_2", "m_404"])
    )
    body = build_spending_constraint(selection, sample_merchants, today=TODAY).to_request_body()

    assert body["merchantAllow"] == ["m_1", "m_2", "m_404"]
    assert body["merchantRestriction"] == "allowlist"
    assert body["userData"] == {"merchantNames": ["Acme Corp", "Globex", "m_404"]}


def test_builder_never_checks_min_max():
    """Ordering is validation's job; the builder only converts"""
    selection = ConstraintSelection(min_transaction="50", max_transaction="10")
    payload = build_spending_constraint(selection, today=TODAY)
    assert payload.min_transaction_cents == 5000
    assert payload.max_transaction_cents == 1000


@pytest.mark.parametrize(
    "minimum, maximum",
    [("10", "10"), ("10.01", "10"), ("100", "1")],
)
def test_min_not_below_max_blocks_submission(minimum, maximum, monkeypatch):
    calls = []
    monkeypatch.setattr(
        "issuing_console.domain.constraints.build_spending_constraint",
        lambda *a, **kw: calls.append(a),
    )
    selection = ConstraintSelection(min_transaction=minimum, max_transaction=maximum)

    with pytest.raises(ConstraintValidationError, match="less than maximum"):
        build_validated_constraint(selection)
    assert calls == []


def test_zero_limit_is_rejected_not_treated_as_unset():
    with pytest.raises(ConstraintValidationError, match="Daily limit"):
        validate_selection(ConstraintSelection(daily_limit="0"))


def test_valid_limits_pass_validation():
    validate_selection(ConstraintSelection(daily_limit="100", min_transaction="1", max_transaction="50"))
    validate_selection(ConstraintSelection(min_transaction="1"))
    validate_selection(ConstraintSelection())


def test_rules_only_drops_limits():
    payload = build_spending_constraint(
        ConstraintSelection(countries=["US"], daily_limit="10", min_transaction="1"), today=TODAY
    )
    rules = payload.rules_only()
    assert rules.has_rules
    assert rules.to_request_body() == {"countryAllow": ["US"], "countryRestriction": "allowlist"}


def test_selection_from_constraint_keeps_allowlists_only():
    stored = StoredConstraint(
        country_rule=RestrictionRule(items=["us", "CA"], restriction="allowlist"),
        mcc_rule=RestrictionRule(items=["5812"], restriction="denylist"),
        merchant_category_rule=RestrictionRule(items=[], restriction="allowlist"),
        merchant_rule=RestrictionRule(items=["m_1", "m_2"], restriction="allowlist"),
        utilization_limit_cents=1250,
        min_transaction_cents=None,
        max_transaction_cents=0,
        merchant_names=["Acme"],
    )

    selection = selection_from_constraint(stored)

    assert selection.countries == ["US", "CA"]
    assert selection.mcc_codes == []
    assert selection.merchant_categories == []
    assert selection.merchants.ids == ["m_1", "m_2"]
    assert selection.merchants.names == ["Acme", "m_2"]
    assert selection.daily_limit == "12.50"
    assert selection.min_transaction == ""
    assert selection.max_transaction == ""


def test_selection_from_missing_constraint_is_empty():
    selection = selection_from_constraint(None)
    assert selection.countries == []
    assert selection.merchants.ids == []


@pytest.mark.parametrize("field", ["daily_limit", "min_transaction", "max_transaction"])
def test_oversized_limit_is_omitted_by_builder(field):
    selection = ConstraintSelection(**{field: "1e30"})
    body = build_spending_constraint(selection, today=TODAY).to_request_body()
    assert "utilizationLimitAmountCents" not in body
    assert "minTransactionCents" not in body
    assert "maxTransactionCents" not in body


def test_oversized_limit_fails_validation():
    with pytest.raises(ConstraintValidationError, match="no greater than 1,000,000,000.00"):
        validate_selection(ConstraintSelection(daily_limit="99999999999999999999999999999"))
