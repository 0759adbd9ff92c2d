"""Unit tests for card presentation helpers and list queries"""

import pytest

from issuing_console.domain.cards import CardGroupListQuery, CardListQuery, format_pan, merge_card_detail
from issuing_console.domain.exceptions import ConstraintValidationError
from issuing_console.domain.models import Card, CardDetail
from issuing_console.domain.requests import CardGroupRequest, CreateCardRequest


@pytest.mark.parametrize(
    "pan, last4, expected",
    [
        ("4111111111111111", None, "4111 1111 1111 1111"),
        ("4111 1111 1111 1111", "1111", "4111 1111 1111 1111"),
        (None, "4242", "**** **** **** 4242"),
        ("", None, "**** **** **** ****"),
    ],
)
def test_format_pan(pan, last4, expected):
    assert format_pan(pan, last4) == expected


def test_merge_card_detail_overlays_vault_fields():
    card = Card(id=7, name="Travel", last4="1111", expiry_month="01", expiry_year="2027")
    detail = CardDetail(pan="4111111111111111", cvv="123", expiry_month="02")

    merged = merge_card_detail(card, detail)

    assert merged.pan == "4111111111111111"
    assert merged.cvv == "123"
    assert merged.last4 == "1111"
    assert merged.expiry_month == "02"
    assert merged.expiry_year == "2027"
    assert card.pan is None


def test_card_list_query_sends_only_non_empty_filters():
    query = CardListQuery(account_id=3, virtual_account_id=11, search="  travel ", status="", sort="name")

    assert query.to_params(page=2, size=20) == {
        "accountId": 3,
        "page": 2,
        "size": 20,
        "virtualAccountId": 11,
        "search": "travel",
        "sort": "name",
    }


def test_card_group_list_query_params():
    assert CardGroupListQuery(account_id=3, search=" ").to_params(0, 10) == {"accountId": 3, "page": 0, "size": 10}


def test_create_card_requires_account_and_virtual_account():
    with pytest.raises(ConstraintValidationError, match="Missing account or virtual account"):
        CreateCardRequest(account_id=None, virtual_account_id=5, name="Ops").validate()


def test_card_group_requires_name_and_virtual_account_when_creating():
    with pytest.raises(ConstraintValidationError, match="Name cannot be empty"):
        CardGroupRequest(name="  ", virtual_account_id=5).validate(creating=True)
    with pytest.raises(ConstraintValidationError, match="virtual account"):
        CardGroupRequest(name="Ops", virtual_account_id=None).validate(creating=True)

    CardGroupRequest(name="Ops", virtual_account_id=None).validate(creating=False)
