"""Unit tests for toggle-set editing"""

import pytest

from issuing_console.domain.toggles import MerchantSelection, toggle


def test_toggle_appends_missing_value_at_end():
    assert toggle(["US", "CA"], "AU") == ["US", "CA", "AU"]


def test_toggle_removes_present_value_keeping_order():
    assert toggle(["US", "CA", "AU"], "CA") == ["US", "AU"]


def test_toggle_returns_new_list():
    original = ["5812"]
    toggled = toggle(original, "5411")
    assert original == ["5812"]
    assert toggled is not original


@pytest.mark.parametrize(
    "values, value",
    [
        ([], "US"),
        (["US", "VN", "CA"], "VN"),
        (["US", "VN", "CA"], "DE"),
        (["cat_a"], "cat_a"),
    ],
)
def test_double_toggle_restores_the_set(values, value):
    """Same members; everything except the toggled value keeps its order"""
    result = toggle(toggle(values, value), value)

    assert set(result) == set(values)
    assert len(result) == len(values)
    assert [v for v in result if v != value] == [v for v in values if v != value]


def test_double_toggle_of_present_value_moves_it_to_end():
    assert toggle(toggle(["US", "VN", "CA"], "VN"), "VN") == ["US", "CA", "VN"]


def test_merchant_selection_mirrors_names_on_add_and_remove():
    selection = MerchantSelection()

    selection.toggle("m_1", "Acme")
    selection.toggle("m_2", "Globex")
    assert selection.ids == ["m_1", "m_2"]
    assert selection.names == ["Acme", "Globex"]

    selection.toggle("m_1")
    assert selection.ids == ["m_2"]
    assert selection.names == ["Globex"]


def test_merchant_selection_falls_back_to_id_for_unknown_name():
    selection = MerchantSelection()
    selection.toggle("m_9")
    assert selection.names == ["m_9"]


def test_merchant_selection_add_does_not_deselect():
    selection = MerchantSelection()
    selection.add("m_1", "Acme")
    selection.add("m_1", "Acme")
    assert selection.ids == ["m_1"]
    assert selection.name_for("m_1") == "Acme"


def test_merchant_selection_pads_missing_names():
    selection = MerchantSelection(ids=["m_1", "m_2"], names=["Acme"])
    assert selection.names == ["Acme", "m_2"]

    trimmed = MerchantSelection(ids=["m_1"], names=["Acme", "Orphan"])
    assert trimmed.names == ["Acme"]
