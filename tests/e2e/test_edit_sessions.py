"""
End-to-end flows through a constraint edit session.

These drive the session the way the create/edit forms do: type into the
merchant search, toggle results, then build the submission payload. The
merchant backend is an in-memory fake keyed by search text.
"""

from datetime import date

import pytest

from issuing_console.domain.constraints import ConstraintSelection
from issuing_console.domain.editing import ConstraintEditSession
from issuing_console.domain.exceptions import ConstraintValidationError
from issuing_console.domain.lookups import LabelResolver
from issuing_console.domain.models import CursorResult, Merchant, RestrictionRule, StoredConstraint

TODAY = date(2026, 3, 14)
DEBOUNCE = 0.02

CATALOG = {
    "acme": [
        [Merchant(id="m_1", name="Acme Coffee"), Merchant(id="m_2", name="Acme Hardware")],
        [Merchant(id="m_3", name="Acme Travel")],
    ],
    "globex": [[Merchant(id="m_9", name="Globex")]],
}


class FakeMerchantBackend:
    def __init__(self):
        self.calls = []

    async def __call__(self, account_id, text, cursor):
        self.calls.append((account_id, text, cursor))
        chunks = CATALOG.get(text.lower(), [[]])
        index = int(cursor) if cursor else 0
        next_cursor = str(index + 1) if index + 1 < len(chunks) else None
        return CursorResult(items=list(chunks[index]), next_cursor=next_cursor)


@pytest.fixture
def backend():
    return FakeMerchantBackend()


def _session(backend, **kwargs):
    return ConstraintEditSession(account_id=1, search_merchants=backend, debounce_seconds=DEBOUNCE, **kwargs)


async def test_search_toggle_and_submit_keeps_names_aligned(backend):
    session = _session(backend)

    for text in ("a", "ac", "acm", "acme"):
        session.set_search_text(text)
    await session.search.wait_idle()

    assert backend.calls == [(1, "acme", None)]
    assert [m.id for m in session.known_merchants] == ["m_1", "m_2"]

    await session.load_more_merchants()
    assert [m.id for m in session.known_merchants] == ["m_1", "m_2", "m_3"]

    session.toggle_merchant("m_3")
    session.toggle_merchant("m_1")
    session.toggle_merchant("m_2")
    session.toggle_merchant("m_3")

    body = session.build(today=TODAY).to_request_body()
    assert body["merchantAllow"] == ["m_1", "m_2"]
    assert body["userData"] == {"merchantNames": ["Acme Coffee", "Acme Hardware"]}


async def test_selection_survives_new_search(backend):
    session = _session(backend)
    session.set_search_text("acme")
    await session.search.wait_idle()
    session.toggle_merchant("m_1")

    session.set_search_text("globex")
    await session.search.wait_idle()
    session.toggle_merchant("m_9")

    body = session.build(today=TODAY).to_request_body()
    assert body["merchantAllow"] == ["m_1", "m_9"]
    assert body["userData"]["merchantNames"] == ["Acme Coffee", "Globex"]


async def test_short_text_clears_results_without_request(backend):
    session = _session(backend)
    session.set_search_text("acme")
    await session.search.wait_idle()
    assert session.known_merchants

    session.set_search_text("ac")

    assert session.known_merchants == []
    assert len(backend.calls) == 1


async def test_sessions_do_not_share_state(backend):
    """Two open editors keep independent selections and search results"""
    create = _session(backend)
    edit = _session(backend)

    create.set_search_text("acme")
    await create.search.wait_idle()
    create.toggle_merchant("m_1")
    create.selection.toggle_country("US")

    assert edit.known_merchants == []
    assert edit.selection.countries == []
    assert edit.selection.merchants.ids == []


async def test_editing_existing_card_round_trips_rules(backend):
    stored = StoredConstraint(
        country_rule=RestrictionRule(items=["US", "VN"], restriction="allowlist"),
        merchant_rule=RestrictionRule(items=["m_1"], restriction="allowlist"),
        merchant_names=["Acme Coffee"],
        utilization_limit_cents=2500,
    )
    session = ConstraintEditSession.for_existing(1, backend, stored, debounce_seconds=DEBOUNCE)

    session.selection.toggle_country("VN")
    body = session.build(today=TODAY).to_request_body()

    assert body["countryAllow"] == ["US"]
    assert body["merchantAllow"] == ["m_1"]
    assert body["userData"] == {"merchantNames": ["Acme Coffee"]}
    assert body["utilizationLimitAmountCents"] == 2500


async def test_invalid_limits_block_build(backend):
    session = _session(backend, selection=ConstraintSelection(min_transaction="20", max_transaction="5"))
    with pytest.raises(ConstraintValidationError):
        session.build(today=TODAY)


async def test_switching_account_drops_pending_search(backend):
    session = _session(backend)
    session.set_search_text("acme")

    session.switch_account(2)
    await session.search.wait_idle()

    assert backend.calls == []
    assert session.account_id == 2


async def test_search_results_feed_label_resolver(backend):
    labels = LabelResolver()
    session = _session(backend, labels=labels)

    session.set_search_text("globex")
    await session.search.wait_idle()

    assert labels.describe_codes(["m_9", "m_404"], "merchant") == "Globex, m_404"
