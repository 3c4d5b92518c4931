"""Upload, purchase, airdrop and reconciliation flows against a scripted registry."""

from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import pytest

from core.cart import Cart, CartItem
from core.constants import JOURNAL_CHAIN_CONFIRMED, JOURNAL_CONFIRMED, JOURNAL_FAILED
from services.marketplace import UploadRequest

from conftest import BUYER, SELLER


def _guide(**overrides):
    fields = dict(
        title="Guide",
        description="",
        price_per_token="0.01",
        amount=1,
        filename="guide.pdf",
        content=b"x" * 10 * 1024,
        mime_type="application/pdf",
    )
    fields.update(overrides)
    return UploadRequest(**fields)


def test_upload_registers_then_mirrors(market, registry, store):
    steps = []
    result = market.upload_document(SELLER, _guide(), progress=lambda pct, msg: steps.append(pct))

    assert steps == [33, 66, 90, 100]
    name, args = registry.calls[0]
    assert name == "registerDocument"
    assert args[1] == result.doc_id == 1_700_000_000

    row = store.get_document(result.doc_id)
    assert row["title"] == "Guide"
    assert row["seller"] == SELLER.lower()
    assert row["file_url"] == result.file_url
    path = Path(url2pathname(urlparse(result.file_url).path))
    assert path.read_bytes() == b"x" * 10 * 1024

    assert store.journal_entries()[0]["status"] == JOURNAL_CONFIRMED


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"title": " "}, "Title"),
        ({"price_per_token": ""}, "Price"),
        ({"amount": 0}, "at least 1"),
        ({"amount": "two"}, "whole number"),
        ({"price_per_token": "0"}, "greater than 0"),
        ({"filename": ""}, "file"),
        ({"filename": "run.exe"}, "Unsupported"),
        ({"mime_type": "image/png"}, "Unsupported"),
    ],
)
def test_upload_validation(market, registry, overrides, message):
    with pytest.raises(ValueError, match=message):
        market.upload_document(SELLER, _guide(**overrides))
    assert registry.calls == []


def test_upload_chain_failure_marks_journal_failed(market, registry, store):
    registry.fail_next = RuntimeError("user rejected transaction")
    with pytest.raises(RuntimeError, match="user rejected"):
        market.upload_document(SELLER, _guide())

    assert store.list_documents() == []
    assert store.journal_entries()[0]["status"] == JOURNAL_FAILED


def test_store_failure_leaves_chain_confirmed_and_reconcile_replays(market, store, monkeypatch):
    def boom(**kw):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(store, "insert_document", boom)
    with pytest.raises(RuntimeError, match="store unavailable"):
        market.upload_document(SELLER, _guide())
    monkeypatch.undo()

    entry = store.journal_entries()[0]
    assert entry["status"] == JOURNAL_CHAIN_CONFIRMED
    assert entry["error"] == "store unavailable"
    assert store.list_documents() == []

    report = market.reconcile()
    assert [r["action"] for r in report] == ["needs-replay"]
    assert store.list_documents() == []

    market.reconcile(apply=True)
    assert store.get_document(entry["doc_id"])["title"] == "Guide"
    assert store.journal_entries()[0]["status"] == JOURNAL_CONFIRMED
    assert market.reconcile() == []


def test_buy_sends_line_and_records_purchase(market, registry, store):
    item = CartItem(doc_id=5, title="Guide", seller=SELLER, price_per_token="0.01", amount=10, quantity=3)
    result = market.buy(BUYER, item)

    assert registry.calls[-1] == ("buyDocument", (BUYER, 5, SELLER, 3, "0.01"))
    assert result.purchase["total_price"] == "0.03"
    assert result.purchase["buyer"] == BUYER.lower()
    assert store.purchase_by_tx(result.tx_hash) is not None


def test_checkout_stops_at_first_failure(market, registry):
    cart = Cart(
        [
            CartItem(1, "A", SELLER, "0.01", 1),
            CartItem(2, "B", SELLER, "0.02", 1),
            CartItem(3, "C", SELLER, "0.03", 1),
        ]
    )
    original = registry.buy_document

    def buy(sender, doc_id, *rest):
        if doc_id == 2:
            raise RuntimeError("execution reverted: insufficient balance")
        return original(sender, doc_id, *rest)

    registry.buy_document = buy
    with pytest.raises(RuntimeError, match="insufficient balance"):
        market.checkout(BUYER, cart)

    assert [i.doc_id for i in cart] == [2, 3]


def test_airdrop_twice_reverts_second_time(market):
    assert market.has_received_airdrop(BUYER) is False
    market.request_airdrop(BUYER)
    assert market.has_received_airdrop(BUYER) is True

    with pytest.raises(RuntimeError, match="Already received"):
        market.request_airdrop(BUYER)


def test_update_price_changes_chain_and_listing(market, registry, store):
    result = market.upload_document(SELLER, _guide())
    market.update_price(SELLER, result.doc_id, "0.02")

    assert registry.calls[-1] == ("setSalePrice", (SELLER, result.doc_id, "0.02"))
    assert store.get_document(result.doc_id)["price_per_token"] == "0.02"


def test_ensure_approval_only_once(market, registry):
    assert market.ensure_approval(SELLER) is not None
    assert market.ensure_approval(SELLER) is None


def test_two_sellers_in_the_same_second_are_both_listed(market, store):
    market._clock = lambda: 1_700_000_000
    market.upload_document(SELLER, _guide(title="Mine"))
    market.upload_document(BUYER, _guide(title="Theirs"))

    assert store.get_document(1_700_000_000, BUYER)["title"] == "Theirs"
    assert [e["status"] for e in store.journal_entries()] == [JOURNAL_CONFIRMED] * 2


def test_reconcile_mirrors_the_second_seller_not_the_first(market, store, monkeypatch):
    market._clock = lambda: 1_700_000_000
    market.upload_document(SELLER, _guide(title="Mine"))

    def boom(**kw):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(store, "insert_document", boom)
    with pytest.raises(RuntimeError):
        market.upload_document(BUYER, _guide(title="Theirs"))
    monkeypatch.undo()
    assert store.documents_by_seller(BUYER) == []

    market.reconcile(apply=True)

    assert [d["title"] for d in store.documents_by_seller(BUYER)] == ["Theirs"]
    assert [e["status"] for e in store.journal_entries()] == [JOURNAL_CONFIRMED] * 2


def test_reconcile_keeps_entry_open_when_mirror_differs(market, store):
    market.upload_document(SELLER, _guide())
    row = store.list_documents()[0]
    jid = store.journal_open(
        "register",
        row["doc_id"],
        SELLER,
        {
            "title": "Other",
            "description": "",
            "price_per_token": "0.01",
            "amount": 1,
            "file_url": "file:///elsewhere.pdf",
            "seller": SELLER,
        },
    )
    store.journal_chain_confirmed(jid, "0xbeef")

    report = market.reconcile(apply=True)

    assert [r["action"] for r in report] == ["conflict"]
    entry = store.journal_entries((JOURNAL_CHAIN_CONFIRMED,))[0]
    assert entry["id"] == jid
    assert "different file" in entry["error"]
    assert store.get_document(row["doc_id"], SELLER)["title"] == "Guide"
