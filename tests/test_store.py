"""Metadata store: listing visibility, search, owner scoping and the journal."""

import pytest
from sqlalchemy.exc import IntegrityError

from core.constants import JOURNAL_CHAIN_CONFIRMED, JOURNAL_CONFIRMED, JOURNAL_FAILED, JOURNAL_PENDING

from conftest import BUYER, SELLER


def _doc(store, doc_id, title="Guide", description="", seller=SELLER, amount=1):
    return store.insert_document(
        doc_id=doc_id,
        title=title,
        seller=seller,
        file_url=f"file:///tmp/{doc_id}.pdf",
        description=description,
        price_per_token="0.01",
        amount=amount,
    )


def test_insert_lowercases_seller(store):
    row = _doc(store, 1)
    assert row["seller"] == SELLER.lower()
    assert row["is_active"] is True


def test_deactivated_documents_are_not_listed(store):
    _doc(store, 1, amount=100)
    _doc(store, 2)
    assert store.set_active(1, SELLER, False) is True

    assert [d["doc_id"] for d in store.list_documents()] == [2]
    assert {d["doc_id"] for d in store.documents_by_seller(SELLER)} == {1, 2}


def test_listing_is_newest_first(store):
    for i in (1, 2, 3):
        _doc(store, i)
    assert [d["doc_id"] for d in store.list_documents()] == [3, 2, 1]


def test_blank_search_equals_listing(store):
    _doc(store, 1, "Alpha")
    _doc(store, 2, "Beta")
    assert store.search_documents("") == store.list_documents()
    assert store.search_documents("   ") == store.list_documents()


def test_search_matches_title_or_description_case_insensitive(store):
    _doc(store, 1, "Solidity Guide")
    _doc(store, 2, "Notes", description="a GUIDE to rust")
    _doc(store, 3, "Other")
    store.set_active(3, SELLER, False)

    assert {d["doc_id"] for d in store.search_documents("guide")} == {1, 2}
    assert store.search_documents("other") == []


def test_owner_scoped_mutations(store):
    _doc(store, 1)
    assert store.set_active(1, BUYER, False) is False
    assert store.delete_document(1, BUYER) is False
    assert store.set_price(1, BUYER, "9") is False

    assert store.set_price(1, SELLER.upper().replace("0X", "0x"), "0.05") is True
    assert store.get_document(1)["price_per_token"] == "0.05"
    assert store.delete_document(1, SELLER) is True
    assert store.get_document(1) is None


def test_purchase_total_is_not_validated(store):
    row = store.insert_purchase(
        doc_id=1,
        seller=SELLER,
        buyer=BUYER,
        quantity=3,
        price_per_token="0.01",
        total_price="5",
        tx_hash="0xabc",
    )
    assert row["total_price"] == "5"
    assert row["status"] == "completed"
    assert store.purchase_by_tx("0xabc")["id"] == row["id"]


def test_purchases_by_user_covers_both_sides(store):
    kw = dict(doc_id=1, quantity=1, price_per_token="0.01", total_price="0.01")
    store.insert_purchase(seller=SELLER, buyer=BUYER, tx_hash="0x1", **kw)
    store.insert_purchase(seller=BUYER, buyer="0x2222222222222222222222222222222222222222", tx_hash="0x2", **kw)

    assert [p["tx_hash"] for p in store.purchases_by_user(BUYER)] == ["0x2", "0x1"]
    assert [p["tx_hash"] for p in store.purchases_by_user(SELLER)] == ["0x1"]
    assert len(store.purchases_by_doc(1)) == 2


def test_journal_lifecycle(store):
    jid = store.journal_open("register", 7, SELLER, {"title": "Guide"})
    assert store.journal_entries((JOURNAL_PENDING,))[0]["payload"] == {"title": "Guide"}

    store.journal_chain_confirmed(jid, "0xfeed")
    store.journal_note_error(jid, "db down")
    entry = store.journal_entries((JOURNAL_CHAIN_CONFIRMED,))[0]
    assert (entry["tx_hash"], entry["error"]) == ("0xfeed", "db down")

    store.journal_confirmed(jid)
    entry = store.journal_entries()[0]
    assert entry["status"] == JOURNAL_CONFIRMED
    assert entry["error"] is None

    other = store.journal_open("purchase", 8, BUYER, {})
    store.journal_failed(other, "reverted")
    assert [e["id"] for e in store.journal_entries((JOURNAL_FAILED,))] == [other]


def test_same_doc_id_from_two_sellers_are_separate_listings(store):
    _doc(store, 1_700_000_000, title="Mine")
    _doc(store, 1_700_000_000, title="Theirs", seller=BUYER)

    assert store.get_document(1_700_000_000, SELLER)["title"] == "Mine"
    assert store.get_document(1_700_000_000, BUYER)["title"] == "Theirs"
    assert len(store.list_documents()) == 2


def test_same_doc_id_and_seller_is_rejected(store):
    _doc(store, 1)
    with pytest.raises(IntegrityError):
        _doc(store, 1, title="Again")


def test_purchases_by_doc_filters_by_seller(store):
    kw = dict(doc_id=1, quantity=2, price_per_token="0.01", total_price="0.02")
    store.insert_purchase(seller=SELLER, buyer=BUYER, tx_hash="0x1", **kw)
    store.insert_purchase(seller=BUYER, buyer=SELLER, tx_hash="0x2", **kw)

    assert [p["tx_hash"] for p in store.purchases_by_doc(1, SELLER)] == ["0x1"]
    assert store.purchases_by_doc(2) == []
