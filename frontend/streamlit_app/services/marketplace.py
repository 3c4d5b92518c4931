# frontend/streamlit_app/services/marketplace.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Marketplace flows: the chain write followed by the store mirror.

Upload:   validate → upload blob → journal(pending) → registerDocument →
          journal(chain_confirmed) → insert `documents` row → journal(confirmed)
Buy:      journal(pending) → buyDocument (payable) → journal(chain_confirmed)
          → insert `purchases` row → journal(confirmed)

The two systems are not written atomically. If the store insert fails after
the chain write succeeded, the exception propagates to the page and the
journal entry stays at `chain_confirmed`; `reconcile()` (run by an operator
through `backend/scripts/reconcile_pending.py`) replays the mirror. Nothing
here retries on its own.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from core.cart import Cart, CartItem
from core.constants import JOURNAL_CHAIN_CONFIRMED, JOURNAL_PENDING, check_upload
from services.bucket import Bucket
from services.contracts import DocumentRegistry, parse_ether
from services.store import MetadataStore

log = logging.getLogger(__name__)

Progress = Callable[[int, str], None]


def _noop_progress(pct: int, message: str) -> None:
    return None


# =============================================================================
# Requests / results
# =============================================================================


@dataclass
class UploadRequest:
    title: str
    description: str
    price_per_token: str
    amount: int | str
    filename: str
    content: bytes
    mime_type: str | None = None

    def validate(self) -> None:
        """Raise ValueError naming the first missing or invalid field."""
        for field in ("title", "price_per_token"):
            if not str(getattr(self, field) or "").strip():
                raise ValueError(f"{field.replace('_', ' ').capitalize()} is required.")
        if not self.filename or self.content is None:
            raise ValueError("A file is required.")
        try:
            amount = int(str(self.amount).strip())
        except ValueError as e:
            raise ValueError("Amount must be a whole number.") from e
        if amount < 1:
            raise ValueError("Amount must be at least 1.")
        if parse_ether(self.price_per_token) <= 0:
            raise ValueError("Price per token must be greater than 0.")
        check_upload(self.filename, len(self.content), self.mime_type)


@dataclass(frozen=True)
class UploadResult:
    doc_id: int
    tx_hash: str
    file_url: str
    document: dict


@dataclass(frozen=True)
class PurchaseResult:
    doc_id: int
    tx_hash: str
    purchase: dict


# =============================================================================
# Flows
# =============================================================================


class Marketplace:
    def __init__(
        self,
        registry: DocumentRegistry,
        store: MetadataStore,
        bucket: Bucket,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.registry = registry
        self.store = store
        self.bucket = bucket
        self._clock = clock

    def new_doc_id(self) -> int:
        """Document ids are the current unix time in seconds."""
        return int(self._clock())

    # ------------------------------------------------------------------ upload

    def upload_document(
        self,
        seller: str,
        req: UploadRequest,
        progress: Progress | None = None,
    ) -> UploadResult:
        progress = progress or _noop_progress
        req.validate()
        amount = int(str(req.amount).strip())
        doc_id = self.new_doc_id()

        progress(33, "Uploading file…")
        file_url = self.bucket.upload(doc_id, req.filename, req.content, req.mime_type)

        journal_id = self.store.journal_open(
            "register",
            doc_id,
            seller,
            {
                "title": req.title,
                "description": req.description,
                "price_per_token": req.price_per_token,
                "amount": amount,
                "file_url": file_url,
                "seller": seller,
            },
        )

        progress(66, "Registering on-chain…")
        try:
            tx_hash = self.registry.register_document(
                seller, doc_id, amount, req.title, file_url, req.description
            )
        except Exception as e:
            self.store.journal_failed(journal_id, str(e))
            raise
        self.store.journal_chain_confirmed(journal_id, tx_hash)

        progress(90, "Saving listing…")
        try:
            document = self.store.insert_document(
                doc_id=doc_id,
                title=req.title,
                seller=seller,
                file_url=file_url,
                description=req.description,
                price_per_token=req.price_per_token,
                amount=amount,
            )
        except Exception as e:
            log.error("Document %s registered (%s) but not mirrored: %s", doc_id, tx_hash, e)
            self.store.journal_note_error(journal_id, str(e))
            raise
        self.store.journal_confirmed(journal_id)

        progress(100, "Done")
        log.info("Document %s listed by %s (tx %s)", doc_id, seller, tx_hash)
        return UploadResult(doc_id, tx_hash, file_url, document)

    # ------------------------------------------------------------------ buy

    def buy(self, buyer: str, item: CartItem) -> PurchaseResult:
        total_price = str(item.line_total())
        journal_id = self.store.journal_open(
            "purchase",
            item.doc_id,
            buyer,
            {
                "seller": item.seller,
                "buyer": buyer,
                "quantity": int(item.quantity),
                "price_per_token": item.price_per_token,
                "total_price": total_price,
            },
        )
        try:
            tx_hash = self.registry.buy_document(
                buyer, item.doc_id, item.seller, int(item.quantity), item.price_per_token
            )
        except Exception as e:
            self.store.journal_failed(journal_id, str(e))
            raise
        self.store.journal_chain_confirmed(journal_id, tx_hash)

        try:
            purchase = self.store.insert_purchase(
                doc_id=item.doc_id,
                seller=item.seller,
                buyer=buyer,
                quantity=int(item.quantity),
                price_per_token=item.price_per_token,
                total_price=total_price,
                tx_hash=tx_hash,
            )
        except Exception as e:
            log.error("Purchase %s confirmed on-chain but not mirrored: %s", tx_hash, e)
            self.store.journal_note_error(journal_id, str(e))
            raise
        self.store.journal_confirmed(journal_id)
        return PurchaseResult(item.doc_id, tx_hash, purchase)

    def checkout(self, buyer: str, cart: Cart) -> list[PurchaseResult]:
        """Buy every cart line in order.

        Each successful line leaves the cart immediately; the first failure
        propagates and the remaining lines stay in the cart.
        """
        results: list[PurchaseResult] = []
        for item in cart.items:
            results.append(self.buy(buyer, item))
            cart.remove(item.doc_id)
        return results

    # ------------------------------------------------------------------ listings

    def update_price(self, seller: str, doc_id: int, price_per_token: str) -> str:
        """setSalePrice on-chain, then update the listing's displayed price."""
        if parse_ether(price_per_token) <= 0:
            raise ValueError("Price per token must be greater than 0.")
        tx_hash = self.registry.set_sale_price(seller, doc_id, price_per_token)
        if not self.store.set_price(doc_id, seller, price_per_token):
            log.warning("Price for doc %s set on-chain (%s) but no listing matched", doc_id, tx_hash)
        return tx_hash

    def ensure_approval(self, seller: str) -> str | None:
        """Approve the registry as operator for `seller` unless already approved."""
        if self.registry.is_approved_for_all(seller):
            return None
        return self.registry.approve_contract(seller)

    # ------------------------------------------------------------------ airdrop

    def request_airdrop(self, account: str) -> str:
        return self.registry.request_airdrop(account)

    def has_received_airdrop(self, account: str) -> bool:
        return self.registry.check_airdrop_status(account)

    # ------------------------------------------------------------------ journal

    def reconcile(self, *, apply: bool = False) -> list[dict]:
        """Report (and with `apply`, repair) writes stuck between chain and store.

        `chain_confirmed` entries have a transaction hash but no store row;
        applying replays the store insert from the journal payload.
        `pending` entries have no known transaction and are only reported.

        An entry is confirmed only when the mirrored row matches its payload.
        A row that exists for the same id and seller but describes a different
        upload is a conflict: the entry stays `chain_confirmed` with the
        conflict recorded as its error.
        """
        report: list[dict] = []
        for entry in self.store.journal_entries((JOURNAL_PENDING, JOURNAL_CHAIN_CONFIRMED)):
            action = "report"
            if entry["status"] == JOURNAL_CHAIN_CONFIRMED:
                action = "replay" if apply else "needs-replay"
                if apply:
                    conflict = self._replay(entry)
                    if conflict:
                        log.warning("Journal %s not confirmed: %s", entry["id"], conflict)
                        self.store.journal_note_error(entry["id"], conflict)
                        entry = {**entry, "error": conflict}
                        action = "conflict"
                    else:
                        self.store.journal_confirmed(entry["id"])
            report.append({**entry, "action": action})
        return report

    def _replay(self, entry: dict) -> str | None:
        """Write the missing mirror row; returns a conflict message instead of confirming."""
        p = entry["payload"]
        if entry["kind"] == "register":
            existing = self.store.get_document(entry["doc_id"], p["seller"])
            if existing is not None:
                if existing["file_url"] != p["file_url"]:
                    return (
                        f"Document {entry['doc_id']} for {existing['seller']} is already "
                        f"mirrored with a different file ({existing['file_url']})."
                    )
            else:
                self.store.insert_document(
                    doc_id=entry["doc_id"],
                    title=p["title"],
                    seller=p["seller"],
                    file_url=p["file_url"],
                    description=p["description"],
                    price_per_token=p["price_per_token"],
                    amount=int(p["amount"]),
                )
        elif entry["kind"] == "purchase":
            if self.store.purchase_by_tx(entry["tx_hash"]) is None:
                self.store.insert_purchase(
                    doc_id=entry["doc_id"],
                    seller=p["seller"],
                    buyer=p["buyer"],
                    quantity=int(p["quantity"]),
                    price_per_token=p["price_per_token"],
                    total_price=p["total_price"],
                    tx_hash=entry["tx_hash"],
                )
        else:
            raise ValueError(f"Unknown journal kind: {entry['kind']}")
        log.info("Replayed %s mirror for doc %s", entry["kind"], entry["doc_id"])
        return None
