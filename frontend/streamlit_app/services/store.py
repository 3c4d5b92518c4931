# frontend/streamlit_app/services/store.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Metadata store client.

CRUD over the `documents` and `purchases` tables plus the dual-write journal
(`pending_writes`). Every method opens its own short session; no transaction
ever spans more than one call, and none spans the chain.

Listing queries return plain dicts (`Model.as_dict()`) so Streamlit can render
them directly and nothing holds a live session.

Conventions
-----------
* Addresses are lower-cased on the way in and on the way out of filters.
* Newest first everywhere: `created_at DESC, id DESC`.
* Owner-scoped mutations (`set_active`, `delete_document`) match on both
  `doc_id` and `seller`; they return False when nothing matched.
* Purchases are accepted as given: `total_price` is informational and is not
  checked against `quantity * price_per_token`.
"""

import json
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import sessionmaker

from core.constants import (
    JOURNAL_CHAIN_CONFIRMED,
    JOURNAL_CONFIRMED,
    JOURNAL_FAILED,
    JOURNAL_PENDING,
    PURCHASE_COMPLETED,
)
from core.models import Document, PendingWrite, Purchase


def _addr(value: str) -> str:
    return (value or "").strip().lower()


class MetadataStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._sessions = session_factory

    # ------------------------------------------------------------------ documents

    def list_documents(self) -> list[dict]:
        """Active documents, newest first."""
        with self._sessions() as db:
            rows = (
                db.query(Document)
                .filter(Document.is_active.is_(True))
                .order_by(Document.created_at.desc(), Document.id.desc())
                .all()
            )
            return [r.as_dict() for r in rows]

    def search_documents(self, query: str) -> list[dict]:
        """Case-insensitive substring search on title/description (active only)."""
        q = (query or "").strip()
        if not q:
            return self.list_documents()
        pattern = f"%{q}%"
        with self._sessions() as db:
            rows = (
                db.query(Document)
                .filter(Document.is_active.is_(True))
                .filter(
                    or_(
                        Document.title.ilike(pattern),
                        Document.description.ilike(pattern),
                    )
                )
                .order_by(Document.created_at.desc(), Document.id.desc())
                .all()
            )
            return [r.as_dict() for r in rows]

    def documents_by_seller(self, seller: str) -> list[dict]:
        """All of a seller's documents, including inactive ones."""
        with self._sessions() as db:
            rows = (
                db.query(Document)
                .filter(Document.seller == _addr(seller))
                .order_by(Document.created_at.desc(), Document.id.desc())
                .all()
            )
            return [r.as_dict() for r in rows]

    def get_document(self, doc_id: int, seller: str | None = None) -> dict | None:
        """One listing; pass `seller` when more than one seller may share the id."""
        with self._sessions() as db:
            q = db.query(Document).filter(Document.doc_id == int(doc_id))
            if seller is not None:
                q = q.filter(Document.seller == _addr(seller))
            row = q.order_by(Document.id.asc()).first()
            return row.as_dict() if row else None

    def insert_document(
        self,
        *,
        doc_id: int,
        title: str,
        seller: str,
        file_url: str,
        description: str,
        price_per_token: str,
        amount: int,
    ) -> dict:
        with self._sessions() as db:
            row = Document(
                doc_id=int(doc_id),
                title=title,
                seller=_addr(seller),
                file_url=file_url,
                description=description,
                price_per_token=str(price_per_token),
                amount=int(amount),
                is_active=True,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return row.as_dict()

    def set_active(self, doc_id: int, seller: str, active: bool) -> bool:
        with self._sessions() as db:
            row = (
                db.query(Document)
                .filter(Document.doc_id == int(doc_id), Document.seller == _addr(seller))
                .first()
            )
            if row is None:
                return False
            row.is_active = bool(active)
            db.commit()
            return True

    def set_price(self, doc_id: int, seller: str, price_per_token: str) -> bool:
        with self._sessions() as db:
            row = (
                db.query(Document)
                .filter(Document.doc_id == int(doc_id), Document.seller == _addr(seller))
                .first()
            )
            if row is None:
                return False
            row.price_per_token = str(price_per_token)
            db.commit()
            return True

    def delete_document(self, doc_id: int, seller: str) -> bool:
        with self._sessions() as db:
            count = (
                db.query(Document)
                .filter(Document.doc_id == int(doc_id), Document.seller == _addr(seller))
                .delete(synchronize_session=False)
            )
            db.commit()
            return count > 0

    # ------------------------------------------------------------------ purchases

    def insert_purchase(
        self,
        *,
        doc_id: int,
        seller: str,
        buyer: str,
        quantity: int,
        price_per_token: str,
        total_price: str,
        tx_hash: str,
    ) -> dict:
        with self._sessions() as db:
            row = Purchase(
                doc_id=int(doc_id),
                seller=_addr(seller),
                buyer=_addr(buyer),
                quantity=int(quantity),
                price_per_token=str(price_per_token),
                total_price=str(total_price),
                tx_hash=tx_hash,
                status=PURCHASE_COMPLETED,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return row.as_dict()

    def purchases_by_user(self, address: str) -> list[dict]:
        """Purchases where `address` is the buyer or the seller."""
        a = _addr(address)
        with self._sessions() as db:
            rows = (
                db.query(Purchase)
                .filter(or_(Purchase.buyer == a, Purchase.seller == a))
                .order_by(Purchase.created_at.desc(), Purchase.id.desc())
                .all()
            )
            return [r.as_dict() for r in rows]

    def purchase_by_tx(self, tx_hash: str) -> dict | None:
        with self._sessions() as db:
            row = db.query(Purchase).filter(Purchase.tx_hash == tx_hash).first()
            return row.as_dict() if row else None

    def purchases_by_doc(self, doc_id: int, seller: str | None = None) -> list[dict]:
        """Completed purchases of one document, optionally from one seller."""
        with self._sessions() as db:
            q = db.query(Purchase).filter(
                Purchase.doc_id == int(doc_id),
                Purchase.status == PURCHASE_COMPLETED,
            )
            if seller is not None:
                q = q.filter(Purchase.seller == _addr(seller))
            rows = q.order_by(Purchase.created_at.desc(), Purchase.id.desc()).all()
            return [r.as_dict() for r in rows]

    # ------------------------------------------------------------------ journal

    def journal_open(self, kind: str, doc_id: int, account: str, payload: dict[str, Any]) -> int:
        """Record intent before a chain call; returns the journal id."""
        with self._sessions() as db:
            row = PendingWrite(
                kind=kind,
                doc_id=int(doc_id),
                account=_addr(account),
                payload=json.dumps(payload, sort_keys=True),
                status=JOURNAL_PENDING,
            )
            db.add(row)
            db.commit()
            return int(row.id)

    def _journal_update(self, journal_id: int, **fields: Any) -> None:
        with self._sessions() as db:
            row = db.get(PendingWrite, int(journal_id))
            if row is None:
                raise LookupError(f"No journal entry {journal_id}")
            for key, value in fields.items():
                setattr(row, key, value)
            db.commit()

    def journal_chain_confirmed(self, journal_id: int, tx_hash: str) -> None:
        self._journal_update(journal_id, status=JOURNAL_CHAIN_CONFIRMED, tx_hash=tx_hash)

    def journal_confirmed(self, journal_id: int) -> None:
        self._journal_update(journal_id, status=JOURNAL_CONFIRMED, error=None)

    def journal_failed(self, journal_id: int, error: str) -> None:
        self._journal_update(journal_id, status=JOURNAL_FAILED, error=error)

    def journal_note_error(self, journal_id: int, error: str) -> None:
        """Keep the status, record why the next step failed."""
        self._journal_update(journal_id, error=error)

    def journal_entries(self, statuses: tuple[str, ...] | None = None) -> list[dict]:
        with self._sessions() as db:
            q = db.query(PendingWrite)
            if statuses:
                q = q.filter(PendingWrite.status.in_(statuses))
            rows = q.order_by(PendingWrite.id.asc()).all()
            return [
                {
                    "id": r.id,
                    "kind": r.kind,
                    "doc_id": r.doc_id,
                    "account": r.account,
                    "payload": json.loads(r.payload),
                    "tx_hash": r.tx_hash,
                    "status": r.status,
                    "error": r.error,
                    "created_at": r.created_at,
                    "updated_at": r.updated_at,
                }
                for r in rows
            ]
