# frontend/streamlit_app/core/models.py
# SPDX-License-Identifier: Apache-2.0
"""ORM models for the off-chain metadata mirror.

Three tables:
  • documents       — listing metadata mirrored from the registry contract
  • purchases       — one row per confirmed buy transaction
  • pending_writes  — dual-write journal (chain call → store mirror)

Addresses are stored lower-cased so equality filters match regardless of the
checksum casing a wallet reports.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(Base):
    __tablename__ = "documents"
    # Ids come from the upload clock in whole seconds, so two sellers can share one.
    __table_args__ = (UniqueConstraint("doc_id", "seller", name="uq_documents_doc_seller"),)

    id = Column(Integer, primary_key=True, index=True)
    doc_id = Column(BigInteger, index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, default="")
    seller = Column(String, index=True, nullable=False)
    # Decimal string in ETH, e.g. "0.01". Informational mirror of chain state.
    price_per_token = Column(String, nullable=False)
    amount = Column(Integer, nullable=False, default=1)
    file_url = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "doc_id": self.doc_id,
            "title": self.title,
            "description": self.description or "",
            "seller": self.seller,
            "price_per_token": self.price_per_token,
            "amount": self.amount,
            "file_url": self.file_url,
            "is_active": self.is_active,
            "created_at": self.created_at,
        }


class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True, index=True)
    doc_id = Column(BigInteger, index=True, nullable=False)
    seller = Column(String, index=True, nullable=False)
    buyer = Column(String, index=True, nullable=False)
    quantity = Column(Integer, nullable=False)
    price_per_token = Column(String, nullable=False)
    # Not checked against quantity * price_per_token.
    total_price = Column(String, nullable=False)
    tx_hash = Column(String, index=True, nullable=False)
    status = Column(String, nullable=False, default="completed")
    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "doc_id": self.doc_id,
            "seller": self.seller,
            "buyer": self.buyer,
            "quantity": self.quantity,
            "price_per_token": self.price_per_token,
            "total_price": self.total_price,
            "tx_hash": self.tx_hash,
            "status": self.status,
            "created_at": self.created_at,
        }


class PendingWrite(Base):
    __tablename__ = "pending_writes"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String, nullable=False)  # "register" | "purchase"
    doc_id = Column(BigInteger, index=True, nullable=False)
    account = Column(String, index=True, nullable=False)
    payload = Column(Text, nullable=False)  # JSON
    tx_hash = Column(String, nullable=True)
    status = Column(String, index=True, nullable=False, default="pending")
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
