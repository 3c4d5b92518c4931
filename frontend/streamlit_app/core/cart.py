# frontend/streamlit_app/core/cart.py
# SPDX-License-Identifier: Apache-2.0
"""Session-local shopping cart.

The cart lives in `st.session_state` for the lifetime of a browser session
and is handed to pages through `ctx`. It is never reconciled against live
on-chain availability; checkout simply attempts each buy.

Adding a document that is already in the cart increases its quantity instead
of creating a second line. Restoring a saved cart replaces the lines.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import asdict, dataclass
from decimal import Decimal, InvalidOperation


@dataclass
class CartItem:
    doc_id: int
    title: str
    seller: str
    price_per_token: str
    amount: int
    quantity: int = 1

    def line_total(self) -> Decimal:
        try:
            return Decimal(self.price_per_token) * int(self.quantity)
        except (InvalidOperation, ValueError):
            return Decimal(0)

    @classmethod
    def from_document(cls, doc: dict, quantity: int = 1) -> CartItem:
        """Build a cart line from a `documents` row dict."""
        return cls(
            doc_id=int(doc["doc_id"]),
            title=str(doc["title"]),
            seller=str(doc["seller"]),
            price_per_token=str(doc["price_per_token"]),
            amount=int(doc.get("amount", 1)),
            quantity=int(quantity),
        )


class Cart:
    def __init__(self, items: Iterable[CartItem] = ()) -> None:
        self._items: dict[int, CartItem] = {}
        for item in items:
            self.add(item)

    def add(self, item: CartItem) -> CartItem:
        if int(item.quantity) < 1:
            raise ValueError("quantity must be >= 1")
        existing = self._items.get(int(item.doc_id))
        if existing is not None and existing.seller.lower() != item.seller.lower():
            raise ValueError(
                f"Document #{item.doc_id} is already in the cart from another seller."
            )
        if existing is None:
            self._items[int(item.doc_id)] = CartItem(**asdict(item))
            return self._items[int(item.doc_id)]
        existing.quantity += int(item.quantity)
        return existing

    def remove(self, doc_id: int) -> None:
        self._items.pop(int(doc_id), None)

    def clear(self) -> None:
        self._items.clear()

    def replace(self, items: Iterable[CartItem]) -> None:
        """Make `items` the whole cart (restore, not merge)."""
        self._items.clear()
        for item in items:
            self.add(item)

    def get(self, doc_id: int) -> CartItem | None:
        return self._items.get(int(doc_id))

    @property
    def items(self) -> list[CartItem]:
        return list(self._items.values())

    def total(self) -> Decimal:
        return sum((i.line_total() for i in self._items.values()), Decimal(0))

    def to_records(self) -> list[dict]:
        return [asdict(i) for i in self._items.values()]

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> Cart:
        cart = cls()
        for r in records or []:
            try:
                cart.add(CartItem(**r))
            except (TypeError, ValueError):
                # Stale or hand-edited records are skipped.
                continue
        return cart

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[CartItem]:
        return iter(self.items)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._items
