# frontend/streamlit_app/pages/market.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Streamlit page: Market

Browse active listings, search by title/description, add to the session cart
and open the stored file.

Notes
-----
- Listings come from the metadata store only; remaining on-chain supply is
  not checked here. Checkout is where the chain has the final word.
- The cart merges repeat adds of the same document by summing quantity.
- Search is case-insensitive and matches substrings; a blank query lists
  everything active.
"""

import streamlit as st

from core.cart import CartItem
from services.contracts import fmt_units
from ui.components import document_card, service_missing, short_addr
from ui.keys import k
from ui.layout import card_grid


def _listing(ctx: dict, doc: dict) -> None:
    document_card(doc)
    me = (ctx.get("account") or "").lower()
    own = bool(me) and doc["seller"] == me

    qty = st.number_input(
        "Quantity",
        min_value=1,
        max_value=max(int(doc.get("amount") or 1), 1),
        value=1,
        step=1,
        key=k("market", "qty", doc["doc_id"], doc["seller"]),
    )
    c1, c2 = st.columns(2)
    if c1.button(
        "🛒 Add to cart",
        key=k("market", "add", doc["doc_id"], doc["seller"]),
        disabled=own,
        help="This is your own listing." if own else None,
    ):
        try:
            line = ctx["cart"].add(CartItem.from_document(doc, int(qty)))
            st.success(f"“{doc['title']}” in cart (qty {line.quantity}).")
        except ValueError as e:
            st.error(f"Add to cart failed: {e}")
    if doc.get("file_url"):
        c2.link_button("⬇️ Open file", doc["file_url"])

    registry = ctx.get("registry")
    if registry is not None and st.button(
        "🔎 Verify on-chain", key=k("market", "verify", doc["doc_id"], doc["seller"])
    ):
        try:
            info = registry.get_document_info(doc["doc_id"])
            price = fmt_units(registry.get_price(doc["doc_id"], doc["seller"]))
        except Exception as e:
            st.error(f"Verify failed: {e}")
        else:
            st.caption(f"Registry: “{info.title}” by {short_addr(info.author)} · {price} ETH")
            if info.file_url != doc.get("file_url"):
                st.warning("Stored file URL differs from the registry record.")


def render(ctx: dict) -> None:
    """Render the Market tab.

    Args:
        ctx: Sidebar/app context; uses `store`, `registry`, `cart`, `account` and
            `GUIDED_MODE`.
    """
    st.header("📚 Document Market")
    st.caption("Trade documents on Sepolia. Listings are mirrored from the registry.")

    if service_missing(ctx, "store"):
        return

    ss = st.session_state
    query = st.text_input(
        "Search title or description",
        value=ss.get("SEARCH_QUERY", ""),
        key=k("market", "search"),
    )
    ss["SEARCH_QUERY"] = query

    try:
        docs = ctx["store"].search_documents(query)
    except Exception as e:
        st.error(f"Loading listings failed: {e}")
        return

    if not docs:
        st.info("No documents match." if query.strip() else "No documents listed yet.")
        return

    st.caption(f"{len(docs)} listing(s)")
    for doc in card_grid(docs, 3, ctx.get("GUIDED_MODE", True)):
        _listing(ctx, doc)
