# frontend/streamlit_app/pages/dashboard.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Streamlit page: Dashboard

Per-account overview:
  • Address with explorer link, sales and purchase totals
  • My listings: tokens sold, activate/deactivate, delete, on-chain price update
  • Purchase and sales history (from the store)
  • Holdings: registry `balanceOf` for every document the account touched

Listing mutations only change the store row (visibility); the on-chain
registration is untouched. Lists are re-read after every mutation.
"""

from decimal import Decimal, InvalidOperation

import streamlit as st

from core.state import busy, is_busy, mark_busy, set_notice
from ui.components import (
    purchases_table,
    service_missing,
    short_addr,
    show_notice,
    wallet_required,
)
from ui.keys import k


def _sum_eth(rows: list[dict]) -> Decimal:
    total = Decimal(0)
    for r in rows:
        try:
            total += Decimal(r["total_price"])
        except (InvalidOperation, TypeError):
            continue
    return total


def _my_listings(ctx: dict, me: str) -> list[dict]:
    store = ctx["store"]
    try:
        docs = store.documents_by_seller(me)
        sold = {
            d["doc_id"]: sum(int(p["quantity"]) for p in store.purchases_by_doc(d["doc_id"], me))
            for d in docs
        }
    except Exception as e:
        st.error(f"Loading listings failed: {e}")
        return []
    if not docs:
        st.info("You have not listed any documents.")
        return docs

    for doc in docs:
        doc_id = doc["doc_id"]
        with st.container(border=True):
            a, b, c = st.columns([4, 2, 2])
            state = "🟢 active" if doc["is_active"] else "⚪ inactive"
            a.markdown(
                f"**{doc['title']}** · #{doc_id}  \n"
                f"{state} · {doc['price_per_token']} ETH · {sold[doc_id]}/{doc['amount']} sold"
            )

            label = "Deactivate" if doc["is_active"] else "Activate"
            if b.button(label, key=k("dash", "toggle", doc_id)):
                try:
                    store.set_active(doc_id, me, not doc["is_active"])
                except Exception as e:
                    st.error(f"{label} failed: {e}")
                else:
                    st.rerun()
            if c.button("Delete", key=k("dash", "delete", doc_id)):
                try:
                    store.delete_document(doc_id, me)
                except Exception as e:
                    st.error(f"Delete failed: {e}")
                else:
                    st.rerun()

            if ctx.get("marketplace") is None:
                continue
            p1, p2 = st.columns([3, 1])
            new_price = p1.text_input(
                "New price (ETH)",
                value=doc["price_per_token"],
                key=k("dash", "price", doc_id),
                label_visibility="collapsed",
            )
            action = f"price:{doc_id}"
            show_notice(action)
            p2.button(
                "Set price",
                key=k("dash", "set_price", doc_id),
                disabled=is_busy(action),
                on_click=mark_busy,
                args=(action,),
            )
            if is_busy(action):
                try:
                    with busy(action), st.spinner("Updating price…"):
                        ctx["marketplace"].update_price(me, doc_id, new_price.strip())
                except Exception as e:
                    set_notice(action, "error", f"Set price failed: {e}")
                else:
                    set_notice(action, "success", f"Price set to {new_price.strip()} ETH.")
                st.rerun()

    return docs


def _holdings(ctx: dict, me: str, doc_ids: set[int]) -> None:
    registry = ctx.get("registry")
    if registry is None or not doc_ids:
        st.caption("No holdings to show.")
        return
    rows = []
    for doc_id in sorted(doc_ids):
        try:
            rows.append({"Doc": doc_id, "Balance": registry.balance_of(me, doc_id)})
        except Exception as e:
            st.error(f"Holdings lookup failed: {e}")
            return
    st.table(rows)


def render(ctx: dict) -> None:
    """Render the Dashboard tab.

    Args:
        ctx: Sidebar/app context; uses `store`, `registry`, `marketplace`,
            `gateway`, `account`.
    """
    st.header("📊 Dashboard")
    if wallet_required(ctx) or service_missing(ctx, "store"):
        return

    me = ctx["account"].lower()
    try:
        history = ctx["store"].purchases_by_user(me)
    except Exception as e:
        st.error(f"Loading history failed: {e}")
        history = []
    sales = [r for r in history if r["seller"] == me]
    buys = [r for r in history if r["buyer"] == me]

    c1, c2, c3 = st.columns(3)
    link = ctx["gateway"].explorer_link(ctx["account"])
    c1.markdown(f"**👤 Address**  \n[`{short_addr(ctx['account'])}`]({link})")
    c2.metric("💰 Sales", f"{_sum_eth(sales)} ETH")
    c3.metric("📚 Purchases", len(buys))

    st.subheader("My listings")
    if ctx.get("marketplace") is not None:
        show_notice("approve")
        st.button(
            "Approve marketplace for my tokens",
            key=k("dash", "approve"),
            disabled=is_busy("approve"),
            on_click=mark_busy,
            args=("approve",),
        )
        if is_busy("approve"):
            try:
                with busy("approve"), st.spinner("Approving…"):
                    tx_hash = ctx["marketplace"].ensure_approval(ctx["account"])
            except Exception as e:
                set_notice("approve", "error", f"Approve failed: {e}")
            else:
                set_notice("approve", "success", "✅ Approved" if tx_hash else "Already approved.")
            st.rerun()
    listings = _my_listings(ctx, me)

    st.subheader("📋 Transactions")
    purchases_table(history, me)

    st.subheader("Holdings")
    doc_ids = {int(r["doc_id"]) for r in history} | {int(d["doc_id"]) for d in listings}
    _holdings(ctx, ctx["account"], doc_ids)
