# frontend/streamlit_app/ui/components.py
# SPDX-License-Identifier: Apache-2.0
"""Reusable Streamlit UI components.

Small presentation helpers shared by the tabs:
  • short_addr()       — elided 0x address
  • truncate()         — clipped description text
  • info_row()         — label/value row used on the airdrop tab
  • document_card()    — one market listing
  • purchases_table()  — purchase/sale history
  • show_notice()      — outcome of the last busy action
  • wallet_required() / service_missing() — early-return guards for tabs
"""

from __future__ import annotations

from collections.abc import Iterable

import streamlit as st

from core.state import pop_notice

# How many characters to show from the start/end of an address when eliding.
_ADDR_PREFIX = 6
_ADDR_SUFFIX = 4


def short_addr(
    addr: str | None, *, prefix: int = _ADDR_PREFIX, suffix: int = _ADDR_SUFFIX
) -> str:
    """Return "0x1234…abcd" for a full address.

    Short inputs are returned unchanged; None/empty yields "—".
    """
    if not addr:
        return "—"
    if len(addr) <= prefix + suffix + 1:
        return addr
    return f"{addr[:prefix]}…{addr[-suffix:]}"


def truncate(text: str | None, limit: int = 120) -> str:
    text = text or ""
    return text if len(text) <= limit else text[:limit] + "..."


def info_row(label: str, value: str) -> None:
    left, right = st.columns([1, 2])
    left.caption(label)
    right.markdown(f"**{value}**")


def document_card(doc: dict) -> None:
    """Render title, description, seller, date and price of a listing."""
    st.markdown(f"### {doc['title']}")
    st.write(truncate(doc.get("description")))
    created = doc.get("created_at")
    st.caption(
        f"👤 {short_addr(doc.get('seller'))}  ·  "
        f"📅 {created:%Y-%m-%d}  ·  📦 {doc.get('amount', 0)} left"
        if created
        else f"👤 {short_addr(doc.get('seller'))}  ·  📦 {doc.get('amount', 0)} left"
    )
    st.markdown(f"💰 **{doc['price_per_token']} ETH** per token")


def purchases_table(rows: Iterable[dict], me: str | None = None) -> None:
    """Render purchases newest first, tagging each as a buy or a sale for `me`."""
    rows_list = list(rows or [])
    if not rows_list:
        st.info("No transactions yet.")
        return
    me_l = (me or "").lower()
    st.table(
        [
            {
                "Side": "Bought" if r["buyer"] == me_l else "Sold",
                "Doc": r["doc_id"],
                "Qty": r["quantity"],
                "Total (ETH)": r["total_price"],
                "Counterparty": short_addr(r["seller"] if r["buyer"] == me_l else r["buyer"]),
                "Tx": short_addr(r["tx_hash"], prefix=10, suffix=6),
            }
            for r in rows_list
        ]
    )


def show_notice(action: str) -> None:
    """Render (once) the outcome message a busy action left for this run."""
    notice = pop_notice(action)
    if notice is None:
        return
    level, message = notice
    getattr(st, level, st.info)(message)


def wallet_required(ctx: dict) -> bool:
    """Show a hint and return True when no wallet is connected."""
    if ctx.get("account"):
        return False
    st.info("🔒 Connect a wallet in the sidebar first.")
    return True


def service_missing(ctx: dict, name: str) -> bool:
    """Return True (with a hint) when `ctx[name]` could not be configured."""
    if ctx.get(name) is not None:
        return False
    st.info(f"Unavailable: `{name}` is not configured. Check `.env`.")
    return True
