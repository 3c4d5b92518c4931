# frontend/streamlit_app/pages/cart.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Streamlit page: Cart

Lines are bought one by one (one `buyDocument` per line, value = price ×
quantity). A line leaves the cart as soon as its purchase is recorded; the
first failure stops checkout, is shown verbatim, and leaves the remaining
lines in place.

The cart is session-local. "Save" and "Restore" copy it to/from the JSON
storage file under the key `pending_purchases_<address>`. Restore replaces
the session cart with the saved lines; a checkout that empties the cart also
drops the saved copy so it cannot be bought twice.
"""

import streamlit as st

from core.cart import Cart
from core.state import busy, is_busy, mark_busy, set_notice
from services.contracts import fmt_eth, parse_ether
from services.storage import cart_key
from ui.components import short_addr, show_notice
from ui.keys import k


def _save(ctx: dict) -> None:
    ctx["storage"].write(cart_key(ctx.get("account")), ctx["cart"].to_records())


def _restore(ctx: dict) -> int:
    saved = Cart.from_records(ctx["storage"].read(cart_key(ctx.get("account")), []))
    ctx["cart"].replace(saved)
    return len(saved)


def _checkout(ctx: dict) -> tuple[str, str]:
    cart: Cart = ctx["cart"]
    before = len(cart)
    try:
        with busy("checkout"), st.spinner("Buying…"):
            results = ctx["marketplace"].checkout(ctx["account"], cart)
    except Exception as e:
        level, message = "error", f"Checkout failed: {e}"
    else:
        level, message = "success", f"✅ Bought {len(results)} document(s)."
        ctx["storage"].delete(cart_key(ctx.get("account")))
    done = before - len(cart)
    if done and len(cart):
        message += f"  \n{done} line(s) purchased; {len(cart)} left in cart."
    return level, message


def render(ctx: dict) -> None:
    """Render the Cart tab.

    Args:
        ctx: Sidebar/app context; uses `cart`, `storage`, `marketplace`, `account`.
    """
    st.header("🛒 Cart")
    cart: Cart = ctx["cart"]
    show_notice("checkout")

    c1, c2, c3 = st.columns(3)
    if c1.button("💾 Save cart", key=k("cart", "save"), disabled=not len(cart)):
        try:
            _save(ctx)
            st.success("Cart saved.")
        except OSError as e:
            st.error(f"Save failed: {e}")
    if c2.button("↩️ Restore saved", key=k("cart", "restore")):
        n = _restore(ctx)
        if n:
            st.success(f"Restored {n} line(s).")
        else:
            st.info("Nothing saved.")
    if c3.button("🗑️ Clear", key=k("cart", "clear"), disabled=not len(cart)):
        cart.clear()

    if not len(cart):
        st.info("Your cart is empty.")
        return

    for item in cart.items:
        with st.container(border=True):
            a, b, c = st.columns([4, 2, 1])
            a.markdown(f"**{item.title}**  \n👤 {short_addr(item.seller)} · #{item.doc_id}")
            b.markdown(
                f"{item.quantity} × {item.price_per_token} ETH  \n"
                f"= **{item.line_total()} ETH**"
            )
            if c.button(
                "Remove", key=k("cart", "remove", item.doc_id), disabled=is_busy("checkout")
            ):
                cart.remove(item.doc_id)
                st.rerun()

    st.subheader(f"Total: {cart.total()} ETH")
    if not ctx.get("account"):
        st.info("🔒 Connect a wallet in the sidebar to check out.")
        return
    if ctx.get("marketplace") is None:
        st.info("Checkout unavailable: the registry contract is not configured.")
        return

    try:
        balance = ctx["gateway"].get_balance()
        if balance < parse_ether(cart.total()):
            st.warning(f"Balance {fmt_eth(balance)} is below the cart total.")
    except Exception:
        # Balance hint only; checkout surfaces the real error.
        pass

    st.button(
        "Checkout",
        type="primary",
        key=k("cart", "checkout"),
        disabled=is_busy("checkout"),
        on_click=mark_busy,
        args=("checkout",),
    )
    if is_busy("checkout"):
        set_notice("checkout", *_checkout(ctx))
        st.rerun()
