# frontend/streamlit_app/pages/airdrop.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Streamlit page: Airdrop

Each account can claim the registry's payment-token airdrop once. The page
shows the registry and payment token, the account's claim status, and a
claim button that is disabled after a successful claim. A repeated claim is
rejected by the contract and the revert message is shown as-is.
"""

import streamlit as st

from core.state import busy, is_busy, mark_busy, set_notice
from services.contracts import Erc20Token, fmt_units
from ui.components import info_row, service_missing, short_addr, show_notice, wallet_required
from ui.keys import k


def _payment_token(ctx: dict) -> Erc20Token:
    registry = ctx["registry"]
    address = registry.payment_token_address()
    token = ctx.get("token")
    if token is not None and token.address.lower() == address.lower():
        return token
    return Erc20Token(registry.provider, address, receipt_timeout=registry.receipt_timeout)


def _token_tools(token: Erc20Token, spender: str, account: str, symbol: str) -> None:
    show_notice("token")
    token_busy = is_busy("approve_max") or is_busy("send")
    allowance = token.formatted_allowance(account, spender)
    st.caption(f"Registry allowance: {allowance} {symbol}")
    st.button(
        "Approve registry (unlimited)",
        key=k("airdrop", "approve_max"),
        disabled=token_busy,
        on_click=mark_busy,
        args=("approve_max",),
    )
    to = st.text_input("Send to (0x…)", key=k("airdrop", "send_to"))
    amount = st.text_input("Amount", key=k("airdrop", "send_amount"), placeholder="10")
    st.button(
        "Send",
        key=k("airdrop", "send"),
        disabled=token_busy or not (to.strip() and amount.strip()),
        on_click=mark_busy,
        args=("send",),
    )

    if is_busy("approve_max"):
        try:
            with busy("approve_max"), st.spinner("Approving…"):
                tx_hash = token.approve_max(account, spender)
        except Exception as e:
            set_notice("token", "error", f"Approve failed: {e}")
        else:
            set_notice(
                "token", "success", f"✅ Approved · tx {short_addr(tx_hash, prefix=10, suffix=6)}"
            )
        st.rerun()
    if is_busy("send"):
        try:
            with busy("send"), st.spinner("Sending…"):
                tx_hash = token.transfer(account, to.strip(), amount.strip())
        except Exception as e:
            set_notice("token", "error", f"Transfer failed: {e}")
        else:
            set_notice(
                "token", "success", f"✅ Sent · tx {short_addr(tx_hash, prefix=10, suffix=6)}"
            )
        st.rerun()


def render(ctx: dict) -> None:
    """Render the Airdrop tab.

    Args:
        ctx: Sidebar/app context; uses `registry`, `token`, `marketplace`, `account`.
    """
    st.header("🎁 Token airdrop")
    if service_missing(ctx, "registry") or service_missing(ctx, "marketplace"):
        return

    registry = ctx["registry"]
    try:
        info = registry.contract_info()
        token = _payment_token(ctx)
        token_info = token.token_info()
    except Exception as e:
        st.error(f"Loading contract info failed: {e}")
        return

    with st.container(border=True):
        info_row("Registry", f"{info['name']} ({info['symbol']})")
        info_row("Registry address", short_addr(info["address"]))
        info_row("Payment token", f"{token_info['name']} ({token_info['symbol']})")
        info_row("Token address", short_addr(token.address))
        info_row("Airdrop amount", f"{info['airdrop_amount']} {token_info['symbol']}")

    if wallet_required(ctx):
        return

    ss = st.session_state
    account = ctx["account"]
    if ss.get("AIRDROP_RECEIVED") is None:
        try:
            ss["AIRDROP_RECEIVED"] = ctx["marketplace"].has_received_airdrop(account)
        except Exception as e:
            st.error(f"Airdrop status failed: {e}")

    received = bool(ss.get("AIRDROP_RECEIVED"))
    st.metric(f"Your {token_info['symbol']} balance", token.formatted_balance(account))
    st.write("Status: ✅ already received" if received else "Status: 🎉 available")

    show_notice("airdrop")
    st.button(
        "Claim airdrop",
        type="primary",
        key=k("airdrop", "claim"),
        disabled=received or is_busy("airdrop"),
        on_click=mark_busy,
        args=("airdrop",),
    )
    if is_busy("airdrop"):
        try:
            with busy("airdrop"), st.spinner("Waiting for confirmation…"):
                tx_hash = ctx["marketplace"].request_airdrop(account)
        except Exception as e:
            set_notice("airdrop", "error", f"Airdrop failed: {e}")
        else:
            ss["AIRDROP_RECEIVED"] = True
            set_notice(
                "airdrop",
                "success",
                f"✅ Received {info['airdrop_amount']} {token_info['symbol']}  \ntx `{tx_hash}`",
            )
        st.rerun()

    with st.expander(f"{token_info['symbol']} tools"):
        _token_tools(token, registry.address, account, token_info["symbol"])

    with st.expander("Raw amounts"):
        try:
            st.write(f"getAirdropAmount(): `{registry.get_airdrop_amount()}`")
            decimals = token_info.get("decimals", 18)
            st.write(f"decimals(): `{decimals}`")
            st.write(f"balanceOf(): `{fmt_units(token.balance_of(account), decimals)}`")
        except Exception as e:
            st.error(f"Lookup failed: {e}")
