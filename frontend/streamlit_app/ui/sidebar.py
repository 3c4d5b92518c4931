# frontend/streamlit_app/ui/sidebar.py
# SPDX-License-Identifier: Apache-2.0
"""Sidebar composition for the DocuTrade console.

The sidebar is where the wallet lives. It imports a Sepolia account into the
session's provider (private key or mnemonic, for demos only), connects and
disconnects the session, shows the chain banner, balances and the cart size.

Security & Privacy
------------------
- **Sepolia only.** Secrets typed here are held in the session's provider until
  Disconnect or the end of the browser session; they are never logged or
  persisted.
- Inputs are password fields, prefilled from `WALLET_PRIVATE_KEY` /
  `WALLET_MNEMONIC` when set.

Behavior
--------
- One provider and one `WalletGateway` per browser session, kept in
  `st.session_state`. The gateway's listeners are registered once (`watch()`)
  on that provider only, so account and chain changes stay in their session.
  Only the `Web3` connection underneath is shared by the process.
- Any connect failure is shown as one sidebar alert; the session stays
  disconnected.
- A chain mismatch renders a warning with a "Switch to Sepolia" button.
  Nothing is blocked.
- Balance lookups that fail degrade to "n/a" rather than breaking the page.

Returns
-------
`render_sidebar_and_status()` returns the base context dict:
- `settings`, `GUIDED_MODE`
- `gateway`: the session's `WalletGateway`
- `account`: connected address or None
- `cart`: the session `Cart`
- `storage`: `JsonStorage` for explicit cart save/restore
"""

from __future__ import annotations

import logging
from typing import Any

import streamlit as st

from core.clients import make_token, new_provider
from core.config import ConfigError, settings
from core.state import ensure_defaults, track_account
from services.contracts import fmt_eth
from services.storage import JsonStorage
from services.wallet import WalletGateway
from ui.components import short_addr
from ui.keys import k

log = logging.getLogger(__name__)


def _gateway() -> WalletGateway:
    ss = st.session_state
    gw = ss.get("GATEWAY")
    if gw is None:
        gw = WalletGateway(
            new_provider(),
            expected_chain_id=settings.EXPECTED_CHAIN_ID,
            explorer_url=settings.EXPLORER_URL,
        )
        gw.watch()
        ss["GATEWAY"] = gw
    return gw


def _connect(gw: WalletGateway, secret: str) -> None:
    if secret.strip():
        gw.provider.import_account(secret)  # type: ignore[union-attr]
    gw.connect()
    st.session_state["WALLET_CHAIN"] = gw.session.chain_id or ""


def _disconnect(gw: WalletGateway) -> None:
    gw.provider.forget_accounts()  # type: ignore[union-attr]
    gw.disconnect()
    st.session_state["WALLET_CHAIN"] = ""


def _balances(gw: WalletGateway, account: str) -> None:
    try:
        st.sidebar.write(f"**Balance**  {fmt_eth(gw.get_balance(account), 4)}")
    except Exception as e:
        log.warning("ETH balance lookup failed: %s", e)
        st.sidebar.write("**Balance**  ⚠️ n/a")

    if not settings.TOKEN_ADDRESS:
        return
    try:
        token = make_token(gw.provider)  # type: ignore[arg-type]
        info = token.token_info()
        st.sidebar.write(f"**{info['symbol']}**  {token.formatted_balance(account)}")
    except ConfigError as e:
        st.sidebar.caption(str(e))


def render_sidebar_and_status() -> dict[str, Any]:
    """Render the sidebar and return the base context dict for the tabs."""
    ensure_defaults()
    ss = st.session_state
    gw = _gateway()

    st.sidebar.header("Wallet (Sepolia only)")
    secret = st.sidebar.text_input(
        "Private key or mnemonic",
        settings.WALLET_PRIVATE_KEY or settings.WALLET_MNEMONIC or "",
        type="password",
        key=k("sidebar", "secret"),
    )

    account = gw.session.account
    c1, c2 = st.sidebar.columns(2)
    if c1.button("Connect", key=k("sidebar", "connect"), disabled=bool(account)):
        try:
            _connect(gw, secret)
        except Exception as e:
            st.sidebar.error(f"Connect failed: {e}")
    if c2.button("Disconnect", key=k("sidebar", "disconnect"), disabled=not account):
        _disconnect(gw)

    account = gw.session.account
    track_account(account)

    warning = gw.chain_warning() if account else None
    if warning:
        st.sidebar.warning(warning)
        if st.sidebar.button("Switch to Sepolia", key=k("sidebar", "switch")):
            try:
                gw.ensure_chain()
                ss["WALLET_CHAIN"] = gw.session.chain_id or ""
            except Exception as e:
                st.sidebar.error(f"Switch failed: {e}")

    GUIDED_MODE = st.sidebar.toggle("Guided mode", value=True, key=k("sidebar", "guided"))

    st.sidebar.markdown("### Status")
    if account:
        st.sidebar.markdown(
            f"**Account**  [`{short_addr(account)}`]({gw.explorer_link(account)})"
        )
        _balances(gw, account)
    else:
        st.sidebar.write("**Account**: —")

    cart = ss["CART"]
    st.sidebar.markdown("---")
    st.sidebar.markdown(f"🛒 **Cart**: {len(cart)} item(s)")

    return dict(
        settings=settings,
        GUIDED_MODE=GUIDED_MODE,
        gateway=gw,
        account=account,
        cart=cart,
        storage=JsonStorage(settings.CART_STORAGE_PATH),
    )
