# frontend/streamlit_app/app.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

__doc__ = """DocuTrade — document marketplace console (Streamlit).

This module is the Streamlit entrypoint. It wires up the page chrome, the
wallet sidebar, the service objects, and the main tab set.

Tabs (left-to-right order):
  1) Market     — Browse/search active listings, add to cart, open the file.
  2) Upload     — Register a document on-chain and list it.
  3) Cart       — Review lines, save/restore, checkout.
  4) Airdrop    — Claim the one-time payment-token airdrop.
  5) Dashboard  — My listings, purchase/sales history, holdings.

Design notes:
* Sibling packages (ui/, pages/, core/, services/) are imported by adding this
  directory to sys.path; no installable layout is needed to `streamlit run`.
* Every tab receives the same `ctx` dict. Pages never reach for globals; what
  they need (gateway, store, marketplace, cart) is in `ctx`.
* Contract addresses are required. When one is missing the affected entries
  are None and the tabs that need them say so instead of crashing.
"""

# ────────────────────── sys.path bootstrap for local packages ─────────────────
import pathlib
import sys

APP_DIR = pathlib.Path(__file__).resolve().parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))
# ──────────────────────────────────────────────────────────────────────────────

import logging
from typing import Final

import streamlit as st

from core.clients import get_bucket, get_session_factory, make_registry, make_token
from core.config import ConfigError, settings
from pages import airdrop, cart, dashboard, market, upload
from services.marketplace import Marketplace
from services.store import MetadataStore
from ui.layout import configure_page
from ui.sidebar import render_sidebar_and_status

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s: %(message)s",
)

# ─────────────────────────────── Page chrome ──────────────────────────────────
configure_page(title="DocuTrade — Document Marketplace")

ctx: dict = render_sidebar_and_status()

# ─────────────────────────────── Services ─────────────────────────────────────
ctx["store"] = MetadataStore(get_session_factory())
ctx["registry"] = ctx["token"] = ctx["bucket"] = ctx["marketplace"] = None
try:
    ctx["bucket"] = get_bucket()
    ctx["registry"] = make_registry(ctx["gateway"].provider)
    ctx["token"] = make_token(ctx["gateway"].provider)
except ConfigError as e:
    st.warning(f"Configuration incomplete: {e}")

if ctx["registry"] is not None and ctx["bucket"] is not None:
    ctx["marketplace"] = Marketplace(ctx["registry"], ctx["store"], ctx["bucket"])

# ─────────────────────────────── Tabs wiring ──────────────────────────────────
TAB_TITLES: Final[list[str]] = ["Market", "Upload", "Cart", "Airdrop", "Dashboard"]

tab1, tab2, tab3, tab4, tab5 = st.tabs(TAB_TITLES)

with tab1:
    market.render(ctx)

with tab2:
    upload.render(ctx)

with tab3:
    cart.render(ctx)

with tab4:
    airdrop.render(ctx)

with tab5:
    dashboard.render(ctx)
