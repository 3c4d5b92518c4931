# frontend/streamlit_app/core/state.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Session-scoped UI state helpers for the DocuTrade console.

This module centralizes the **default values** we expect to exist in
`st.session_state`, a single entry point to initialize them, and the
per-action busy flag pages use to disable buttons while a request is
outstanding.

Design notes
------------
- Initialization is **idempotent**: calling `ensure_defaults()` multiple
  times is safe; existing values are preserved.
- Mutable defaults (cart, upload form) are produced by factories so every
  session gets its own instance.
- Busy flags are plain booleans keyed `BUSY:<action>`; there is no queue.
  A screen is idle, busy, or showing the last error. The flag is raised by
  the button's `on_click` (`mark_busy`) and the outcome is kept as a notice
  for the following rerun, when the button is enabled again.

Usage
-----
Call `ensure_defaults()` once near the top of the Streamlit app (the sidebar
does this), **before** pages read from `st.session_state`.
"""

from collections.abc import Callable, Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any, Final

import streamlit as st

from core.cart import Cart


def _empty_upload_form() -> dict[str, str]:
    return {"title": "", "description": "", "price_per_token": "", "amount": "1"}


# Canonical set of session keys and factories for their initial values.
DEFAULTS: Final[dict[str, Callable[[], Any]]] = {
    # Connected account address ("" when disconnected).
    "WALLET_ACCOUNT": str,
    # Chain id last reported by the provider (hex string).
    "WALLET_CHAIN": str,
    # Session cart (merged by doc id).
    "CART": Cart,
    # Upload form draft, kept across tab switches.
    "UPLOAD_FORM": _empty_upload_form,
    # Last market search query.
    "SEARCH_QUERY": str,
    # Airdrop received flag for WALLET_ACCOUNT (None = unknown).
    "AIRDROP_RECEIVED": lambda: None,
}

__all__ = [
    "DEFAULTS",
    "ensure_defaults",
    "track_account",
    "busy",
    "is_busy",
    "mark_busy",
    "set_notice",
    "pop_notice",
    "reset_upload_form",
]


def ensure_defaults(state: MutableMapping[str, Any] | None = None) -> None:
    """Ensure all expected session keys exist with sane defaults.

    Args:
        state: Mapping to initialize; defaults to `st.session_state`.
    """
    ss = st.session_state if state is None else state
    for key, factory in DEFAULTS.items():
        if key not in ss:
            ss[key] = factory()


def reset_upload_form(state: MutableMapping[str, Any] | None = None) -> None:
    ss = st.session_state if state is None else state
    ss["UPLOAD_FORM"] = _empty_upload_form()


def _busy_key(action: str) -> str:
    return f"BUSY:{action}"


def is_busy(action: str, state: MutableMapping[str, Any] | None = None) -> bool:
    ss = st.session_state if state is None else state
    return bool(ss.get(_busy_key(action), False))


@contextmanager
def busy(action: str, state: MutableMapping[str, Any] | None = None) -> Iterator[None]:
    """Mark `action` busy for the duration of the block.

    The flag is cleared even when the block raises, so a failed request never
    leaves its button disabled.
    """
    ss = st.session_state if state is None else state
    ss[_busy_key(action)] = True
    try:
        yield
    finally:
        ss[_busy_key(action)] = False


def mark_busy(action: str, state: MutableMapping[str, Any] | None = None) -> None:
    """`on_click` callback that flags `action` before the rerun handling the click.

    Callbacks run ahead of the script, so the button is rendered disabled for
    the whole run that performs the request. Pages then do the work under
    `busy(action)` when `is_busy(action)` is set, which clears the flag.
    """
    ss = st.session_state if state is None else state
    ss[_busy_key(action)] = True


def set_notice(
    action: str, level: str, message: str, state: MutableMapping[str, Any] | None = None
) -> None:
    """Keep an outcome message for `action` across the rerun that re-enables its button."""
    ss = st.session_state if state is None else state
    ss[f"NOTICE:{action}"] = (level, message)


def pop_notice(
    action: str, state: MutableMapping[str, Any] | None = None
) -> tuple[str, str] | None:
    ss = st.session_state if state is None else state
    return ss.pop(f"NOTICE:{action}", None)


def track_account(account: str | None, state: MutableMapping[str, Any] | None = None) -> bool:
    """Record the connected account; per-account flags reset when it changes.

    Returns True when the account differs from the previous run.
    """
    ss = st.session_state if state is None else state
    account = account or ""
    if ss.get("WALLET_ACCOUNT", "") == account:
        return False
    ss["WALLET_ACCOUNT"] = account
    ss["AIRDROP_RECEIVED"] = None
    return True
