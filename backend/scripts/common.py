# backend/scripts/common.py
# SPDX-License-Identifier: Apache-2.0
#
# Purpose
# -------
# Shared bootstrap for the operator CLI scripts. The scripts reuse the
# console's `core/` and `services/` packages, so this module puts
# `frontend/streamlit_app` on sys.path and builds the same service objects the
# app builds, without Streamlit's resource cache.
#
# Conventions
# -----------
# * Configuration comes from `.env` / the environment via `core.config`.
# * Secrets passed with `--secret` override WALLET_PRIVATE_KEY / WALLET_MNEMONIC.
# * Targets Sepolia by default (override RPC_URL in .env).
#
# Security
# --------
# * Private keys and mnemonics grant full control of funds; never commit them.

from __future__ import annotations

import logging
import pathlib
import sys

APP_DIR = pathlib.Path(__file__).resolve().parents[2] / "frontend" / "streamlit_app"
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

from core.config import settings  # noqa: E402
from core.constants import SEPOLIA_CHAIN_ID_HEX  # noqa: E402
from core.db import make_session_factory  # noqa: E402
from services.bucket import LocalBucket, SupabaseBucket  # noqa: E402
from services.contracts import DocumentRegistry  # noqa: E402
from services.marketplace import Marketplace  # noqa: E402
from services.provider import InjectedProvider, ProviderRpcError  # noqa: E402
from services.store import MetadataStore  # noqa: E402


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s: %(message)s",
    )


def provider(secret: str | None = None) -> InjectedProvider:
    """Provider on RPC_URL with the operator account imported, if any."""
    p = InjectedProvider(settings.RPC_URL, chains={SEPOLIA_CHAIN_ID_HEX: settings.RPC_URL})
    secret = secret or settings.WALLET_PRIVATE_KEY or settings.WALLET_MNEMONIC
    if secret:
        p.import_account(secret)
    return p


def registry(p: InjectedProvider) -> DocumentRegistry:
    return DocumentRegistry(
        p,
        settings.require("REGISTRY_CONTRACT_ADDRESS"),
        receipt_timeout=settings.TX_RECEIPT_TIMEOUT,
    )


def store() -> MetadataStore:
    return MetadataStore(make_session_factory(settings.DATABASE_URL))


def marketplace(p: InjectedProvider) -> Marketplace:
    if settings.SUPABASE_URL:
        bucket = SupabaseBucket(
            settings.SUPABASE_URL,
            settings.require("SUPABASE_ANON_KEY"),
            settings.STORAGE_BUCKET,
        )
    else:
        bucket = LocalBucket(settings.LOCAL_BUCKET_DIR)
    return Marketplace(registry(p), store(), bucket)


def operator_address(p: InjectedProvider) -> str | None:
    """The imported operator account, or None when no secret was configured."""
    try:
        accounts = p.request("eth_requestAccounts")
    except ProviderRpcError:
        return None
    return accounts[0] if accounts else None
