# frontend/streamlit_app/core/clients.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Client factories for the DocuTrade console.

Shared connections are wrapped with `@st.cache_resource` so that:
  * A single instance is created per Streamlit process, avoiding repeated
    socket creation, TLS handshakes and engine pools.
  * The cached instance persists across reruns triggered by UI interaction.
  * Objects are stored as resources (not pickled), which is appropriate for
    network clients and database engines.

Factories
---------
- `get_web3(url)`         → `Web3` HTTP connection, one per RPC url (cached)
- `get_session_factory()` → SQLAlchemy `sessionmaker` (cached)
- `get_bucket()`          → `SupabaseBucket` or `LocalBucket` (cached)
- `new_provider()`        → `InjectedProvider` for one browser session
- `make_registry(p)`      → `DocumentRegistry` bound to provider `p`
- `make_token(p)`         → `Erc20Token` bound to provider `p`

The provider holds the session's imported keys and its event listeners, so
it is never cached: the sidebar keeps one per browser session, and the
contract clients that sign through it are built per run. They share the
cached `Web3` connection underneath.

Failure behavior:
  * Contract factories raise `ConfigError` when their address is missing;
    fixing `.env` and rerunning recovers.
  * Network errors surface on the first request, not at construction.
"""

import streamlit as st
from web3 import Web3

from core.config import settings
from core.constants import SEPOLIA_CHAIN_ID_HEX
from core.db import make_session_factory
from services.bucket import Bucket, LocalBucket, SupabaseBucket
from services.contracts import DocumentRegistry, Erc20Token
from services.provider import InjectedProvider


@st.cache_resource(show_spinner=False)
def get_web3(rpc_url: str) -> Web3:
    return Web3(Web3.HTTPProvider(rpc_url))


@st.cache_resource(show_spinner=False)
def get_session_factory():
    return make_session_factory(settings.DATABASE_URL)


@st.cache_resource(show_spinner=False)
def get_bucket() -> Bucket:
    if settings.SUPABASE_URL:
        return SupabaseBucket(
            settings.SUPABASE_URL,
            settings.require("SUPABASE_ANON_KEY"),
            settings.STORAGE_BUCKET,
        )
    return LocalBucket(settings.LOCAL_BUCKET_DIR)


def new_provider() -> InjectedProvider:
    # Sepolia is always a known switch target.
    return InjectedProvider(
        settings.RPC_URL,
        chains={SEPOLIA_CHAIN_ID_HEX: settings.RPC_URL},
        web3_factory=get_web3,
    )


def make_registry(provider: InjectedProvider) -> DocumentRegistry:
    return DocumentRegistry(
        provider,
        settings.require("REGISTRY_CONTRACT_ADDRESS"),
        receipt_timeout=settings.TX_RECEIPT_TIMEOUT,
    )


def make_token(provider: InjectedProvider) -> Erc20Token:
    return Erc20Token(
        provider,
        settings.require("TOKEN_ADDRESS"),
        receipt_timeout=settings.TX_RECEIPT_TIMEOUT,
    )
