# frontend/streamlit_app/core/config.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Centralized, immutable application configuration for the DocuTrade console.

This module defines a frozen `Settings` dataclass whose fields are populated
from environment variables (loaded via python-dotenv if a `.env` file is
present). The resulting singleton `settings` is imported by other modules to
avoid scattering `os.getenv` calls throughout the codebase.

Design goals
------------
- **Single source of truth**: All tunables live here; other modules consume
  `settings` rather than reading environment variables directly.
- **Immutability**: `@dataclass(frozen=True)` prevents accidental mutation at
  runtime. Changes require process restart (or re-instantiation in tests).
- **Fast import**: Only minimal work at import time (dotenv load + dataclass
  construction). No network calls here.
- **Required addresses fail late**: the registry and token contract addresses
  have no fallback. They default to empty strings and `Settings.require()`
  raises `ConfigError` the first time a caller needs one.

Security notes
--------------
- `WALLET_PRIVATE_KEY` / `WALLET_MNEMONIC` only prefill the sidebar for
  Sepolia demos. Never put mainnet keys in `.env`.

Testing
-------
Construct a `Settings(...)` directly with the fields you need instead of
reloading this module:
    >>> s = Settings(REGISTRY_CONTRACT_ADDRESS="0x" + "11" * 20)
    >>> s.require("REGISTRY_CONTRACT_ADDRESS")
    '0x1111111111111111111111111111111111111111'
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load key-value pairs from a local `.env` file into process environment, if
# present. `override=False` by default, so pre-set env vars take precedence.
load_dotenv()


class ConfigError(RuntimeError):
    """Raised when a required setting is missing at the point of use."""


@dataclass(frozen=True)
class Settings:
    """
    Immutable application settings.

    Each attribute is populated from the corresponding environment variable;
    when unset, a documented default is used. See `.env.example` for a
    template of common values.
    """

    # --- Chain ---------------------------------------------------------------
    # JSON-RPC endpoint the provider shim talks to (Sepolia by default).
    RPC_URL: str = os.getenv(
        "RPC_URL", "https://ethereum-sepolia-rpc.publicnode.com"
    )
    # Chain id every operation expects. A mismatch only renders a warning.
    EXPECTED_CHAIN_ID: str = os.getenv("EXPECTED_CHAIN_ID", "0xaa36a7")
    # Block explorer used for address links.
    EXPLORER_URL: str = os.getenv("EXPLORER_URL", "https://sepolia.etherscan.io")
    # Seconds to wait for a transaction receipt before giving up.
    TX_RECEIPT_TIMEOUT: int = int(os.getenv("TX_RECEIPT_TIMEOUT", "600"))

    # --- Contracts (required, no fallback) ----------------------------------
    REGISTRY_CONTRACT_ADDRESS: str = os.getenv("REGISTRY_CONTRACT_ADDRESS", "")
    TOKEN_ADDRESS: str = os.getenv("TOKEN_ADDRESS", "")

    # --- Metadata store ------------------------------------------------------
    # SQLAlchemy URL. Point it at the hosted Postgres in deployments.
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///docutrade.db")

    # --- Blob bucket ---------------------------------------------------------
    # When SUPABASE_URL is set, uploads go to Supabase Storage; otherwise to
    # LOCAL_BUCKET_DIR on disk.
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
    STORAGE_BUCKET: str = os.getenv("STORAGE_BUCKET", "documents")
    LOCAL_BUCKET_DIR: str = os.getenv("LOCAL_BUCKET_DIR", ".bucket")

    # --- Session helpers -----------------------------------------------------
    # JSON file backing the "saved cart" storage helpers.
    CART_STORAGE_PATH: str = os.getenv("CART_STORAGE_PATH", ".docutrade_storage.json")

    # --- Wallet prefill (Sepolia demos only) --------------------------------
    WALLET_PRIVATE_KEY: str = os.getenv("WALLET_PRIVATE_KEY", "")
    WALLET_MNEMONIC: str = os.getenv("WALLET_MNEMONIC", "")

    # --- Logging -------------------------------------------------------------
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def require(self, name: str) -> str:
        """Return the non-empty value of setting `name` or raise `ConfigError`."""
        value = getattr(self, name)
        if not value:
            raise ConfigError(f"{name} is not configured (set it in .env).")
        return value


# Singleton settings object imported by consumers.
settings = Settings()
