# frontend/streamlit_app/services/wallet.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Wallet/session gateway.

Wraps an EIP-1193 provider and exposes the handful of operations the pages
need: connect, current account, current chain, balance, signer. The gateway
only *observes* the wallet; it owns nothing on-chain.

Session state (`WalletSession`) is updated by provider events. The gateway
registers its own listeners once (`watch()`) and removes them in `close()`;
callers that need their own listeners use `subscribe()` and keep the returned
`Subscription` to unsubscribe.

Chain id validation is advisory: `chain_warning()` returns a message for a
banner, nothing is blocked.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from web3 import Web3

from core.constants import SEPOLIA_CHAIN_ID_HEX
from services.provider import Eip1193Provider, InjectedProvider

log = logging.getLogger(__name__)


class NoProviderError(RuntimeError):
    """No wallet provider is available."""

    def __init__(self, message: str = "A wallet provider is required.") -> None:
        super().__init__(message)


class NoAccountError(RuntimeError):
    """The wallet returned no account (rejected or empty)."""

    def __init__(self, message: str = "No wallet account available.") -> None:
        super().__init__(message)


@dataclass
class WalletSession:
    account: str | None = None
    chain_id: str | None = None
    balance: int | None = None  # wei

    @property
    def connected(self) -> bool:
        return bool(self.account)


@dataclass
class Subscription:
    """Handle for a provider listener; `unsubscribe()` is idempotent."""

    provider: Eip1193Provider
    event: str
    handler: Callable[..., None]
    active: bool = True

    def unsubscribe(self) -> None:
        if self.active:
            self.provider.remove_listener(self.event, self.handler)
            self.active = False


@dataclass
class Signer:
    """Account that write calls are sent from."""

    address: str
    provider: InjectedProvider


class WalletGateway:
    def __init__(
        self,
        provider: Eip1193Provider | None,
        *,
        expected_chain_id: str = SEPOLIA_CHAIN_ID_HEX,
        explorer_url: str = "https://sepolia.etherscan.io",
    ) -> None:
        self.provider = provider
        self.expected_chain_id = expected_chain_id.lower()
        self.explorer_url = explorer_url.rstrip("/")
        self.session = WalletSession()
        self._own_subs: list[Subscription] = []

    # ------------------------------------------------------------------ helpers

    def _require_provider(self) -> Eip1193Provider:
        if self.provider is None:
            raise NoProviderError()
        return self.provider

    # ------------------------------------------------------------------ session

    def connect(self) -> str:
        """Request account access and return the first account.

        Raises:
            NoProviderError: no provider.
            NoAccountError: the request was rejected or returned no account.

        Any other provider error (e.g. the chain id lookup) propagates and
        leaves the session unchanged.
        """
        provider = self._require_provider()
        try:
            accounts = provider.request("eth_requestAccounts")
        except Exception as e:
            raise NoAccountError(f"Wallet connection rejected: {e}") from e
        accounts = [a for a in (accounts or []) if a]
        if not accounts:
            raise NoAccountError()
        chain_id = self.current_chain()
        self.session.account = str(accounts[0])
        self.session.chain_id = chain_id
        log.info("Wallet connected on chain %s", self.session.chain_id)
        return self.session.account

    def disconnect(self) -> None:
        """Forget the local session. Provider access is not revoked."""
        self.session = WalletSession()

    def current_account(self) -> str | None:
        if self.session.account:
            return self.session.account
        if self.provider is None:
            return None
        accounts = self.provider.request("eth_accounts") or []
        return str(accounts[0]) if accounts else None

    def current_chain(self) -> str:
        return str(self._require_provider().request("eth_chainId")).lower()

    def is_expected_chain(self, chain_id: str | None = None) -> bool:
        chain_id = (chain_id or self.session.chain_id or self.current_chain()).lower()
        return chain_id == self.expected_chain_id

    def chain_warning(self) -> str | None:
        """Banner text when connected to an unexpected chain, else None."""
        chain_id = self.session.chain_id
        if chain_id is None:
            return None
        if chain_id.lower() == self.expected_chain_id:
            return None
        return (
            f"Connected to chain {chain_id}; this marketplace expects "
            f"{self.expected_chain_id} (Sepolia). Transactions may fail."
        )

    def ensure_chain(self) -> None:
        self._require_provider().request(
            "wallet_switchEthereumChain", [{"chainId": self.expected_chain_id}]
        )
        self.session.chain_id = self.current_chain()

    def get_signer(self) -> Signer:
        provider = self._require_provider()
        account = self.current_account()
        if not account:
            raise NoAccountError("Connect a wallet first.")
        return Signer(address=account, provider=provider)  # type: ignore[arg-type]

    def get_balance(self, address: str | None = None) -> int:
        """Native balance in wei for `address` (default: connected account)."""
        provider = self._require_provider()
        address = address or self.current_account()
        if not address:
            raise NoAccountError("Connect a wallet first.")
        raw = provider.request(
            "eth_getBalance", [Web3.to_checksum_address(address), "latest"]
        )
        balance = int(raw, 16) if isinstance(raw, str) else int(raw)
        if address == self.session.account:
            self.session.balance = balance
        return balance

    def explorer_link(self, address: str) -> str:
        return f"{self.explorer_url}/address/{address}"

    # ------------------------------------------------------------------ events

    def subscribe(self, event: str, handler: Callable[..., None]) -> Subscription:
        provider = self._require_provider()
        provider.on(event, handler)
        return Subscription(provider, event, handler)

    def watch(self) -> list[Subscription]:
        """Register the session-updating listeners (once per gateway)."""
        if self._own_subs or self.provider is None:
            return self._own_subs
        self._own_subs = [
            self.subscribe("accountsChanged", self._on_accounts_changed),
            self.subscribe("chainChanged", self._on_chain_changed),
        ]
        return self._own_subs

    def close(self) -> None:
        for sub in self._own_subs:
            sub.unsubscribe()
        self._own_subs = []

    def _on_accounts_changed(self, accounts: list[str]) -> None:
        self.session.account = str(accounts[0]) if accounts else None
        self.session.balance = None

    def _on_chain_changed(self, chain_id: str) -> None:
        self.session.chain_id = str(chain_id).lower()
        self.session.balance = None
