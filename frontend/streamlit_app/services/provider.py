# frontend/streamlit_app/services/provider.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
EIP-1193 style provider for the Streamlit console.

A browser dApp talks to an *injected* wallet (`window.ethereum`). A Python
process has no browser wallet, so this module plays that role: it owns a
web3.py connection plus zero or more locally held `eth_account` accounts and
answers the same small request surface a wallet does.

Handled locally
---------------
  • eth_requestAccounts / eth_accounts  — the selected local account, else the
    node-managed accounts (dev nodes)
  • eth_chainId                         — chain id of the active RPC endpoint
  • wallet_switchEthereumChain          — rebinds to a known RPC endpoint
  • wallet_addEthereumChain             — registers an RPC endpoint
Every other method is forwarded to the web3.py provider.

Events
------
`accountsChanged(list[str])` fires when the selected account changes and
`chainChanged(str)` after a successful switch. Handlers are removed with
`remove_listener`.

Security
--------
Private keys live only in process memory and are never logged. Sepolia only.
"""

import logging
from collections import defaultdict
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from core.constants import UNRECOGNIZED_CHAIN, USER_REJECTED

log = logging.getLogger(__name__)

Handler = Callable[..., None]


class ProviderRpcError(RuntimeError):
    """Error raised by the provider, carrying an EIP-1193 `code`."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code


class Eip1193Provider(Protocol):
    """The surface the wallet gateway relies on."""

    def request(self, method: str, params: Sequence[Any] | None = None) -> Any: ...

    def on(self, event: str, handler: Handler) -> None: ...

    def remove_listener(self, event: str, handler: Handler) -> None: ...


def account_from_secret(secret: str | None) -> LocalAccount | None:
    """Import an account from a hex private key or a BIP-39 mnemonic.

    Returns None for empty or invalid input (mirrors how the sidebar treats a
    half-typed secret).
    """
    secret = (secret or "").strip()
    if not secret:
        return None
    try:
        if len(secret.split()) >= 12:
            Account.enable_unaudited_hdwallet_features()
            return Account.from_mnemonic(secret)
        return Account.from_key(secret)
    except Exception:
        return None


class InjectedProvider:
    """web3.py connection + local accounts behind an EIP-1193 interface."""

    def __init__(
        self,
        rpc_url: str,
        *,
        chains: dict[str, str] | None = None,
        web3_factory: Callable[[str], Web3] | None = None,
    ) -> None:
        self._web3_factory = web3_factory or (
            lambda url: Web3(Web3.HTTPProvider(url))
        )
        self._rpc_url = rpc_url
        self.w3: Web3 = self._web3_factory(rpc_url)
        # chain id (lower-case hex) → RPC url, for wallet_switchEthereumChain.
        self._chains: dict[str, str] = {
            k.lower(): v for k, v in (chains or {}).items()
        }
        self._accounts: dict[str, LocalAccount] = {}
        self._selected: str | None = None
        self._listeners: dict[str, list[Handler]] = defaultdict(list)
        # Until asked, the user has not granted access.
        self._authorized = False

    # ------------------------------------------------------------------ accounts

    def import_account(self, secret: str, *, select: bool = True) -> str:
        """Add a local account; returns its checksum address."""
        acct = account_from_secret(secret)
        if acct is None:
            raise ValueError("Invalid private key or mnemonic.")
        self._accounts[acct.address] = acct
        if select:
            self.select_account(acct.address)
        return acct.address

    def select_account(self, address: str | None) -> None:
        if address is not None:
            address = Web3.to_checksum_address(address)
            if address not in self._accounts:
                raise ValueError(f"Unknown local account: {address}")
        if address == self._selected:
            return
        self._selected = address
        if self._authorized:
            self._emit("accountsChanged", self._visible_accounts())

    def forget_accounts(self) -> None:
        self._accounts.clear()
        self.select_account(None)

    def local_account(self, address: str) -> LocalAccount | None:
        return self._accounts.get(Web3.to_checksum_address(address))

    def _visible_accounts(self) -> list[str]:
        if self._selected:
            return [self._selected]
        try:
            return [str(a) for a in self.w3.eth.accounts]
        except Exception:
            return []

    # ------------------------------------------------------------------ events

    def on(self, event: str, handler: Handler) -> None:
        self._listeners[event].append(handler)

    def remove_listener(self, event: str, handler: Handler) -> None:
        handlers = self._listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def _emit(self, event: str, *args: Any) -> None:
        for handler in list(self._listeners.get(event, [])):
            handler(*args)

    # ------------------------------------------------------------------ requests

    def request(self, method: str, params: Sequence[Any] | None = None) -> Any:
        params = list(params or [])
        if method == "eth_requestAccounts":
            accounts = self._visible_accounts()
            if not accounts:
                raise ProviderRpcError(USER_REJECTED, "User rejected the request.")
            self._authorized = True
            return accounts
        if method == "eth_accounts":
            return self._visible_accounts() if self._authorized else []
        if method == "eth_chainId":
            return hex(self.w3.eth.chain_id)
        if method == "wallet_switchEthereumChain":
            return self._switch_chain(params[0]["chainId"])
        if method == "wallet_addEthereumChain":
            chain = params[0]
            self._chains[str(chain["chainId"]).lower()] = chain["rpcUrls"][0]
            return None

        resp = self.w3.provider.make_request(method, params)
        if "error" in resp:
            err = resp["error"]
            raise ProviderRpcError(int(err.get("code", -32000)), err.get("message", ""))
        return resp.get("result")

    def _switch_chain(self, chain_id: str) -> None:
        chain_id = str(chain_id).lower()
        if hex(self.w3.eth.chain_id) == chain_id:
            return None
        url = self._chains.get(chain_id)
        if not url:
            raise ProviderRpcError(
                UNRECOGNIZED_CHAIN, f"Unrecognized chain ID {chain_id}."
            )
        log.info("Switching provider to chain %s", chain_id)
        self._rpc_url = url
        self.w3 = self._web3_factory(url)
        self._emit("chainChanged", chain_id)
        return None
