"""Wallet gateway: connect semantics, chain banner, listeners."""

import pytest

from services.provider import ProviderRpcError
from services.wallet import NoAccountError, NoProviderError, WalletGateway

SEPOLIA = "0xaa36a7"
ACCOUNT = "0x1111111111111111111111111111111111111111"


class FakeProvider:
    def __init__(self, accounts=None, chain=SEPOLIA, balance="0xde0b6b3a7640000"):
        self.accounts = accounts if accounts is not None else [ACCOUNT]
        self.chain = chain
        self.balance = balance
        self.listeners = {}
        self.requests = []

    def request(self, method, params=None):
        self.requests.append((method, params))
        if method == "eth_requestAccounts":
            if isinstance(self.accounts, Exception):
                raise self.accounts
            return self.accounts
        if method == "eth_accounts":
            return [] if isinstance(self.accounts, Exception) else self.accounts
        if method == "eth_chainId":
            if isinstance(self.chain, Exception):
                raise self.chain
            return self.chain
        if method == "eth_getBalance":
            return self.balance
        if method == "wallet_switchEthereumChain":
            self.chain = params[0]["chainId"]
            return None
        raise AssertionError(method)

    def on(self, event, handler):
        self.listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event, handler):
        self.listeners[event].remove(handler)

    def emit(self, event, *args):
        for h in list(self.listeners.get(event, [])):
            h(*args)


def test_connect_returns_first_account_and_chain():
    gw = WalletGateway(FakeProvider())
    assert gw.connect() == ACCOUNT
    assert gw.session.chain_id == SEPOLIA
    assert gw.session.connected


def test_zero_accounts_is_a_rejection_not_empty_string():
    gw = WalletGateway(FakeProvider(accounts=[]))
    with pytest.raises(NoAccountError):
        gw.connect()
    assert gw.session.account is None


def test_blank_account_entries_are_ignored():
    gw = WalletGateway(FakeProvider(accounts=[""]))
    with pytest.raises(NoAccountError):
        gw.connect()


def test_user_rejection_maps_to_no_account():
    gw = WalletGateway(FakeProvider(accounts=ProviderRpcError(4001, "User rejected the request.")))
    with pytest.raises(NoAccountError, match="User rejected"):
        gw.connect()


def test_missing_provider():
    gw = WalletGateway(None)
    with pytest.raises(NoProviderError):
        gw.connect()
    assert gw.current_account() is None
    with pytest.raises(NoProviderError):
        gw.get_signer()


def test_chain_warning_only_when_mismatched():
    provider = FakeProvider(chain="0x1")
    gw = WalletGateway(provider)
    assert gw.chain_warning() is None

    gw.connect()
    assert "0xaa36a7" in gw.chain_warning()
    assert not gw.is_expected_chain()

    gw.ensure_chain()
    assert gw.chain_warning() is None


def test_balance_parses_hex_wei():
    gw = WalletGateway(FakeProvider())
    gw.connect()
    assert gw.get_balance() == 10**18
    assert gw.session.balance == 10**18


def test_watch_tracks_account_and_chain_changes_and_close_unsubscribes():
    provider = FakeProvider()
    gw = WalletGateway(provider)
    gw.connect()
    subs = gw.watch()
    assert gw.watch() is subs

    provider.emit("accountsChanged", ["0x2222222222222222222222222222222222222222"])
    provider.emit("chainChanged", "0x1")
    assert gw.session.account.startswith("0x2222")
    assert gw.session.chain_id == "0x1"

    provider.emit("accountsChanged", [])
    assert not gw.session.connected

    gw.close()
    assert provider.listeners == {"accountsChanged": [], "chainChanged": []}


def test_subscription_unsubscribe_is_idempotent():
    provider = FakeProvider()
    gw = WalletGateway(provider)
    seen = []
    sub = gw.subscribe("chainChanged", seen.append)
    provider.emit("chainChanged", "0x5")
    sub.unsubscribe()
    sub.unsubscribe()
    provider.emit("chainChanged", "0x6")
    assert seen == ["0x5"]
    assert not sub.active


def test_signer_requires_account():
    gw = WalletGateway(FakeProvider(accounts=[]))
    with pytest.raises(NoAccountError):
        gw.get_signer()


def test_explorer_link():
    gw = WalletGateway(FakeProvider(), explorer_url="https://sepolia.etherscan.io/")
    assert gw.explorer_link(ACCOUNT) == f"https://sepolia.etherscan.io/address/{ACCOUNT}"


def test_failed_chain_lookup_leaves_session_disconnected():
    gw = WalletGateway(FakeProvider(chain=ConnectionError("rpc down")))
    with pytest.raises(ConnectionError, match="rpc down"):
        gw.connect()
    assert gw.session.account is None
    assert not gw.session.connected
