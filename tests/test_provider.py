"""Injected provider: local accounts, EIP-1193 requests and events."""

from unittest.mock import MagicMock

import pytest

from core.constants import UNRECOGNIZED_CHAIN, USER_REJECTED
from services.provider import InjectedProvider, ProviderRpcError, account_from_secret

KEY = "0x" + "11" * 32
SEPOLIA = "0xaa36a7"


def _fake_web3(url, chain_id=11155111):
    w3 = MagicMock(name=f"Web3({url})")
    w3.eth.chain_id = chain_id
    w3.eth.accounts = []
    w3.provider.make_request.return_value = {"jsonrpc": "2.0", "id": 1, "result": "0x10"}
    return w3


@pytest.fixture
def provider():
    built = {}

    def factory(url):
        built[url] = _fake_web3(url, 1 if "mainnet" in url else 11155111)
        return built[url]

    p = InjectedProvider("https://mainnet.example", chains={SEPOLIA: "https://sepolia.example"}, web3_factory=factory)
    p.built = built
    return p


def test_account_from_secret_accepts_key_and_rejects_junk():
    acct = account_from_secret(KEY)
    assert acct is not None and acct.address.startswith("0x")
    assert account_from_secret("") is None
    assert account_from_secret("not a key") is None


def test_request_accounts_without_account_is_rejected(provider):
    with pytest.raises(ProviderRpcError) as exc:
        provider.request("eth_requestAccounts")
    assert exc.value.code == USER_REJECTED


def test_accounts_hidden_until_authorized(provider):
    address = provider.import_account(KEY)
    assert provider.request("eth_accounts") == []
    assert provider.request("eth_requestAccounts") == [address]
    assert provider.request("eth_accounts") == [address]


def test_import_rejects_invalid_secret(provider):
    with pytest.raises(ValueError):
        provider.import_account("nope")


def test_accounts_changed_emitted_after_authorization(provider):
    seen = []
    provider.on("accountsChanged", seen.append)
    address = provider.import_account(KEY)
    assert seen == []

    provider.request("eth_requestAccounts")
    provider.forget_accounts()
    assert seen == [[]]
    assert provider.local_account(address) is None


def test_chain_id_is_hex(provider):
    assert provider.request("eth_chainId") == "0x1"


def test_switch_to_known_chain_rebinds_and_emits(provider):
    seen = []
    provider.on("chainChanged", seen.append)
    provider.request("wallet_switchEthereumChain", [{"chainId": "0xAA36A7"}])

    assert seen == [SEPOLIA]
    assert provider.w3 is provider.built["https://sepolia.example"]
    assert provider.request("eth_chainId") == SEPOLIA


def test_switch_to_unknown_chain_fails_with_4902(provider):
    with pytest.raises(ProviderRpcError) as exc:
        provider.request("wallet_switchEthereumChain", [{"chainId": "0x89"}])
    assert exc.value.code == UNRECOGNIZED_CHAIN


def test_add_chain_then_switch(provider):
    provider.request(
        "wallet_addEthereumChain", [{"chainId": "0x89", "rpcUrls": ["https://polygon.example"]}]
    )
    provider.request("wallet_switchEthereumChain", [{"chainId": "0x89"}])
    assert provider.w3 is provider.built["https://polygon.example"]


def test_other_methods_are_forwarded(provider):
    assert provider.request("eth_blockNumber") == "0x10"
    provider.w3.provider.make_request.assert_called_with("eth_blockNumber", [])


def test_forwarded_error_raises_with_code(provider):
    provider.w3.provider.make_request.return_value = {
        "error": {"code": -32000, "message": "insufficient funds"}
    }
    with pytest.raises(ProviderRpcError, match="insufficient funds") as exc:
        provider.request("eth_sendRawTransaction", ["0x00"])
    assert exc.value.code == -32000


def test_remove_listener(provider):
    handler = MagicMock()
    provider.on("chainChanged", handler)
    assert provider.listener_count("chainChanged") == 1
    provider.remove_listener("chainChanged", handler)
    provider.remove_listener("chainChanged", handler)
    assert provider.listener_count("chainChanged") == 0
