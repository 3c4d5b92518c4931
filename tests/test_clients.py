"""Client factories: one provider per browser session over a shared connection."""

from unittest.mock import MagicMock

import pytest

from core import clients
from core.config import ConfigError, Settings
from services.wallet import WalletGateway

KEY_A = "0x" + "11" * 32
KEY_B = "0x" + "22" * 32
KEY_A2 = "0x" + "33" * 32


@pytest.fixture
def shared_web3(monkeypatch):
    w3 = MagicMock(name="Web3")
    w3.eth.chain_id = 11155111
    w3.eth.accounts = []
    monkeypatch.setattr(clients, "get_web3", lambda url: w3)
    return w3


def test_each_session_gets_its_own_provider(shared_web3):
    a, b = clients.new_provider(), clients.new_provider()
    assert a is not b
    assert a.w3 is b.w3 is shared_web3


def test_account_changes_stay_in_their_session(shared_web3):
    a, b = clients.new_provider(), clients.new_provider()
    gw_a, gw_b = WalletGateway(a), WalletGateway(b)
    gw_a.watch()
    gw_b.watch()
    assert a.listener_count("accountsChanged") == 1
    assert b.listener_count("accountsChanged") == 1

    a.import_account(KEY_A)
    gw_a.connect()
    b_address = b.import_account(KEY_B)
    gw_b.connect()

    a_address = a.import_account(KEY_A2)
    assert gw_a.session.account == a_address
    assert gw_b.session.account == b_address
    assert b.local_account(a_address) is None


def test_contract_clients_bind_the_given_provider(shared_web3, monkeypatch):
    monkeypatch.setattr(
        clients,
        "settings",
        Settings(REGISTRY_CONTRACT_ADDRESS="0x" + "aa" * 20, TOKEN_ADDRESS=""),
    )
    p = clients.new_provider()
    assert clients.make_registry(p).provider is p
    with pytest.raises(ConfigError, match="TOKEN_ADDRESS"):
        clients.make_token(p)
