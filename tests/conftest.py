"""
Pytest configuration for the DocuTrade console.

Puts `frontend/streamlit_app` on sys.path so tests import `core`, `services`
and `ui` the same way the Streamlit entrypoint does, and provides an
in-memory metadata store plus a scripted registry double.
"""

import os
import sys

import pytest

_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
_APP_DIR = os.path.join(_PROJECT_ROOT, "frontend", "streamlit_app")
if _APP_DIR not in sys.path:
    sys.path.insert(0, _APP_DIR)

from core.db import make_session_factory  # noqa: E402
from services.bucket import LocalBucket  # noqa: E402
from services.marketplace import Marketplace  # noqa: E402
from services.store import MetadataStore  # noqa: E402

SELLER = "0xAbCdEf0000000000000000000000000000000001"
BUYER = "0x1111111111111111111111111111111111111111"


class FakeRegistry:
    """Records writes and answers reads like the deployed registry would."""

    def __init__(self):
        self.calls = []
        self.airdropped = set()
        self.fail_next = None
        self._n = 0

    def _tx(self, name, *args):
        if self.fail_next is not None:
            err, self.fail_next = self.fail_next, None
            raise err
        self.calls.append((name, args))
        self._n += 1
        return "0x" + f"{self._n:064x}"

    def register_document(self, sender, doc_id, amount, title, file_url, description):
        return self._tx("registerDocument", sender, doc_id, amount, title, file_url, description)

    def buy_document(self, sender, doc_id, seller, amount, price_per_token):
        return self._tx("buyDocument", sender, doc_id, seller, amount, price_per_token)

    def set_sale_price(self, sender, doc_id, price_per_token):
        return self._tx("setSalePrice", sender, doc_id, price_per_token)

    def is_approved_for_all(self, owner, operator=None):
        return any(c[0] == "setApprovalForAll" and c[1][0] == owner for c in self.calls)

    def approve_contract(self, sender):
        return self._tx("setApprovalForAll", sender)

    def request_airdrop(self, sender):
        if sender.lower() in self.airdropped:
            raise RuntimeError("execution reverted: Already received airdrop")
        tx = self._tx("requestAirdrop", sender)
        self.airdropped.add(sender.lower())
        return tx

    def check_airdrop_status(self, account):
        return account.lower() in self.airdropped


@pytest.fixture
def store():
    return MetadataStore(make_session_factory("sqlite://"))


@pytest.fixture
def registry():
    return FakeRegistry()


@pytest.fixture
def market(registry, store, tmp_path):
    clock = iter(range(1_700_000_000, 1_700_001_000))
    return Marketplace(registry, store, LocalBucket(tmp_path / "bucket"), clock=lambda: next(clock))
