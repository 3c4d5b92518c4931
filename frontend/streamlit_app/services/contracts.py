# frontend/streamlit_app/services/contracts.py
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Contract call layer.

Two contracts are addressed:
  • `DocumentRegistry` — register / price / buy documents, ownership reads,
    and the token airdrop.
  • `Erc20Token`       — the payment token (balance, allowance, approve,
    transfer).

Every write follows the same two-phase protocol: submit the transaction,
block until its receipt is available, return the `0x` transaction hash.
Accounts held by the provider sign locally; any other sender is assumed to be
node-managed and goes through `eth_sendTransaction`.

Errors are deliberately untyped: user rejection, insufficient funds and
reverts all surface as the underlying exception, whose message pages show
verbatim. Nothing is retried.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from web3 import Web3

from core.constants import MAX_UINT256
from services.abi import ERC20_ABI, REGISTRY_ABI
from services.provider import InjectedProvider

log = logging.getLogger(__name__)

# =============================================================================
# Amount helpers
# =============================================================================


def parse_units(value: str | int | Decimal, decimals: int = 18) -> int:
    """Convert a decimal amount string (e.g. "0.01") to integer base units."""
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid amount: {value!r}") from e
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"Invalid amount: {value!r}")
    scaled = amount.scaleb(int(decimals))
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Too many decimal places for {decimals}-decimal unit: {value!r}")
    return int(scaled)


def parse_ether(value: str | int | Decimal) -> int:
    """Ether string → wei."""
    return parse_units(value, 18)


def fmt_units(raw: int, decimals: int = 18) -> str:
    """Integer base units → plain decimal string without trailing zeros."""
    d = Decimal(int(raw)).scaleb(-int(decimals))
    text = format(d.normalize(), "f")
    return text


def fmt_eth(wei: int, places: int = 6) -> str:
    """Format wei into a human string."""
    return f"{Decimal(int(wei)).scaleb(-18):.{places}f} ETH"


# =============================================================================
# Base client
# =============================================================================


class ContractClient:
    """Shared call/send plumbing for a single deployed contract."""

    abi: list[dict] = []

    def __init__(
        self,
        provider: InjectedProvider,
        address: str,
        *,
        receipt_timeout: int = 600,
    ) -> None:
        self.provider = provider
        self.address = Web3.to_checksum_address(address)
        self.receipt_timeout = int(receipt_timeout)

    @property
    def w3(self) -> Web3:
        # Re-read on each use: the provider may have switched chains.
        return self.provider.w3

    @property
    def contract(self) -> Any:
        return self.w3.eth.contract(address=self.address, abi=self.abi)

    def _call(self, fn_name: str, *args: Any) -> Any:
        return getattr(self.contract.functions, fn_name)(*args).call()

    def _send(self, sender: str, fn_name: str, *args: Any, value: int = 0) -> str:
        """Submit `fn_name(*args)` from `sender`, wait for the receipt, return the hash."""
        sender = Web3.to_checksum_address(sender)
        fn = getattr(self.contract.functions, fn_name)(*args)
        tx_params: dict[str, Any] = {"from": sender, "value": int(value)}

        local = self.provider.local_account(sender)
        if local is None:
            tx_hash = fn.transact(tx_params)
        else:
            tx_params["nonce"] = self.w3.eth.get_transaction_count(sender, "pending")
            tx_params["chainId"] = self.w3.eth.chain_id
            tx = fn.build_transaction(tx_params)
            signed = local.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)

        tx_hex = Web3.to_hex(tx_hash)
        log.info("%s submitted: %s", fn_name, tx_hex)
        receipt = self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.receipt_timeout
        )
        if int(receipt["status"]) != 1:
            raise RuntimeError(f"{fn_name} reverted (tx {tx_hex}).")
        log.info("%s confirmed in block %s", fn_name, receipt.get("blockNumber"))
        return tx_hex


# =============================================================================
# Document registry
# =============================================================================


@dataclass(frozen=True)
class DocumentInfo:
    id: int
    title: str
    file_url: str
    description: str
    author: str


class DocumentRegistry(ContractClient):
    abi = REGISTRY_ABI

    # ---- writes ---------------------------------------------------------------

    def register_document(
        self,
        sender: str,
        doc_id: int,
        amount: int,
        title: str,
        file_url: str,
        description: str,
    ) -> str:
        return self._send(
            sender,
            "registerDocument",
            int(doc_id),
            int(amount),
            title,
            file_url,
            description,
        )

    def set_sale_price(self, sender: str, doc_id: int, price_per_token: str) -> str:
        return self._send(
            sender, "setSalePrice", int(doc_id), parse_ether(price_per_token)
        )

    def approve_contract(self, sender: str) -> str:
        """Let the registry move the sender's document tokens (one-time)."""
        return self._send(sender, "setApprovalForAll", self.address, True)

    def buy_document(
        self,
        sender: str,
        doc_id: int,
        seller: str,
        amount: int,
        price_per_token: str,
    ) -> str:
        """Payable buy; sends `price_per_token * amount` ETH."""
        value = parse_ether(price_per_token) * int(amount)
        return self._send(
            sender,
            "buyDocument",
            int(doc_id),
            Web3.to_checksum_address(seller),
            int(amount),
            value=value,
        )

    def request_airdrop(self, sender: str) -> str:
        return self._send(sender, "requestAirdrop")

    def set_airdrop_amount(self, sender: str, amount: str, decimals: int = 18) -> str:
        """Owner only; non-owners get a revert."""
        return self._send(sender, "setAirdropAmount", parse_units(amount, decimals))

    # ---- reads ----------------------------------------------------------------

    def get_document_info(self, doc_id: int) -> DocumentInfo:
        title, file_url, description, author = self._call("getDocumentInfo", int(doc_id))
        return DocumentInfo(int(doc_id), title, file_url, description, author)

    def get_price(self, doc_id: int, seller: str) -> int:
        """Sale price per token in wei."""
        return int(self._call("getPrice", int(doc_id), Web3.to_checksum_address(seller)))

    def balance_of(self, account: str, doc_id: int) -> int:
        return int(self._call("balanceOf", Web3.to_checksum_address(account), int(doc_id)))

    def is_approved_for_all(self, owner: str, operator: str | None = None) -> bool:
        return bool(
            self._call(
                "isApprovedForAll",
                Web3.to_checksum_address(owner),
                Web3.to_checksum_address(operator or self.address),
            )
        )

    def check_airdrop_status(self, account: str) -> bool:
        return bool(self._call("checkAirdropStatus", Web3.to_checksum_address(account)))

    def get_airdrop_amount(self) -> int:
        return int(self._call("getAirdropAmount"))

    def payment_token_address(self) -> str:
        return str(self._call("paymentToken"))

    def owner(self) -> str:
        return str(self._call("owner"))

    def contract_info(self) -> dict[str, str]:
        return {
            "name": self._call("name"),
            "symbol": self._call("symbol"),
            "address": self.address,
            "airdrop_amount": fmt_units(self.get_airdrop_amount()),
        }


# =============================================================================
# ERC-20
# =============================================================================


class Erc20Token(ContractClient):
    abi = ERC20_ABI

    def name(self) -> str:
        return str(self._call("name"))

    def symbol(self) -> str:
        return str(self._call("symbol"))

    def decimals(self) -> int:
        return int(self._call("decimals"))

    def total_supply(self) -> int:
        return int(self._call("totalSupply"))

    def balance_of(self, account: str) -> int:
        return int(self._call("balanceOf", Web3.to_checksum_address(account)))

    def allowance(self, owner: str, spender: str) -> int:
        return int(
            self._call(
                "allowance",
                Web3.to_checksum_address(owner),
                Web3.to_checksum_address(spender),
            )
        )

    # Display helpers: these never raise, the UI shows a default instead.

    def token_info(self) -> dict[str, Any]:
        try:
            return {"name": self.name(), "symbol": self.symbol(), "decimals": self.decimals()}
        except Exception as e:
            log.warning("Token info lookup failed for %s: %s", self.address, e)
            return {"name": "Unknown", "symbol": "UNK", "decimals": 18}

    def formatted_balance(self, account: str) -> str:
        try:
            return fmt_units(self.balance_of(account), self.decimals())
        except Exception as e:
            log.warning("Token balance lookup failed: %s", e)
            return "0"

    def formatted_allowance(self, owner: str, spender: str) -> str:
        try:
            return fmt_units(self.allowance(owner, spender), self.decimals())
        except Exception as e:
            log.warning("Allowance lookup failed: %s", e)
            return "0"

    # Writes

    def approve(self, sender: str, spender: str, amount: str) -> str:
        return self._send(
            sender,
            "approve",
            Web3.to_checksum_address(spender),
            parse_units(amount, self.decimals()),
        )

    def approve_max(self, sender: str, spender: str) -> str:
        return self._send(
            sender, "approve", Web3.to_checksum_address(spender), MAX_UINT256
        )

    def transfer(self, sender: str, to: str, amount: str) -> str:
        return self._send(
            sender,
            "transfer",
            Web3.to_checksum_address(to),
            parse_units(amount, self.decimals()),
        )

    def transfer_from(self, sender: str, owner: str, to: str, amount: str) -> str:
        return self._send(
            sender,
            "transferFrom",
            Web3.to_checksum_address(owner),
            Web3.to_checksum_address(to),
            parse_units(amount, self.decimals()),
        )
