# frontend/streamlit_app/services/abi.py
# SPDX-License-Identifier: Apache-2.0
"""Contract ABIs used by the console.

REGISTRY_ABI covers the DocuTrade registry (ERC-1155 style document tokens,
sale prices, purchases and the token airdrop). ERC20_ABI is the standard
fungible token interface. Only the entries the console calls are listed.
"""

from __future__ import annotations


def _fn(name, inputs=(), outputs=(), mutability="nonpayable"):
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t} for n, t in outputs],
        "stateMutability": mutability,
    }


def _event(name, inputs):
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [
            {"name": n, "type": t, "indexed": indexed} for n, t, indexed in inputs
        ],
    }


REGISTRY_ABI: list[dict] = [
    _fn(
        "registerDocument",
        [
            ("id", "uint256"),
            ("amount", "uint256"),
            ("_title", "string"),
            ("_pdfUrl", "string"),
            ("_description", "string"),
        ],
    ),
    _fn("setSalePrice", [("id", "uint256"), ("pricePerToken", "uint256")]),
    _fn(
        "buyDocument",
        [("id", "uint256"), ("_seller", "address"), ("amount", "uint256")],
        mutability="payable",
    ),
    _fn(
        "getDocumentInfo",
        [("id", "uint256")],
        [("", "string"), ("", "string"), ("", "string"), ("", "address")],
        "view",
    ),
    _fn("getPrice", [("id", "uint256"), ("seller", "address")], [("", "uint256")], "view"),
    _fn(
        "balanceOf",
        [("account", "address"), ("id", "uint256")],
        [("", "uint256")],
        "view",
    ),
    _fn(
        "isApprovedForAll",
        [("owner", "address"), ("operator", "address")],
        [("", "bool")],
        "view",
    ),
    _fn("setApprovalForAll", [("operator", "address"), ("approved", "bool")]),
    # Airdrop
    _fn("requestAirdrop"),
    _fn("checkAirdropStatus", [("user", "address")], [("", "bool")], "view"),
    _fn("getAirdropAmount", outputs=[("", "uint256")], mutability="view"),
    _fn("setAirdropAmount", [("amount", "uint256")]),
    _fn("paymentToken", outputs=[("", "address")], mutability="view"),
    # Metadata
    _fn("name", outputs=[("", "string")], mutability="view"),
    _fn("symbol", outputs=[("", "string")], mutability="view"),
    _fn("owner", outputs=[("", "address")], mutability="view"),
    _event(
        "Listed",
        [("tokenId", "uint256", True), ("seller", "address", True), ("price", "uint256", False)],
    ),
    _event(
        "Purchased",
        [
            ("tokenId", "uint256", True),
            ("seller", "address", True),
            ("buyer", "address", True),
            ("amount", "uint256", False),
            ("price", "uint256", False),
        ],
    ),
]

ERC20_ABI: list[dict] = [
    _fn("name", outputs=[("", "string")], mutability="view"),
    _fn("symbol", outputs=[("", "string")], mutability="view"),
    _fn("decimals", outputs=[("", "uint8")], mutability="view"),
    _fn("totalSupply", outputs=[("", "uint256")], mutability="view"),
    _fn("balanceOf", [("account", "address")], [("", "uint256")], "view"),
    _fn(
        "allowance",
        [("owner", "address"), ("spender", "address")],
        [("", "uint256")],
        "view",
    ),
    _fn("approve", [("spender", "address"), ("amount", "uint256")], [("", "bool")]),
    _fn("transfer", [("to", "address"), ("amount", "uint256")], [("", "bool")]),
    _fn(
        "transferFrom",
        [("from", "address"), ("to", "address"), ("amount", "uint256")],
        [("", "bool")],
    ),
    _event(
        "Transfer",
        [("from", "address", True), ("to", "address", True), ("value", "uint256", False)],
    ),
    _event(
        "Approval",
        [("owner", "address", True), ("spender", "address", True), ("value", "uint256", False)],
    ),
]
