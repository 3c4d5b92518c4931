# backend/scripts/airdrop_admin.py
# SPDX-License-Identifier: Apache-2.0
#
# Purpose
# -------
# Operator helpers for the registry's payment-token airdrop.
#
# Subcommands
# -----------
#   status     [--account 0x..]   has the account already received the airdrop?
#   amount                         current airdrop amount (raw and formatted)
#   set-amount AMOUNT              owner only; AMOUNT in whole tokens ("100")
#   request                        claim the airdrop for the operator account
#   info                           registry name/symbol/owner and payment token
#
# Usage
# -----
#   python backend/scripts/airdrop_admin.py status --account 0xabc...
#   python backend/scripts/airdrop_admin.py set-amount 250 --secret 0x<key>
#
# The operator account comes from --secret, else WALLET_PRIVATE_KEY /
# WALLET_MNEMONIC. Reverts (e.g. "already received", "not owner") are printed
# verbatim and the script exits non-zero.

from __future__ import annotations

import argparse
import json

import common

from services.contracts import Erc20Token, fmt_units


def _token(reg) -> Erc20Token:
    return Erc20Token(
        reg.provider, reg.payment_token_address(), receipt_timeout=reg.receipt_timeout
    )


def main() -> None:
    ap = argparse.ArgumentParser(
        prog="airdrop_admin.py",
        description="Inspect and manage the payment-token airdrop.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    ap.add_argument(
        "--secret",
        default=None,
        help="Private key or mnemonic (overrides WALLET_PRIVATE_KEY / WALLET_MNEMONIC)",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("status", help="Airdrop status for an account")
    s.add_argument("--account", default=None, help="Address (default: operator)")

    sub.add_parser("amount", help="Current airdrop amount")

    s = sub.add_parser("set-amount", help="Set the airdrop amount (owner only)")
    s.add_argument("amount", help="Amount in whole tokens")

    sub.add_parser("request", help="Claim the airdrop for the operator account")
    sub.add_parser("info", help="Registry and payment token details")

    args = ap.parse_args()
    common.setup_logging()

    try:
        p = common.provider(args.secret)
        reg = common.registry(p)
        sender = common.operator_address(p)

        if args.cmd == "status":
            account = args.account or sender
            if not account:
                raise SystemExit("Pass --account or configure an operator secret.")
            out = {"account": account, "received": reg.check_airdrop_status(account)}
        elif args.cmd == "amount":
            raw = reg.get_airdrop_amount()
            token = _token(reg)
            out = {"raw": raw, "amount": fmt_units(raw, token.decimals()), **token.token_info()}
        elif args.cmd == "info":
            out = {
                **reg.contract_info(),
                "owner": reg.owner(),
                "payment_token": reg.payment_token_address(),
            }
        else:
            if not sender:
                raise SystemExit("An operator secret is required for this command.")
            if args.cmd == "set-amount":
                tx = reg.set_airdrop_amount(sender, args.amount, _token(reg).decimals())
            else:
                tx = reg.request_airdrop(sender)
            out = {"cmd": args.cmd, "from": sender, "tx_hash": tx}
    except Exception as exc:
        print(f"error: {exc}")
        raise

    print(json.dumps(out, indent=2))


if __name__ == "__main__":
    main()
