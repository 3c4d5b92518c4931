# backend/scripts/reconcile_pending.py
# SPDX-License-Identifier: Apache-2.0
#
# High-level purpose:
# -------------------
# List (and optionally repair) dual writes that stopped between the chain and
# the metadata store. Every upload and purchase is journaled in
# `pending_writes`:
#
#   pending          → chain call not confirmed (never sent, or outcome unknown)
#   chain_confirmed  → transaction mined, store row missing
#   confirmed        → both sides written
#   failed           → chain call raised; nothing to repair
#
# Without flags the script only reports. With --apply it replays the store
# insert for every `chain_confirmed` entry (skipping rows that already exist)
# and marks the entry confirmed. `pending` entries are reported for manual
# inspection: check the account's transactions on the explorer.
#
# Usage:
#   python backend/scripts/reconcile_pending.py            # report
#   python backend/scripts/reconcile_pending.py --apply    # repair
#
# Output (JSON to stdout): one object per journal entry with its action.

from __future__ import annotations

import argparse
import json
import logging

import common

log = logging.getLogger("reconcile_pending")


def main() -> None:
    ap = argparse.ArgumentParser(
        prog="reconcile_pending.py",
        description="Report or replay store mirrors for journaled dual writes.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    ap.add_argument(
        "--apply",
        action="store_true",
        help="Replay the store insert for chain_confirmed entries",
    )
    args = ap.parse_args()
    common.setup_logging()

    try:
        market = common.marketplace(common.provider())
        report = market.reconcile(apply=args.apply)
    except Exception as exc:
        print(f"error: {exc}")
        raise

    for entry in report:
        log.info(
            "#%s %s doc=%s status=%s action=%s",
            entry["id"], entry["kind"], entry["doc_id"], entry["status"], entry["action"],
        )
    print(
        json.dumps(
            [
                {
                    "id": e["id"],
                    "kind": e["kind"],
                    "doc_id": e["doc_id"],
                    "tx_hash": e["tx_hash"],
                    "status": e["status"],
                    "action": e["action"],
                    "error": e["error"],
                }
                for e in report
            ],
            indent=2,
        )
    )


if __name__ == "__main__":
    main()
