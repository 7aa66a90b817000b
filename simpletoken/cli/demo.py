"""
simpletoken.cli.demo — scripted walkthrough of the ledger.

Replays the calibration scenarios (deployment, transfers, failing transfer,
approve/transferFrom, missing allowance, minting, zero-address rejections)
against a fresh ledger and returns one result row per call.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from ..abi import call
from ..address import ZERO_ADDRESS, derive_address, to_hex
from ..ledger import Ledger

ETHER = 10**18

OWNER = to_hex(derive_address("demo:owner"))
ADDR1 = to_hex(derive_address("demo:addr1"))
ADDR2 = to_hex(derive_address("demo:addr2"))
ZERO = to_hex(ZERO_ADDRESS)

# (label, sender, method, args)
STEPS: List[Tuple[str, Any, str, List[Any]]] = [
    ("owner balance", None, "balanceOf", [OWNER]),
    ("total supply", None, "totalSupply", []),
    ("owner -> addr1 50", OWNER, "transfer", [ADDR1, 50 * ETHER]),
    ("addr1 -> addr2 50", ADDR1, "transfer", [ADDR2, 50 * ETHER]),
    ("addr1 balance", None, "balanceOf", [ADDR1]),
    ("addr1 -> owner 100 (empty)", ADDR1, "transfer", [OWNER, 100 * ETHER]),
    ("owner approves addr1 100", OWNER, "approve", [ADDR1, 100 * ETHER]),
    ("addr1 pulls 50 owner -> addr2", ADDR1, "transferFrom", [OWNER, ADDR2, 50 * ETHER]),
    ("remaining allowance", None, "allowance", [OWNER, ADDR1]),
    ("addr2 pulls without approval", ADDR2, "transferFrom", [OWNER, ADDR2, 50 * ETHER]),
    ("owner mints 500 to addr1", OWNER, "mint", [ADDR1, 500 * ETHER]),
    ("addr1 mints (not owner)", ADDR1, "mint", [ADDR1, 1]),
    ("transfer to zero address", OWNER, "transfer", [ZERO, 1]),
    ("mint to zero address", OWNER, "mint", [ZERO, 1]),
    ("total supply", None, "totalSupply", []),
]


def run_demo(initial_supply: int = 1_000_000) -> Tuple[Ledger, List[Dict[str, Any]]]:
    ledger = Ledger.create(initial_supply, OWNER)
    rows: List[Dict[str, Any]] = []
    for label, sender, method, args in STEPS:
        res = call(ledger, method, args, sender=sender)
        rows.append({"step": label, "method": method, **res})
    ledger.check_invariants()
    return ledger, rows


__all__ = ["OWNER", "ADDR1", "ADDR2", "STEPS", "run_demo"]
