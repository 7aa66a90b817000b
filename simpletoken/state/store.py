"""
simpletoken.state.store — the committed balances/allowances/supply triple.

Sparse maps: an absent key reads as zero, and writing zero deletes the key, so
"present with value zero" and "absent" are indistinguishable and memory stays
bounded by the accounts that actually hold something.

This is the base layer under the `Journal`; nothing outside the ledger writes
to it directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

AllowanceKey = Tuple[bytes, bytes]  # (owner, spender)


@dataclass
class LedgerState:
    balances: Dict[bytes, int] = field(default_factory=dict)
    allowances: Dict[AllowanceKey, int] = field(default_factory=dict)
    total_supply: int = 0
    owner: Optional[bytes] = None

    def balance(self, addr: bytes) -> int:
        return self.balances.get(addr, 0)

    def allowance(self, owner: bytes, spender: bytes) -> int:
        return self.allowances.get((owner, spender), 0)

    def set_balance(self, addr: bytes, value: int) -> None:
        if value:
            self.balances[addr] = value
        else:
            self.balances.pop(addr, None)

    def set_allowance(self, owner: bytes, spender: bytes, value: int) -> None:
        if value:
            self.allowances[(owner, spender)] = value
        else:
            self.allowances.pop((owner, spender), None)


__all__ = ["AllowanceKey", "LedgerState"]
