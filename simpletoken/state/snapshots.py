"""
simpletoken.state.snapshots — immutable copies of committed ledger state.

A `LedgerSnapshot` is taken under the ledger lock from the base state only, so
it always reflects a complete prefix of committed operations and never a
half-applied one. It is a plain value: later operations do not change it.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping

from ..address import to_hex
from .store import AllowanceKey, LedgerState


@dataclass(frozen=True)
class LedgerSnapshot:
    balances: Mapping[bytes, int]
    allowances: Mapping[AllowanceKey, int]
    total_supply: int
    op_count: int

    def balance_of(self, addr: bytes) -> int:
        return self.balances.get(addr, 0)

    def allowance(self, owner: bytes, spender: bytes) -> int:
        return self.allowances.get((owner, spender), 0)

    def sum_balances(self) -> int:
        return sum(self.balances.values())

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view with hex addresses, sorted for stable output."""
        return {
            "total_supply": self.total_supply,
            "op_count": self.op_count,
            "balances": {to_hex(a): v for a, v in sorted(self.balances.items())},
            "allowances": [
                {"owner": to_hex(o), "spender": to_hex(s), "value": v}
                for (o, s), v in sorted(self.allowances.items())
            ],
        }


def capture(state: LedgerState, op_count: int) -> LedgerSnapshot:
    return LedgerSnapshot(
        balances=MappingProxyType(dict(state.balances)),
        allowances=MappingProxyType(dict(state.allowances)),
        total_supply=state.total_supply,
        op_count=op_count,
    )


__all__ = ["LedgerSnapshot", "capture"]
