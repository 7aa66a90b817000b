"""
simpletoken.state.journal — staged writes, checkpoints, revert/commit.

A deterministic in-memory write journal layered over a `LedgerState`. Each
checkpoint is an overlay; writes go to the top overlay and reads consult the
overlays from top to bottom before falling back to the base state.

- `begin()` opens a checkpoint (nestable).
- `commit()` merges the top overlay into its parent, or applies it to the
  base state when it is the outermost one.
- `revert()` discards the top overlay.

Events are staged alongside the writes and travel with them: an outermost
commit returns the events that became durable, a revert drops them.

Intended usage
--------------
    j = Journal(state)
    j.begin()
    j.set_balance(addr, 100)
    j.emit(Transfer(ZERO_ADDRESS, addr, 100))
    events = j.commit()        # applied to `state`; events ready to publish

Notes
-----
- The journal enforces no token rules; the ledger validates everything before
  writing. Writing outside a checkpoint is a programming error.
- Merge cost is O(changes) per commit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..events import Event
from .store import AllowanceKey, LedgerState

# =============================================================================
# Overlay model
# =============================================================================


@dataclass
class _Overlay:
    balances: Dict[bytes, int] = field(default_factory=dict)
    allowances: Dict[AllowanceKey, int] = field(default_factory=dict)
    total_supply: Optional[int] = None
    owner: Optional[bytes] = None
    events: List[Event] = field(default_factory=list)

    def merge_into(self, parent: "_Overlay") -> None:
        parent.balances.update(self.balances)
        parent.allowances.update(self.allowances)
        if self.total_supply is not None:
            parent.total_supply = self.total_supply
        if self.owner is not None:
            parent.owner = self.owner
        parent.events.extend(self.events)

    def apply_to(self, base: LedgerState) -> None:
        for addr, value in self.balances.items():
            base.set_balance(addr, value)
        for (owner, spender), value in self.allowances.items():
            base.set_allowance(owner, spender, value)
        if self.total_supply is not None:
            base.total_supply = self.total_supply
        if self.owner is not None:
            base.owner = self.owner


# =============================================================================
# Journal
# =============================================================================


class Journal:
    """
    Copy-on-write journal with nested checkpoints over a `LedgerState`.

    Not thread-safe by itself; the ledger serializes access with its lock.
    """

    def __init__(self, base: LedgerState) -> None:
        self._base = base
        self._layers: List[_Overlay] = []

    # ------------------------------------------------------------------ #
    # Checkpointing
    # ------------------------------------------------------------------ #

    def depth(self) -> int:
        """Number of open checkpoints (0 when idle)."""
        return len(self._layers)

    def begin(self) -> int:
        """Open a checkpoint. Returns the new depth as a marker."""
        self._layers.append(_Overlay())
        return len(self._layers)

    def commit(self) -> List[Event]:
        """
        Close the top checkpoint keeping its writes.

        Returns the staged events when the outermost checkpoint is applied to
        the base state, otherwise an empty list (events move to the parent).
        """
        if not self._layers:
            raise RuntimeError("commit without an open checkpoint")
        top = self._layers.pop()
        if self._layers:
            top.merge_into(self._layers[-1])
            return []
        top.apply_to(self._base)
        return list(top.events)

    def revert(self) -> None:
        """Close the top checkpoint discarding its writes and events."""
        if not self._layers:
            raise RuntimeError("revert without an open checkpoint")
        self._layers.pop()

    def revert_to(self, marker: int) -> None:
        """Revert until the depth is below `marker` (i.e. undo checkpoint `marker` and above)."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) >= marker:
            self.revert()

    # ------------------------------------------------------------------ #
    # Reads (top overlay first, then base)
    # ------------------------------------------------------------------ #

    def balance(self, addr: bytes) -> int:
        for layer in reversed(self._layers):
            if addr in layer.balances:
                return layer.balances[addr]
        return self._base.balance(addr)

    def allowance(self, owner: bytes, spender: bytes) -> int:
        key = (owner, spender)
        for layer in reversed(self._layers):
            if key in layer.allowances:
                return layer.allowances[key]
        return self._base.allowance(owner, spender)

    def total_supply(self) -> int:
        for layer in reversed(self._layers):
            if layer.total_supply is not None:
                return layer.total_supply
        return self._base.total_supply

    def owner(self) -> Optional[bytes]:
        for layer in reversed(self._layers):
            if layer.owner is not None:
                return layer.owner
        return self._base.owner

    def pending_events(self) -> List[Event]:
        out: List[Event] = []
        for layer in self._layers:
            out.extend(layer.events)
        return out

    # ------------------------------------------------------------------ #
    # Writes (top overlay)
    # ------------------------------------------------------------------ #

    def _top(self) -> _Overlay:
        if not self._layers:
            raise RuntimeError("write outside of a checkpoint")
        return self._layers[-1]

    def set_balance(self, addr: bytes, value: int) -> None:
        self._top().balances[addr] = value

    def set_allowance(self, owner: bytes, spender: bytes, value: int) -> None:
        self._top().allowances[(owner, spender)] = value

    def set_total_supply(self, value: int) -> None:
        self._top().total_supply = value

    def set_owner(self, addr: bytes) -> None:
        self._top().owner = addr

    def emit(self, event: Event) -> None:
        self._top().events.append(event)


__all__ = ["Journal"]
