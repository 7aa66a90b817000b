# -*- coding: utf-8 -*-
"""
SimpleToken ledger (ERC-20–like fungible token)
===============================================

Deterministic, float-free, in-memory token ledger. It holds per-account
balances, the total supply and a sparse owner→spender allowance table, and
exposes a small set of state transitions that either fully apply or fully
reject.

Highlights
----------
- Explicit `caller` parameters for mutating calls (no ambient sender).
- Every operation runs inside a journal checkpoint: all checks happen before
  the checkpoint commits, and any failure reverts it, so observers never see
  a partial update or an event from a rejected call.
- One re-entrant lock serializes operations; reads take the same lock and
  therefore always observe a complete prefix of committed writes.
- U256-checked math via `simpletoken.safe_uint` (no silent wraparound).
- The account that receives the initial supply is the owner and the only
  account allowed to mint; ownership can be handed over.
- Notifications go to an `EventLog`:
    - Transfer { from, to, value }
    - Approval { owner, spender, value }
    - OwnershipTransferred { previous, new }

Public interface
----------------
# metadata / views
name, symbol, decimals (properties)
owner() -> bytes
total_supply() -> int
balance_of(addr) -> int
allowance(owner, spender) -> int

# state-changing (explicit caller)
Ledger.create(initial_supply, owner, *, name, symbol, decimals) -> Ledger
transfer(caller, to, amount) -> bool
approve(caller, spender, amount) -> bool
transfer_from(caller, sender, to, amount) -> bool
increase_allowance(caller, spender, added) -> bool
decrease_allowance(caller, spender, subtracted) -> bool
mint(caller, to, amount) -> bool
transfer_ownership(caller, new_owner) -> bool

# grouping / inspection
batch() (context manager), snapshot(), check_invariants()

Addresses may be passed as 20 raw bytes or as `0x` hex strings; amounts are
integers in base units (10**decimals per display unit).
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Final, Iterator, List, Optional

from .address import (ZERO_ADDRESS, AddressLike, require_nonzero, to_address,
                      to_hex)
from .errors import (InsufficientAllowance, InsufficientBalance,
                     InvalidMetadata, InvariantViolation, LedgerError,
                     Overflow, Unauthorized)
from .events import Approval, Event, EventLog, OwnershipTransferred, Transfer
from .logging import get_logger
from .safe_uint import U256_MAX, require_u256, u256_add
from .state import Journal, LedgerSnapshot, LedgerState, capture

log = get_logger("simpletoken.ledger")

DEFAULT_NAME: Final[str] = "SimpleToken"
DEFAULT_SYMBOL: Final[str] = "STK"
DEFAULT_DECIMALS: Final[int] = 18
MAX_DECIMALS: Final[int] = 255  # uint8 on the wire

# ------------------------------------------------------------------------------
# Metadata validation
# ------------------------------------------------------------------------------


def _is_printable_ascii(s: str) -> bool:
    return bool(s) and all(32 <= ord(ch) <= 126 for ch in s)


def _validate_metadata(name: str, symbol: str, decimals: int) -> None:
    if not isinstance(name, str) or not _is_printable_ascii(name) or len(name) > 64:
        raise InvalidMetadata("name must be 1..64 printable ASCII characters", field_name="name")
    if not isinstance(symbol, str) or not _is_printable_ascii(symbol) or len(symbol) > 11:
        raise InvalidMetadata("symbol must be 1..11 printable ASCII characters", field_name="symbol")
    if isinstance(decimals, bool) or not isinstance(decimals, int) or not 0 <= decimals <= MAX_DECIMALS:
        raise InvalidMetadata(f"decimals must be an integer in [0, {MAX_DECIMALS}]", field_name="decimals")


# ------------------------------------------------------------------------------
# Ledger
# ------------------------------------------------------------------------------


class Ledger:
    """
    The token ledger. Build one with `Ledger.create(...)`.

    All state lives in a private `LedgerState` and is only reachable through
    the operations below.
    """

    def __init__(
        self,
        *,
        name: str = DEFAULT_NAME,
        symbol: str = DEFAULT_SYMBOL,
        decimals: int = DEFAULT_DECIMALS,
        event_log: Optional[EventLog] = None,
    ) -> None:
        _validate_metadata(name, symbol, decimals)
        self._name = name
        self._symbol = symbol
        self._decimals = decimals
        self._state = LedgerState()
        self._journal = Journal(self._state)
        self._lock = threading.RLock()
        self._op_count = 0
        self.events = event_log if event_log is not None else EventLog()

    @classmethod
    def create(
        cls,
        initial_supply: int,
        owner: AddressLike,
        *,
        name: str = DEFAULT_NAME,
        symbol: str = DEFAULT_SYMBOL,
        decimals: int = DEFAULT_DECIMALS,
        event_log: Optional[EventLog] = None,
    ) -> "Ledger":
        """
        Create a ledger and mint `initial_supply` whole tokens to `owner`.

        The supply is scaled by 10**decimals (1_000_000 with 18 decimals
        becomes 1_000_000 * 10**18 base units). Raises Overflow when the
        scaled amount does not fit in U256.
        """
        ledger = cls(name=name, symbol=symbol, decimals=decimals, event_log=event_log)
        with ledger._operation("create") as j:
            owner_b = require_nonzero(owner, "owner")
            require_u256(initial_supply)
            supply = initial_supply * 10**decimals
            if supply > U256_MAX:
                raise Overflow("scaled initial supply exceeds 2**256-1", op="mul")
            j.set_owner(owner_b)
            j.set_balance(owner_b, supply)
            j.set_total_supply(supply)
            j.emit(Transfer(ZERO_ADDRESS, owner_b, supply))
        log.info(
            "ledger created",
            extra={"token": symbol, "owner": to_hex(owner_b), "supply": supply},
        )
        return ledger

    # --------------------------------------------------------------------------
    # Metadata (immutable)
    # --------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def decimals(self) -> int:
        return self._decimals

    def owner(self) -> bytes:
        with self._lock:
            return self._journal.owner() or ZERO_ADDRESS

    # --------------------------------------------------------------------------
    # Views
    # --------------------------------------------------------------------------

    def total_supply(self) -> int:
        with self._lock:
            return self._journal.total_supply()

    def balance_of(self, addr: AddressLike) -> int:
        a = to_address(addr)
        with self._lock:
            return self._journal.balance(a)

    def allowance(self, owner: AddressLike, spender: AddressLike) -> int:
        o, s = to_address(owner), to_address(spender)
        with self._lock:
            return self._journal.allowance(o, s)

    # --------------------------------------------------------------------------
    # Mutations (explicit caller)
    # --------------------------------------------------------------------------

    def transfer(self, caller: AddressLike, to: AddressLike, amount: int) -> bool:
        with self._operation("transfer") as j:
            to_b = require_nonzero(to, "to", "Cannot transfer to zero address")
            caller_b = require_nonzero(caller, "caller")
            require_u256(amount)
            self._move(j, caller_b, to_b, amount)
            j.emit(Transfer(caller_b, to_b, amount))
        return True

    def approve(self, caller: AddressLike, spender: AddressLike, amount: int) -> bool:
        """Overwrite the allowance of `spender` over `caller`'s balance."""
        with self._operation("approve") as j:
            spender_b = require_nonzero(spender, "spender", "Cannot approve zero address")
            caller_b = require_nonzero(caller, "caller")
            require_u256(amount)
            j.set_allowance(caller_b, spender_b, amount)
            j.emit(Approval(caller_b, spender_b, amount))
        return True

    def transfer_from(self, caller: AddressLike, sender: AddressLike, to: AddressLike, amount: int) -> bool:
        """
        Spender (`caller`) moves `amount` from `sender` to `to`, consuming
        allowance. Checks run in order: zero address, allowance, balance.
        """
        with self._operation("transfer_from") as j:
            to_b = require_nonzero(to, "to", "Cannot transfer to zero address")
            caller_b = require_nonzero(caller, "caller")
            sender_b = require_nonzero(sender, "from", "Cannot transfer from zero address")
            require_u256(amount)

            allowed = j.allowance(sender_b, caller_b)
            if allowed < amount:
                raise InsufficientAllowance(
                    owner=to_hex(sender_b), spender=to_hex(caller_b), allowance=allowed, needed=amount
                )
            self._move(j, sender_b, to_b, amount)
            j.set_allowance(sender_b, caller_b, allowed - amount)
            j.emit(Transfer(sender_b, to_b, amount))
        return True

    def increase_allowance(self, caller: AddressLike, spender: AddressLike, added: int) -> bool:
        with self._operation("increase_allowance") as j:
            spender_b = require_nonzero(spender, "spender", "Cannot approve zero address")
            caller_b = require_nonzero(caller, "caller")
            new = u256_add(j.allowance(caller_b, spender_b), added)
            j.set_allowance(caller_b, spender_b, new)
            j.emit(Approval(caller_b, spender_b, new))
        return True

    def decrease_allowance(self, caller: AddressLike, spender: AddressLike, subtracted: int) -> bool:
        with self._operation("decrease_allowance") as j:
            spender_b = require_nonzero(spender, "spender", "Cannot approve zero address")
            caller_b = require_nonzero(caller, "caller")
            require_u256(subtracted)
            cur = j.allowance(caller_b, spender_b)
            if cur < subtracted:
                raise InsufficientAllowance(
                    "Allowance below zero",
                    owner=to_hex(caller_b),
                    spender=to_hex(spender_b),
                    allowance=cur,
                    needed=subtracted,
                )
            j.set_allowance(caller_b, spender_b, cur - subtracted)
            j.emit(Approval(caller_b, spender_b, cur - subtracted))
        return True

    def mint(self, caller: AddressLike, to: AddressLike, amount: int) -> bool:
        """Owner-only: create `amount` new base units for `to`."""
        with self._operation("mint") as j:
            self._require_owner(j, caller, "mint")
            to_b = require_nonzero(to, "to", "Cannot mint to zero address")
            require_u256(amount)
            # supply bounds every balance, so the balance add cannot overflow after this
            new_supply = u256_add(j.total_supply(), amount)
            j.set_total_supply(new_supply)
            j.set_balance(to_b, j.balance(to_b) + amount)
            j.emit(Transfer(ZERO_ADDRESS, to_b, amount))
        log.info("minted", extra={"to": to_hex(to_b), "value": amount})
        return True

    def transfer_ownership(self, caller: AddressLike, new_owner: AddressLike) -> bool:
        """Owner-only: hand the owner (minter) role to `new_owner`."""
        with self._operation("transfer_ownership") as j:
            prev = self._require_owner(j, caller, "transfer_ownership")
            new_b = require_nonzero(new_owner, "new_owner", "New owner is the zero address")
            j.set_owner(new_b)
            j.emit(OwnershipTransferred(prev, new_b))
        return True

    # --------------------------------------------------------------------------
    # Grouping & inspection
    # --------------------------------------------------------------------------

    @contextmanager
    def batch(self) -> Iterator["Ledger"]:
        """
        Apply every operation issued inside the block as one atomic unit.

            with ledger.batch():
                ledger.approve(owner, spender, 10)
                ledger.transfer_from(spender, owner, bob, 10)

        If anything inside raises, all of the block's writes and events are
        discarded and the exception propagates. Other threads are held off
        until the block ends.
        """
        with self._operation("batch"):
            yield self

    def snapshot(self) -> LedgerSnapshot:
        """Immutable copy of the committed state."""
        with self._lock:
            return capture(self._state, self._op_count)

    def check_invariants(self) -> None:
        """
        Verify conservation (sum of balances == total supply) and value ranges
        on the committed state. Raises InvariantViolation.
        """
        with self._lock:
            st = self._state
            total = sum(st.balances.values())
            if total != st.total_supply:
                raise InvariantViolation(
                    "sum of balances differs from total supply",
                    data={"sum": total, "total_supply": st.total_supply},
                )
            if ZERO_ADDRESS in st.balances:
                raise InvariantViolation("zero address holds a balance")
            for value in list(st.balances.values()) + list(st.allowances.values()):
                if not 0 <= value <= U256_MAX:
                    raise InvariantViolation("stored value outside U256", data={"value": value})

    @property
    def op_count(self) -> int:
        """Number of committed top-level operations (creation included)."""
        with self._lock:
            return self._op_count

    # --------------------------------------------------------------------------
    # Internals
    # --------------------------------------------------------------------------

    @contextmanager
    def _operation(self, op: str) -> Iterator[Journal]:
        """
        Run one operation under the lock inside a journal checkpoint. Commits
        when the block finishes, reverts on any exception. The outermost
        commit publishes the staged events.
        """
        with self._lock:
            self._journal.begin()
            try:
                yield self._journal
            except LedgerError as e:
                self._journal.revert()
                log.info("operation rejected", extra={"op": op, "code": e.code, "reason": e.message})
                raise
            except BaseException:
                self._journal.revert()
                raise
            events = self._journal.commit()
            if self._journal.depth() == 0:
                self._publish(op, events)

    def _publish(self, op: str, events: List[Event]) -> None:
        self._op_count += 1
        log.debug("committed", extra={"op": op, "events": len(events)})
        if events:
            self.events.append_batch(events)

    def _require_owner(self, j: Journal, caller: AddressLike, action: str) -> bytes:
        caller_b = to_address(caller)
        current = j.owner()
        if current is None or caller_b != current:
            raise Unauthorized(caller=to_hex(caller_b), action=action)
        return current

    @staticmethod
    def _move(j: Journal, src: bytes, dst: bytes, amount: int) -> None:
        """
        Debit `src` and credit `dst`. Both new values are computed before
        either is written; a self-transfer leaves the balance as it was.
        """
        src_bal = j.balance(src)
        if src_bal < amount:
            raise InsufficientBalance(account=to_hex(src), balance=src_bal, needed=amount)
        if src == dst:
            return
        new_src = src_bal - amount
        new_dst = u256_add(j.balance(dst), amount)
        j.set_balance(src, new_src)
        j.set_balance(dst, new_dst)

    def __repr__(self) -> str:
        return f"Ledger(name={self._name!r}, symbol={self._symbol!r}, decimals={self._decimals})"


__all__ = ["Ledger", "DEFAULT_NAME", "DEFAULT_SYMBOL", "DEFAULT_DECIMALS", "MAX_DECIMALS"]
