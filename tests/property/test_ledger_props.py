# -*- coding: utf-8 -*-
"""
Property tests for the token ledger.

Random operation sequences over a small account set, checking after every
step that:
  - the sum of all balances equals the total supply (conservation)
  - a rejected operation leaves state and the event log untouched
  - a committed operation emits exactly its notification(s), in order
  - reads are idempotent
Plus a stateful model comparison against plain dicts.
"""
from __future__ import annotations

from typing import Dict, Tuple

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, rule

from simpletoken.address import ZERO_ADDRESS, derive_address
from simpletoken.errors import (InsufficientAllowance, InsufficientBalance,
                                LedgerError, Overflow, Unauthorized,
                                ZeroAddress)
from simpletoken.ledger import Ledger
from simpletoken.safe_uint import U256_MAX

ACCOUNTS = [derive_address(f"props:{i}") for i in range(4)]
OWNER = ACCOUNTS[0]

ACCT = st.sampled_from(ACCOUNTS)
ACCT_OR_ZERO = st.one_of(ACCT, st.just(ZERO_ADDRESS))
AMOUNT = st.one_of(st.integers(min_value=0, max_value=2_000), st.integers(min_value=0, max_value=U256_MAX))

OPS = st.one_of(
    st.tuples(st.just("transfer"), ACCT_OR_ZERO, ACCT_OR_ZERO, AMOUNT),
    st.tuples(st.just("approve"), ACCT_OR_ZERO, ACCT_OR_ZERO, AMOUNT),
    st.tuples(st.just("transfer_from"), ACCT, ACCT_OR_ZERO, ACCT_OR_ZERO, AMOUNT),
    st.tuples(st.just("mint"), ACCT, ACCT_OR_ZERO, AMOUNT),
    st.tuples(st.just("increase_allowance"), ACCT, ACCT, AMOUNT),
    st.tuples(st.just("decrease_allowance"), ACCT, ACCT, AMOUNT),
)


def _apply(ledger: Ledger, op: Tuple) -> None:
    getattr(ledger, op[0])(*op[1:])


@settings(max_examples=60, deadline=None, suppress_health_check=[HealthCheck.too_slow])
@given(supply=st.integers(min_value=0, max_value=10_000), ops=st.lists(OPS, max_size=40))
def test_conservation_and_failure_atomicity(supply, ops):
    ledger = Ledger.create(supply, OWNER, decimals=0)
    for op in ops:
        before = ledger.snapshot().to_dict()
        n_events = len(ledger.events)
        try:
            _apply(ledger, op)
        except LedgerError:
            assert ledger.snapshot().to_dict()["balances"] == before["balances"]
            assert ledger.snapshot().to_dict()["allowances"] == before["allowances"]
            assert ledger.total_supply() == before["total_supply"]
            assert len(ledger.events) == n_events
        else:
            new = len(ledger.events) - n_events
            assert new == 1
        snap = ledger.snapshot()
        assert snap.sum_balances() == snap.total_supply
        assert ZERO_ADDRESS not in snap.balances
        ledger.check_invariants()


@given(owner=ACCT, spender=ACCT, first=AMOUNT, second=AMOUNT)
def test_approve_overwrite_roundtrip(owner, spender, first, second):
    ledger = Ledger.create(0, OWNER, decimals=0)
    ledger.approve(owner, spender, first)
    ledger.approve(owner, spender, second)
    assert ledger.allowance(owner, spender) == second


@given(ops=st.lists(OPS, max_size=15), who=ACCT)
def test_reads_are_idempotent(ops, who):
    ledger = Ledger.create(1_000, OWNER, decimals=0)
    for op in ops:
        try:
            _apply(ledger, op)
        except LedgerError:
            pass
    ops_before = ledger.op_count
    a = (ledger.balance_of(who), ledger.total_supply(), ledger.allowance(OWNER, who))
    b = (ledger.balance_of(who), ledger.total_supply(), ledger.allowance(OWNER, who))
    assert a == b
    assert ledger.op_count == ops_before


@given(src=ACCT, dst=ACCT, amount=st.integers(min_value=0, max_value=500))
def test_transfer_moves_exactly_amount(src, dst, amount):
    ledger = Ledger.create(1_000, OWNER, decimals=0)
    ledger.transfer(OWNER, src, 500)
    before_src, before_dst = ledger.balance_of(src), ledger.balance_of(dst)
    ledger.transfer(src, dst, amount)
    if src == dst:
        assert ledger.balance_of(src) == before_src
    else:
        assert ledger.balance_of(src) == before_src - amount
        assert ledger.balance_of(dst) == before_dst + amount


# -----------------------------------------------------------------------------
# Stateful comparison against a dict model
# -----------------------------------------------------------------------------


class LedgerModel(RuleBasedStateMachine):
    def __init__(self) -> None:
        super().__init__()
        self.ledger = Ledger.create(1_000, OWNER, decimals=0)
        self.balances: Dict[bytes, int] = {OWNER: 1_000}
        self.allowances: Dict[Tuple[bytes, bytes], int] = {}
        self.supply = 1_000

    def _bal(self, a: bytes) -> int:
        return self.balances.get(a, 0)

    @rule(src=ACCT, dst=ACCT, amount=st.integers(min_value=0, max_value=1_500))
    def transfer(self, src, dst, amount):
        if self._bal(src) < amount:
            with pytest.raises(InsufficientBalance):
                self.ledger.transfer(src, dst, amount)
            return
        self.ledger.transfer(src, dst, amount)
        self.balances[src] = self._bal(src) - amount
        self.balances[dst] = self._bal(dst) + amount

    @rule(owner=ACCT, spender=ACCT, amount=st.integers(min_value=0, max_value=1_500))
    def approve(self, owner, spender, amount):
        self.ledger.approve(owner, spender, amount)
        self.allowances[(owner, spender)] = amount

    @rule(spender=ACCT, owner=ACCT, to=ACCT, amount=st.integers(min_value=0, max_value=1_500))
    def transfer_from(self, spender, owner, to, amount):
        allowed = self.allowances.get((owner, spender), 0)
        if allowed < amount:
            with pytest.raises(InsufficientAllowance):
                self.ledger.transfer_from(spender, owner, to, amount)
            return
        if self._bal(owner) < amount:
            with pytest.raises(InsufficientBalance):
                self.ledger.transfer_from(spender, owner, to, amount)
            return
        self.ledger.transfer_from(spender, owner, to, amount)
        self.allowances[(owner, spender)] = allowed - amount
        self.balances[owner] = self._bal(owner) - amount
        self.balances[to] = self._bal(to) + amount

    @rule(caller=ACCT, to=ACCT, amount=st.integers(min_value=0, max_value=U256_MAX))
    def mint(self, caller, to, amount):
        if caller != OWNER:
            with pytest.raises(Unauthorized):
                self.ledger.mint(caller, to, amount)
            return
        if self.supply + amount > U256_MAX:
            with pytest.raises(Overflow):
                self.ledger.mint(caller, to, amount)
            return
        self.ledger.mint(caller, to, amount)
        self.supply += amount
        self.balances[to] = self._bal(to) + amount

    @rule(to=ACCT)
    def zero_recipient_rejected(self, to):
        with pytest.raises(ZeroAddress):
            self.ledger.transfer(to, ZERO_ADDRESS, 0)

    @invariant()
    def matches_model(self):
        for a in ACCOUNTS:
            assert self.ledger.balance_of(a) == self._bal(a)
            for b in ACCOUNTS:
                assert self.ledger.allowance(a, b) == self.allowances.get((a, b), 0)
        assert self.ledger.total_supply() == self.supply
        assert sum(self.balances.values()) == self.supply


TestLedgerModel = LedgerModel.TestCase
TestLedgerModel.settings = settings(max_examples=40, stateful_step_count=30, deadline=None)
