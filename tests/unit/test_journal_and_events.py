# -*- coding: utf-8 -*-
"""
Journal checkpoint laws and the event log.

Journal:
  - begin → writes → revert  ⇒ base state untouched
  - begin → writes → commit  ⇒ base state updated, staged events returned
  - nested checkpoints behave as a stack (inner revert keeps outer writes)

EventLog:
  - sequence numbers follow commit order, op_index groups one operation
  - filtering by name / address / since / limit
  - subscribers run after storing; a failing subscriber is logged and skipped
"""
from __future__ import annotations

import logging

import pytest

from simpletoken.address import ZERO_ADDRESS
from simpletoken.events import (Approval, EventLog, OwnershipTransferred,
                                Transfer, event_addresses)
from simpletoken.state import Journal, LedgerState, capture

A = b"\xaa" * 20
B = b"\xbb" * 20
C = b"\xcc" * 20


# ---------------------------- store & journal ---------------------------------


def test_store_is_sparse():
    st = LedgerState()
    st.set_balance(A, 5)
    st.set_allowance(A, B, 3)
    assert st.balance(A) == 5 and st.allowance(A, B) == 3
    st.set_balance(A, 0)
    st.set_allowance(A, B, 0)
    assert st.balances == {} and st.allowances == {}
    assert st.balance(C) == 0


def test_revert_restores_base():
    st = LedgerState(balances={A: 10}, total_supply=10)
    j = Journal(st)
    j.begin()
    j.set_balance(A, 1)
    j.set_balance(B, 9)
    j.set_total_supply(99)
    j.emit(Transfer(A, B, 9))
    assert j.balance(B) == 9 and j.total_supply() == 99
    j.revert()
    assert st.balances == {A: 10} and st.total_supply == 10
    assert j.depth() == 0 and j.pending_events() == []


def test_commit_applies_and_returns_events():
    st = LedgerState(balances={A: 10}, total_supply=10)
    j = Journal(st)
    j.begin()
    j.set_balance(A, 0)
    j.set_balance(B, 10)
    j.set_allowance(A, C, 4)
    j.set_owner(B)
    ev = Transfer(A, B, 10)
    j.emit(ev)
    assert j.commit() == [ev]
    assert st.balances == {B: 10}
    assert st.allowances == {(A, C): 4}
    assert st.owner == B


def test_nested_inner_revert_keeps_outer():
    st = LedgerState()
    j = Journal(st)
    j.begin()
    j.set_balance(A, 1)
    j.emit(Transfer(ZERO_ADDRESS, A, 1))
    j.begin()
    j.set_balance(A, 2)
    j.emit(Transfer(ZERO_ADDRESS, A, 1))
    assert j.balance(A) == 2
    j.revert()
    assert j.balance(A) == 1
    assert len(j.pending_events()) == 1
    assert len(j.commit()) == 1
    assert st.balance(A) == 1


def test_nested_inner_commit_defers_events():
    st = LedgerState()
    j = Journal(st)
    j.begin()
    j.begin()
    j.set_balance(A, 7)
    j.emit(Transfer(ZERO_ADDRESS, A, 7))
    assert j.commit() == []
    assert st.balance(A) == 0
    assert [e.value for e in j.commit()] == [7]
    assert st.balance(A) == 7


def test_revert_to_marker():
    j = Journal(LedgerState())
    j.begin()
    m = j.begin()
    j.begin()
    j.revert_to(m)
    assert j.depth() == 1
    with pytest.raises(ValueError):
        j.revert_to(0)


def test_write_outside_checkpoint_is_an_error():
    j = Journal(LedgerState())
    with pytest.raises(RuntimeError):
        j.set_balance(A, 1)
    with pytest.raises(RuntimeError):
        j.commit()
    with pytest.raises(RuntimeError):
        j.revert()


def test_capture_is_detached_from_state():
    st = LedgerState(balances={A: 3}, allowances={(A, B): 2}, total_supply=3)
    snap = capture(st, op_count=4)
    st.set_balance(A, 0)
    assert snap.balance_of(A) == 3 and snap.allowance(A, B) == 2
    d = snap.to_dict()
    assert d["total_supply"] == 3 and d["op_count"] == 4
    assert d["balances"] == {"0x" + "aa" * 20: 3}
    assert d["allowances"] == [{"owner": "0x" + "aa" * 20, "spender": "0x" + "bb" * 20, "value": 2}]


# ---------------------------- events ------------------------------------------


def test_event_dicts_use_hex_addresses():
    assert Transfer(A, B, 5).to_dict() == {"event": "Transfer", "from": "0x" + "aa" * 20, "to": "0x" + "bb" * 20, "value": 5}
    assert Approval(A, B, 1).to_dict()["spender"] == "0x" + "bb" * 20
    assert OwnershipTransferred(A, B).to_dict()["new"] == "0x" + "bb" * 20
    assert event_addresses(Approval(A, C, 0)) == (A, C)


def test_sequence_and_op_index():
    log_ = EventLog()
    log_.append_batch([Transfer(A, B, 1), Approval(A, B, 2)])
    log_.append_batch([])
    log_.append_batch([Transfer(B, C, 3)])
    recs = list(log_)
    assert [r.seq for r in recs] == [0, 1, 2]
    assert [r.op_index for r in recs] == [0, 0, 2]
    assert log_.last().event == Transfer(B, C, 3)
    assert recs[1].to_dict()["seq"] == 1


def test_get_logs_filters():
    log_ = EventLog()
    log_.append_batch([Transfer(A, B, 1), Approval(A, C, 2), Transfer(B, C, 3)])
    assert [r.seq for r in log_.get_logs(name="Transfer")] == [0, 2]
    assert [r.seq for r in log_.get_logs(address=C)] == [1, 2]
    assert [r.seq for r in log_.get_logs(since=1, limit=1)] == [1]
    assert log_.get_logs(name="Approval", address=B) == []


def test_subscribers_in_order_and_unsubscribe():
    log_ = EventLog()
    seen = []
    off = log_.subscribe(lambda r: seen.append(("a", r.seq)))
    log_.subscribe(lambda r: seen.append(("b", r.seq)))
    log_.append_batch([Transfer(A, B, 1)])
    off()
    log_.append_batch([Transfer(A, B, 2)])
    assert seen == [("a", 0), ("b", 0), ("b", 1)]


def test_failing_subscriber_is_logged(caplog):
    caplog.set_level(logging.ERROR, logger="simpletoken")
    log_ = EventLog()
    seen = []

    def boom(_rec):
        raise RuntimeError("subscriber bug")

    log_.subscribe(boom)
    log_.subscribe(seen.append)
    recs = log_.append_batch([Transfer(A, B, 1)])
    assert seen == recs
    assert len(log_) == 1
    assert any(r.getMessage() == "event subscriber failed" for r in caplog.records)
