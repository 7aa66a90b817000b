# -*- coding: utf-8 -*-
"""
Shared pytest fixtures for the ledger tests:
- Deterministic account addresses (sha3-derived, never the zero account)
- A fresh ledger deployed with the default metadata and 1,000,000 whole tokens
- A recorder that collects every committed event record
"""
from __future__ import annotations

import logging
from typing import List

import pytest

from simpletoken.address import derive_address
from simpletoken.events import EventRecord
from simpletoken.ledger import Ledger

ETHER = 10**18
INITIAL_SUPPLY = 1_000_000


def det_address(tag: str) -> bytes:
    return derive_address(f"tests:{tag}")


OWNER = det_address("owner")
ADDR1 = det_address("addr1")
ADDR2 = det_address("addr2")
ADDR3 = det_address("addr3")


@pytest.fixture
def owner() -> bytes:
    return OWNER


@pytest.fixture
def addr1() -> bytes:
    return ADDR1


@pytest.fixture
def addr2() -> bytes:
    return ADDR2


@pytest.fixture
def ledger() -> Ledger:
    return Ledger.create(INITIAL_SUPPLY, OWNER)


@pytest.fixture
def recorded(ledger: Ledger) -> List[EventRecord]:
    """Event records committed after the fixture is set up (creation excluded)."""
    out: List[EventRecord] = []
    ledger.events.subscribe(out.append)
    return out


@pytest.fixture(autouse=True, scope="session")
def _quiet_logs():
    logging.getLogger("simpletoken").setLevel(logging.WARNING)
    yield
