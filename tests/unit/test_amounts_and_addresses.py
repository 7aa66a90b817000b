# -*- coding: utf-8 -*-
"""
Amount and address primitives:
- checked U256 arithmetic (no wraparound, bools rejected)
- decimal <-> base-unit conversion
- 0x-hex / raw-bytes address normalization and the zero-account guard
"""
from __future__ import annotations

from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from simpletoken.address import (ZERO_ADDRESS, derive_address, is_zero,
                                 require_nonzero, to_address, to_hex)
from simpletoken.errors import InvalidAddress, InvalidAmount, Overflow, ZeroAddress
from simpletoken.safe_uint import (U256_MAX, is_u256, require_u256, u256_add,
                                   u256_mul, u256_sub)
from simpletoken.units import format_units, parse_units

# ---------------------------- safe_uint ---------------------------------------


def test_u256_bounds():
    assert is_u256(0) and is_u256(U256_MAX)
    assert not is_u256(-1)
    assert not is_u256(U256_MAX + 1)
    assert not is_u256(True)
    assert not is_u256(1.0)


def test_checked_ops():
    assert u256_add(U256_MAX - 1, 1) == U256_MAX
    with pytest.raises(Overflow):
        u256_add(U256_MAX, 1)
    assert u256_sub(5, 5) == 0
    with pytest.raises(Overflow):
        u256_sub(4, 5)
    assert u256_mul(2**128 - 1, 2**128 + 1) == U256_MAX
    with pytest.raises(Overflow):
        u256_mul(2**128, 2**128)


def test_require_u256_reports_offender():
    with pytest.raises(InvalidAmount) as ei:
        require_u256(1, 2, -3)
    assert ei.value.data == {"value": "-3"}


@given(st.integers(min_value=0, max_value=U256_MAX), st.integers(min_value=0, max_value=U256_MAX))
def test_add_either_fits_or_raises(a, b):
    if a + b <= U256_MAX:
        assert u256_add(a, b) == a + b
    else:
        with pytest.raises(Overflow):
            u256_add(a, b)


# ---------------------------- units -------------------------------------------


@pytest.mark.parametrize(
    "text, decimals, expected",
    [
        ("50", 18, 50 * 10**18),
        ("0.5", 18, 5 * 10**17),
        ("1.000000000000000001", 18, 10**18 + 1),
        ("  12 ", 0, 12),
        (7, 2, 700),
        (Decimal("0.25"), 2, 25),
    ],
)
def test_parse_units(text, decimals, expected):
    assert parse_units(text, decimals) == expected


@pytest.mark.parametrize("bad", ["-1", "abc", "NaN", "Infinity", "0.001", True, None])
def test_parse_units_rejects(bad):
    with pytest.raises(InvalidAmount):
        parse_units(bad, 2)


def test_parse_units_rejects_above_u256():
    with pytest.raises(InvalidAmount):
        parse_units(str(U256_MAX + 1), 0)
    assert parse_units(str(U256_MAX), 0) == U256_MAX


@pytest.mark.parametrize(
    "text",
    [
        "1." + "0" * 200 + "1",
        "0." + "0" * 150 + "5",
        "1e-19",
        "1" * 130 + "e-130",
    ],
)
def test_parse_units_rejects_long_fractional_tail(text):
    with pytest.raises(InvalidAmount):
        parse_units(text, 18)


def test_parse_units_keeps_trailing_zeros_and_exponents():
    assert parse_units("1." + "0" * 200, 18) == 10**18
    assert parse_units("1.50", 1) == 15
    assert parse_units("2e3", 0) == 2000
    assert parse_units("0e-500", 18) == 0
    with pytest.raises(InvalidAmount):
        parse_units("1e999999999", 0)


def test_format_units():
    assert format_units(50 * 10**18) == "50"
    assert format_units(5 * 10**17) == "0.5"
    assert format_units(1, 18) == "0.000000000000000001"
    assert format_units(1234, 0) == "1234"
    assert format_units(0, 6) == "0"


@given(st.integers(min_value=0, max_value=10**40), st.integers(min_value=0, max_value=30))
def test_format_then_parse_is_identity(value, decimals):
    assert parse_units(format_units(value, decimals), decimals) == value


# ---------------------------- addresses ---------------------------------------


def test_to_address_accepts_bytes_and_hex():
    raw = bytes(range(20))
    assert to_address(raw) == raw
    assert to_address(bytearray(raw)) == raw
    assert to_address(to_hex(raw)) == raw
    assert to_address("0X" + raw.hex().upper()) == raw


@pytest.mark.parametrize("bad", [b"", b"\x01" * 21, "0x" + "zz" * 20, "0x" + "00" * 19, "00" * 20, 1, None])
def test_to_address_rejects(bad):
    with pytest.raises(InvalidAddress):
        to_address(bad)


def test_zero_account_guard():
    assert is_zero(ZERO_ADDRESS)
    assert is_zero("0x" + "00" * 20)
    with pytest.raises(ZeroAddress) as ei:
        require_nonzero(ZERO_ADDRESS, "to")
    assert ei.value.data == {"field": "to"}
    assert require_nonzero("0x" + "11" * 20, "to") == b"\x11" * 20


def test_derive_address_is_deterministic():
    a = derive_address("alice")
    assert a == derive_address("alice")
    assert a != derive_address("bob")
    assert len(a) == 20 and a != ZERO_ADDRESS
