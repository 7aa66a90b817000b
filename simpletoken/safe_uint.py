# -*- coding: utf-8 -*-
"""
simpletoken.safe_uint
=====================

Checked unsigned-integer helpers for U256 amounts.

- Integer-only; never touches floats.
- "Checked" semantics: results outside [0, U256_MAX] raise instead of wrapping.
- Domain errors (non-int, negative, too large inputs) raise `InvalidAmount`;
  range errors on results raise `Overflow` (or the caller's own error, for
  subtraction, where the ledger wants InsufficientBalance/Allowance instead).
"""

from __future__ import annotations

from typing import Final

from .errors import InvalidAmount, Overflow

U256_MAX: Final[int] = 2**256 - 1


def is_u256(x: object) -> bool:
    # bool is an int subclass; amounts of True/False are a caller bug
    return isinstance(x, int) and not isinstance(x, bool) and 0 <= x <= U256_MAX


def require_u256(*xs: object) -> None:
    """Raise InvalidAmount unless every argument is an int in [0, U256_MAX]."""
    for x in xs:
        if not is_u256(x):
            raise InvalidAmount("amount must be an integer in [0, 2**256-1]", value=repr(x))


def u256_add(x: int, y: int) -> int:
    """Checked add: raise Overflow above U256_MAX."""
    require_u256(x, y)
    s = x + y
    if s > U256_MAX:
        raise Overflow("addition exceeds 2**256-1", op="add")
    return s


def u256_sub(x: int, y: int) -> int:
    """Checked sub: raise Overflow on underflow (y > x)."""
    require_u256(x, y)
    if y > x:
        raise Overflow("subtraction underflows zero", op="sub")
    return x - y


def u256_mul(x: int, y: int) -> int:
    """Checked multiply: raise Overflow above U256_MAX."""
    require_u256(x, y)
    p = x * y
    if p > U256_MAX:
        raise Overflow("multiplication exceeds 2**256-1", op="mul")
    return p


__all__ = ["U256_MAX", "is_u256", "require_u256", "u256_add", "u256_sub", "u256_mul"]
