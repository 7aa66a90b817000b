"""Conversion between human display amounts and integer base units.

- parse_units("1.5", 18) -> 1500000000000000000
- format_units(1500000000000000000, 18) -> "1.5"

The ledger only ever sees base units; these helpers are for callers (CLI, UI
glue) that accept or show decimal amounts.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

from .errors import InvalidAmount
from .safe_uint import U256_MAX, require_u256

DEFAULT_DECIMALS = 18


def _to_base_units(d: Decimal, decimals: int, amount: object) -> int:
    # exact integer arithmetic on the digit tuple; Decimal ops round to context precision
    _, digits, exp = d.as_tuple()
    coeff = int("".join(map(str, digits)) or "0")
    if coeff == 0:
        return 0
    shift = exp + decimals
    if shift >= 0:
        if len(digits) + shift > 78:
            raise InvalidAmount("amount exceeds 2**256-1 base units", value=str(amount))
        return coeff * 10**shift
    if -shift > len(digits):
        raise InvalidAmount(f"amount has more than {decimals} fractional digits", value=str(amount))
    whole, rest = divmod(coeff, 10**-shift)
    if rest:
        raise InvalidAmount(f"amount has more than {decimals} fractional digits", value=str(amount))
    return whole


def parse_units(amount: Union[str, int, Decimal], decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Convert a decimal amount (e.g. "50", "0.25") to base units.

    Rejects negatives, non-finite values, values with more fractional digits
    than `decimals` (no silent rounding), and results above 2**256-1.
    """
    if isinstance(amount, bool):
        raise InvalidAmount("amount must be a decimal number", value=repr(amount))
    try:
        d = Decimal(amount.strip() if isinstance(amount, str) else amount)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount("amount must be a decimal number", value=repr(amount)) from None
    if not d.is_finite() or d < 0:
        raise InvalidAmount("amount must be a non-negative finite number", value=str(amount))

    units = _to_base_units(d, decimals, amount)
    if units > U256_MAX:
        raise InvalidAmount("amount exceeds 2**256-1 base units", value=str(amount))
    return units


def format_units(value: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """Render base units as a plain decimal string with trailing zeros stripped."""
    require_u256(value)
    whole, frac = divmod(value, 10**decimals)
    if frac == 0 or decimals == 0:
        return str(whole)
    frac_s = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{whole}.{frac_s}"


__all__ = ["DEFAULT_DECIMALS", "parse_units", "format_units"]
