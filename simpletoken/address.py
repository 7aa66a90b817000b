"""
simpletoken.address — 20-byte account identifiers.

The ledger works on raw 20-byte values; the `0x` + 40-hex-digit string is the
wire/UI rendering. The all-zero value is the reserved "no account" sentinel: it
appears as the source of mint notifications and is never a valid holder.
"""

from __future__ import annotations

import hashlib
from typing import Final, Union

from .errors import InvalidAddress, ZeroAddress

ADDRESS_LENGTH: Final[int] = 20
ZERO_ADDRESS: Final[bytes] = b"\x00" * ADDRESS_LENGTH

AddressLike = Union[bytes, bytearray, str]


def to_address(value: AddressLike) -> bytes:
    """
    Normalize raw bytes or a `0x`-prefixed hex string into 20 address bytes.

    Raises InvalidAddress for anything else (wrong length, missing prefix,
    non-hex digits, wrong type).
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != ADDRESS_LENGTH:
            raise InvalidAddress(f"address must be {ADDRESS_LENGTH} bytes", value=bytes(value).hex())
        return bytes(value)
    if isinstance(value, str):
        s = value.strip()
        if not s.startswith(("0x", "0X")):
            raise InvalidAddress("address must be 0x-prefixed hex", value=value)
        body = s[2:]
        if len(body) != ADDRESS_LENGTH * 2:
            raise InvalidAddress(f"address must have {ADDRESS_LENGTH * 2} hex digits", value=value)
        try:
            return bytes.fromhex(body)
        except ValueError:
            raise InvalidAddress("address contains non-hex characters", value=value) from None
    raise InvalidAddress(f"unsupported address type {type(value).__name__}")


def to_hex(addr: bytes) -> str:
    """Render address bytes as lowercase `0x` hex."""
    return "0x" + bytes(addr).hex()


def is_zero(addr: AddressLike) -> bool:
    return to_address(addr) == ZERO_ADDRESS


def require_nonzero(value: AddressLike, field_name: str, message: str = "") -> bytes:
    """Normalize `value` and reject the reserved zero account."""
    addr = to_address(value)
    if addr == ZERO_ADDRESS:
        raise ZeroAddress(message or f"{field_name} cannot be the zero address", field_name=field_name)
    return addr


def derive_address(tag: str) -> bytes:
    """
    Deterministic address from a label (sha3_256 prefix). For demos, fixtures
    and devnet tooling; never for real key material.
    """
    return hashlib.sha3_256(tag.encode("utf-8")).digest()[:ADDRESS_LENGTH]


__all__ = [
    "ADDRESS_LENGTH",
    "ZERO_ADDRESS",
    "AddressLike",
    "to_address",
    "to_hex",
    "is_zero",
    "require_nonzero",
    "derive_address",
]
