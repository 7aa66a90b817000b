"""
simpletoken.errors — typed failures raised by the token ledger.

Every rejected operation surfaces as a subclass of `LedgerError`. The ledger
detects all failure conditions before committing anything, so catching one of
these means the ledger state is exactly what it was before the call.

Hierarchy
---------
LedgerError (base)
 ├─ ZeroAddress            : reserved zero account used where a real account is required
 ├─ InsufficientBalance    : debit exceeds the account balance
 ├─ InsufficientAllowance  : delegated debit exceeds the remaining approval
 ├─ Overflow               : arithmetic result would not fit in U256
 ├─ Unauthorized           : caller lacks the privilege (minting, ownership)
 ├─ InvalidAddress         : value cannot be parsed as a 20-byte account id
 ├─ InvalidAmount          : amount is not an int in [0, 2**256-1]
 ├─ InvalidMetadata        : bad name / symbol / decimals at creation
 └─ InvariantViolation     : internal consistency check failed (a bug, never user error)

`code` is a stable machine string (see `ErrorKind`); callers match on it or on
the class, never on the message text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    ZERO_ADDRESS = "LEDGER/ZERO_ADDRESS"
    INSUFFICIENT_BALANCE = "LEDGER/INSUFFICIENT_BALANCE"
    INSUFFICIENT_ALLOWANCE = "LEDGER/INSUFFICIENT_ALLOWANCE"
    OVERFLOW = "LEDGER/OVERFLOW"
    UNAUTHORIZED = "LEDGER/UNAUTHORIZED"
    INVALID_ADDRESS = "LEDGER/INVALID_ADDRESS"
    INVALID_AMOUNT = "LEDGER/INVALID_AMOUNT"
    INVALID_METADATA = "LEDGER/INVALID_METADATA"
    INVARIANT = "LEDGER/INVARIANT_VIOLATION"
    ERROR = "LEDGER/ERROR"


@dataclass
class LedgerError(Exception):
    """
    Base ledger error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (an `ErrorKind` value).
        data:    Optional structured details (kept JSON-serializable).
    """

    message: str = "ledger error"
    code: str = ErrorKind.ERROR.value
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    @property
    def kind(self) -> ErrorKind:
        try:
            return ErrorKind(self.code)
        except ValueError:
            return ErrorKind.ERROR

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for logs and caller-facing results."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


def _details(**fields: Any) -> Optional[Dict[str, Any]]:
    d = {k: v for k, v in fields.items() if v is not None}
    return d or None


class ZeroAddress(LedgerError):
    def __init__(self, message: str = "Zero address not allowed", *, field_name: Optional[str] = None):
        super().__init__(message=message, code=ErrorKind.ZERO_ADDRESS.value, data=_details(field=field_name))


class InsufficientBalance(LedgerError):
    def __init__(
        self,
        message: str = "Insufficient balance",
        *,
        account: Optional[str] = None,
        balance: Optional[int] = None,
        needed: Optional[int] = None,
    ):
        super().__init__(
            message=message,
            code=ErrorKind.INSUFFICIENT_BALANCE.value,
            data=_details(account=account, balance=balance, needed=needed),
        )


class InsufficientAllowance(LedgerError):
    def __init__(
        self,
        message: str = "Insufficient allowance",
        *,
        owner: Optional[str] = None,
        spender: Optional[str] = None,
        allowance: Optional[int] = None,
        needed: Optional[int] = None,
    ):
        super().__init__(
            message=message,
            code=ErrorKind.INSUFFICIENT_ALLOWANCE.value,
            data=_details(owner=owner, spender=spender, allowance=allowance, needed=needed),
        )


class Overflow(LedgerError):
    def __init__(self, message: str = "Arithmetic overflow", *, op: Optional[str] = None):
        super().__init__(message=message, code=ErrorKind.OVERFLOW.value, data=_details(op=op))


class Unauthorized(LedgerError):
    def __init__(
        self,
        message: str = "Caller is not the owner",
        *,
        caller: Optional[str] = None,
        action: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            code=ErrorKind.UNAUTHORIZED.value,
            data=_details(caller=caller, action=action),
        )


class InvalidAddress(LedgerError):
    def __init__(self, message: str = "Invalid address", *, value: Optional[str] = None):
        super().__init__(message=message, code=ErrorKind.INVALID_ADDRESS.value, data=_details(value=value))


class InvalidAmount(LedgerError):
    def __init__(self, message: str = "Invalid amount", *, value: Optional[str] = None):
        super().__init__(message=message, code=ErrorKind.INVALID_AMOUNT.value, data=_details(value=value))


class InvalidMetadata(LedgerError):
    def __init__(self, message: str = "Invalid token metadata", *, field_name: Optional[str] = None):
        super().__init__(message=message, code=ErrorKind.INVALID_METADATA.value, data=_details(field=field_name))


class InvariantViolation(LedgerError):
    def __init__(self, message: str = "Ledger invariant violated", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code=ErrorKind.INVARIANT.value, data=data)


__all__ = [
    "ErrorKind",
    "LedgerError",
    "ZeroAddress",
    "InsufficientBalance",
    "InsufficientAllowance",
    "Overflow",
    "Unauthorized",
    "InvalidAddress",
    "InvalidAmount",
    "InvalidMetadata",
    "InvariantViolation",
]
