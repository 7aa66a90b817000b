"""
simpletoken — in-memory fungible token ledger.

    from simpletoken import Ledger

    ledger = Ledger.create(1_000_000, owner)      # 1e6 STK, 18 decimals
    ledger.transfer(owner, alice, 50 * 10**18)
    ledger.balance_of(alice)                       # 50000000000000000000
"""

from .address import ZERO_ADDRESS, derive_address, to_address, to_hex
from .errors import (ErrorKind, InsufficientAllowance, InsufficientBalance,
                     InvalidAddress, InvalidAmount, InvalidMetadata,
                     InvariantViolation, LedgerError, Overflow, Unauthorized,
                     ZeroAddress)
from .events import (Approval, EventLog, EventRecord, OwnershipTransferred,
                     Transfer)
from .ledger import Ledger
from .state import LedgerSnapshot
from .units import format_units, parse_units
from .version import __version__

__all__ = [
    "__version__",
    "Ledger",
    "LedgerSnapshot",
    "EventLog",
    "EventRecord",
    "Transfer",
    "Approval",
    "OwnershipTransferred",
    "ZERO_ADDRESS",
    "derive_address",
    "to_address",
    "to_hex",
    "parse_units",
    "format_units",
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
