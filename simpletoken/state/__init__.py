"""
simpletoken.state — storage layers under the ledger.

- store      : LedgerState, the committed sparse balances/allowances/supply
- journal    : Journal, nested checkpoint overlays with staged events
- snapshots  : LedgerSnapshot, immutable copies for readers
"""

from .journal import Journal
from .snapshots import LedgerSnapshot, capture
from .store import AllowanceKey, LedgerState

__all__ = ["AllowanceKey", "Journal", "LedgerSnapshot", "LedgerState", "capture"]
