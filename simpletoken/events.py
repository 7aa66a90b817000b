"""
simpletoken.events — ledger notifications and the in-order event log.

Each successful mutating operation yields one or more notification records:

- Transfer{from, to, value}          (transfer, transferFrom, mint, creation)
- Approval{owner, spender, value}    (approve family)
- OwnershipTransferred{previous, new}

The ledger buffers the records of an operation in its journal and appends them
here only when the operation commits, so observers see exactly the committed
operations, in commit order, and never anything from a rejected call.

`EventLog` is the in-memory sink: append-only, thread-safe, with a global
sequence number per record, simple filtering, and synchronous subscribers.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from .address import to_hex

log = logging.getLogger("simpletoken.events")


# =============================================================================
# Notification records
# =============================================================================


@dataclass(frozen=True)
class Transfer:
    sender: bytes
    to: bytes
    value: int

    name = "Transfer"

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.name, "from": to_hex(self.sender), "to": to_hex(self.to), "value": self.value}


@dataclass(frozen=True)
class Approval:
    owner: bytes
    spender: bytes
    value: int

    name = "Approval"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "owner": to_hex(self.owner),
            "spender": to_hex(self.spender),
            "value": self.value,
        }


@dataclass(frozen=True)
class OwnershipTransferred:
    previous: bytes
    new: bytes

    name = "OwnershipTransferred"

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.name, "previous": to_hex(self.previous), "new": to_hex(self.new)}


Event = Union[Transfer, Approval, OwnershipTransferred]


def event_addresses(event: Event) -> tuple:
    """Addresses an event refers to (used for address filtering)."""
    if isinstance(event, Transfer):
        return (event.sender, event.to)
    if isinstance(event, Approval):
        return (event.owner, event.spender)
    return (event.previous, event.new)


@dataclass(frozen=True)
class EventRecord:
    """
    A committed event with its position.

    seq      : 0-based global index in the log (commit order).
    op_index : 0-based index of the committed operation that produced it.
    """

    seq: int
    op_index: int
    event: Event

    @property
    def name(self) -> str:
        return self.event.name

    def to_dict(self) -> Dict[str, Any]:
        out = {"seq": self.seq, "op_index": self.op_index}
        out.update(self.event.to_dict())
        return out


Subscriber = Callable[[EventRecord], None]


# =============================================================================
# In-memory sink
# =============================================================================


class EventLog:
    """
    Append-only, thread-safe event log.

    Notes
    -----
    - Subscribers run synchronously, after the records are stored, in
      subscription order. A subscriber that raises is logged and skipped; the
      operation that produced the event has already committed.
    - Keeps everything in RAM; intended for the process lifetime of one ledger.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: List[EventRecord] = []
        self._subscribers: List[Subscriber] = []
        self._ops = 0

    def append_batch(self, events: List[Event]) -> List[EventRecord]:
        """Store the events of one committed operation (may be empty)."""
        with self._lock:
            op_index = self._ops
            self._ops += 1
            base = len(self._records)
            recs = [EventRecord(seq=base + i, op_index=op_index, event=e) for i, e in enumerate(events)]
            self._records.extend(recs)
            subscribers = list(self._subscribers)
        for rec in recs:
            for cb in subscribers:
                try:
                    cb(rec)
                except Exception:
                    log.exception("event subscriber failed", extra={"event_name": rec.name, "seq": rec.seq})
        return recs

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register `callback`; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            self.unsubscribe(callback)

        return _unsubscribe

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

    def get_logs(
        self,
        *,
        name: Optional[str] = None,
        address: Optional[bytes] = None,
        since: int = 0,
        limit: Optional[int] = None,
    ) -> List[EventRecord]:
        """Matching records in ascending `seq` order, starting at `since`."""
        with self._lock:
            candidates = self._records[since:]
        out: List[EventRecord] = []
        for rec in candidates:
            if name is not None and rec.name != name:
                continue
            if address is not None and address not in event_addresses(rec.event):
                continue
            out.append(rec)
            if limit is not None and len(out) >= limit:
                break
        return out

    def last(self) -> Optional[EventRecord]:
        with self._lock:
            return self._records[-1] if self._records else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self) -> Iterator[EventRecord]:
        with self._lock:
            return iter(list(self._records))


__all__ = [
    "Transfer",
    "Approval",
    "OwnershipTransferred",
    "Event",
    "EventRecord",
    "EventLog",
    "Subscriber",
    "event_addresses",
]
