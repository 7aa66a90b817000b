"""
simpletoken.abi — the contract-call surface used by external callers.

Callers outside Python (UI glue, scripts, the CLI `run` command) address the
ledger by the original contract's method names (`balanceOf`, `transferFrom`,
...) with positional arguments and an optional sender. This module routes
such calls to `Ledger` methods and maps results and failures to plain,
JSON-friendly dicts.

    dispatch(ledger, "transfer", ["0xab..", 50 * 10**18], sender="0xcd..")
    call(ledger, "balanceOf", ["0xab.."])
      -> {"status": "SUCCESS", "result": 50000000000000000000, "events": []}

Snake-case aliases (`balance_of`, `transfer_from`, ...) are accepted too.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .address import AddressLike, to_hex
from .errors import InvalidAmount, LedgerError
from .ledger import Ledger


class DispatchError(LedgerError):
    """Raised when a call names an unknown method or has the wrong shape."""

    def __init__(self, message: str = "bad call", *, method: Optional[str] = None):
        super().__init__(message=message, code="ABI/DISPATCH", data={"method": method} if method else None)


@dataclass(frozen=True)
class MethodSpec:
    name: str
    attr: str
    inputs: Tuple[Tuple[str, str], ...]  # (name, type)
    output: Optional[str]
    mutating: bool

    def to_abi(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": "function",
            "inputs": [{"name": n, "type": t} for n, t in self.inputs],
            "outputs": [{"name": "", "type": self.output}] if self.output else [],
            "stateMutability": "nonpayable" if self.mutating else "view",
        }


_ADDR = "address"
_U256 = "uint256"

METHODS: Dict[str, MethodSpec] = {
    m.name: m
    for m in (
        MethodSpec("name", "name", (), "string", False),
        MethodSpec("symbol", "symbol", (), "string", False),
        MethodSpec("decimals", "decimals", (), "uint8", False),
        MethodSpec("totalSupply", "total_supply", (), _U256, False),
        MethodSpec("owner", "owner", (), _ADDR, False),
        MethodSpec("balanceOf", "balance_of", (("account", _ADDR),), _U256, False),
        MethodSpec("allowance", "allowance", (("owner", _ADDR), ("spender", _ADDR)), _U256, False),
        MethodSpec("transfer", "transfer", (("to", _ADDR), ("value", _U256)), "bool", True),
        MethodSpec("approve", "approve", (("spender", _ADDR), ("value", _U256)), "bool", True),
        MethodSpec(
            "transferFrom", "transfer_from", (("from", _ADDR), ("to", _ADDR), ("value", _U256)), "bool", True
        ),
        MethodSpec("increaseAllowance", "increase_allowance", (("spender", _ADDR), ("added", _U256)), "bool", True),
        MethodSpec(
            "decreaseAllowance", "decrease_allowance", (("spender", _ADDR), ("subtracted", _U256)), "bool", True
        ),
        MethodSpec("mint", "mint", (("to", _ADDR), ("value", _U256)), "bool", True),
        MethodSpec("transferOwnership", "transfer_ownership", (("newOwner", _ADDR),), "bool", True),
    )
}

EVENTS_ABI: List[Dict[str, Any]] = [
    {
        "name": "Transfer",
        "type": "event",
        "inputs": [
            {"name": "from", "type": _ADDR, "indexed": True},
            {"name": "to", "type": _ADDR, "indexed": True},
            {"name": "value", "type": _U256, "indexed": False},
        ],
    },
    {
        "name": "Approval",
        "type": "event",
        "inputs": [
            {"name": "owner", "type": _ADDR, "indexed": True},
            {"name": "spender", "type": _ADDR, "indexed": True},
            {"name": "value", "type": _U256, "indexed": False},
        ],
    },
    {
        "name": "OwnershipTransferred",
        "type": "event",
        "inputs": [
            {"name": "previous", "type": _ADDR, "indexed": True},
            {"name": "new", "type": _ADDR, "indexed": True},
        ],
    },
]

_ALIASES: Dict[str, str] = {spec.attr: name for name, spec in METHODS.items()}


def abi_json() -> List[Dict[str, Any]]:
    """The full ABI (functions + events) as JSON-ready dicts."""
    return [spec.to_abi() for spec in METHODS.values()] + list(EVENTS_ABI)


def resolve(method: str) -> MethodSpec:
    spec = METHODS.get(method) or METHODS.get(_ALIASES.get(method, ""))
    if spec is None:
        raise DispatchError(f"unknown method {method!r}", method=method)
    return spec


def _as_amount(v: Any) -> int:
    if isinstance(v, bool):
        raise InvalidAmount("amount must be an integer", value=repr(v))
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        s = v.strip()
        if s.isascii() and s.isdigit():
            return int(s)
    raise InvalidAmount("amount must be an integer or a string of digits", value=repr(v))


def _coerce_args(spec: MethodSpec, args: Sequence[Any]) -> List[Any]:
    if len(args) != len(spec.inputs):
        raise DispatchError(
            f"{spec.name} expects {len(spec.inputs)} argument(s), got {len(args)}", method=spec.name
        )
    return [_as_amount(a) if t == _U256 else a for (_, t), a in zip(spec.inputs, args)]


def dispatch(ledger: Ledger, method: str, args: Sequence[Any] = (), *, sender: Optional[AddressLike] = None) -> Any:
    """
    Invoke `method` on `ledger`. Mutating methods require `sender`, which
    becomes the explicit caller. Ledger errors propagate unchanged.
    """
    spec = resolve(method)
    values = _coerce_args(spec, args)
    target = getattr(ledger, spec.attr)
    if spec.mutating:
        if sender is None:
            raise DispatchError(f"{spec.name} needs a sender", method=spec.name)
        return target(sender, *values)
    if callable(target):
        return target(*values)
    return target  # metadata properties


def _render(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return to_hex(bytes(value))
    return value


def error_to_result(err: LedgerError) -> Dict[str, Any]:
    """Map a ledger error to receipt-like fields: {"status": "REVERT", "error": {...}}."""
    return {"status": "REVERT", "error": err.to_dict()}


def call(
    ledger: Ledger, method: str, args: Sequence[Any] = (), *, sender: Optional[AddressLike] = None
) -> Dict[str, Any]:
    """
    Like `dispatch` but never raises a `LedgerError`: returns a result dict with
    the committed events produced by the call.
    """
    start = len(ledger.events)
    try:
        result = dispatch(ledger, method, args, sender=sender)
    except LedgerError as e:
        return error_to_result(e)
    events = [rec.event.to_dict() for rec in ledger.events.get_logs(since=start)]
    return {"status": "SUCCESS", "result": _render(result), "events": events}


def call_from_mapping(ledger: Ledger, item: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Run one scripted call: {"method": "transfer", "from": "0x..", "args": [...]}.
    `sender` is accepted as a synonym of `from`.
    """
    method = item.get("method")
    if not isinstance(method, str):
        return error_to_result(DispatchError("call is missing 'method'"))
    args = item.get("args", [])
    if not isinstance(args, (list, tuple)):
        return error_to_result(DispatchError("'args' must be a list", method=method))
    sender = item.get("from", item.get("sender"))
    return call(ledger, method, args, sender=sender)


__all__ = [
    "DispatchError",
    "MethodSpec",
    "METHODS",
    "EVENTS_ABI",
    "abi_json",
    "resolve",
    "dispatch",
    "call",
    "call_from_mapping",
    "error_to_result",
]
