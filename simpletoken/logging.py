"""
simpletoken.logging
-------------------

Structured logging for the ledger and its CLI.

Records from the `simpletoken.*` logger tree carry two kinds of fields:
- context fields bound for the current task/thread via `contextvars`
  (`trace_id`, `component`, `caller`, `op`), and
- per-call `extra={...}` fields (amounts, addresses, error codes).

Both are rendered by either formatter: `JSONFormatter` (one object per line,
for files and pipelines) or `TextFormatter` (one readable line, colored on a
TTY). Address bytes are rendered as 0x hex everywhere.

    from simpletoken import logging as slog

    slog.configure(json=False, level="INFO")
    log = slog.get_logger(__name__)

    with slog.trace_scope():
        slog.bind(component="cli", caller="0xab..")
        log.info("minted", extra={"to": to_addr, "value": 5})
"""

from __future__ import annotations

import datetime as _dt
import json
import logging
import os
import sys
import traceback
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import IO, Any, Dict, Iterator, Optional

ROOT_LOGGER = "simpletoken"

DEFAULT_CONTEXT_KEYS = ("trace_id", "component", "caller", "op")

_CTX: ContextVar[Dict[str, Any]] = ContextVar("simpletoken_log_ctx", default={})

# attributes every LogRecord has; anything else on a record came from `extra=`
_STD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime", "ctx"}


# ----------------------------
# Context binding
# ----------------------------


def context() -> Dict[str, Any]:
    """Copy of the fields bound in the current context."""
    return dict(_CTX.get())


def bind(**fields: Any) -> None:
    _CTX.set({**_CTX.get(), **{k: _jsonable(v) for k, v in fields.items()}})


def unbind(*keys: str) -> None:
    _CTX.set({k: v for k, v in _CTX.get().items() if k not in keys})


def clear_context() -> None:
    _CTX.set({})


@contextmanager
def trace_scope(trace_id: Optional[str] = None) -> Iterator[str]:
    """Bind a trace id (fresh unless given) and restore the previous context on exit."""
    token = _CTX.set({**_CTX.get(), "trace_id": trace_id or uuid.uuid4().hex[:12]})
    try:
        yield _CTX.get()["trace_id"]
    finally:
        _CTX.reset(token)


class ContextFilter(logging.Filter):
    """Attach the bound context to each record as `record.ctx`."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.ctx = context()
        return True


# ----------------------------
# Value rendering
# ----------------------------


def _jsonable(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    if isinstance(v, (list, tuple)):
        return [_jsonable(x) for x in v]
    if isinstance(v, dict):
        return {str(k): _jsonable(x) for k, x in v.items()}
    if is_dataclass(v) and not isinstance(v, type):
        return _jsonable(asdict(v))
    return str(v)


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: _jsonable(v) for k, v in vars(record).items() if k not in _STD_ATTRS and not k.startswith("_")}


def _timestamp(record: logging.LogRecord) -> str:
    return _dt.datetime.fromtimestamp(record.created, _dt.timezone.utc).isoformat(timespec="milliseconds")


def _exc_text(record: logging.LogRecord) -> Optional[str]:
    if not record.exc_info:
        return None
    return "".join(traceback.format_exception(*record.exc_info)).rstrip()


# ----------------------------
# Formatters
# ----------------------------


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        out: Dict[str, Any] = {
            "ts": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        out.update(getattr(record, "ctx", None) or context())
        for k, v in _record_fields(record).items():
            out.setdefault(k, v)
        err = _exc_text(record)
        if err:
            out["err"] = err
        return json.dumps(out, separators=(",", ":"), default=str)


_COLORS = {
    logging.DEBUG: "\x1b[90m",
    logging.INFO: "\x1b[32m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[1;35m",
}
_RESET = "\x1b[0m"


class TextFormatter(logging.Formatter):
    """
    One line per record:

        2026-01-05T12:34:56.789+00:00 WARNING simpletoken.ledger [trace_id=ab12 op=mint] operation rejected code=LEDGER/UNAUTHORIZED
    """

    def __init__(self, color: bool = False):
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        ctx = getattr(record, "ctx", None) or context()
        level = record.levelname
        if self.color:
            level = f"{_COLORS.get(record.levelno, '')}{level}{_RESET}"
        parts = [_timestamp(record), level, record.name]
        bound = " ".join(f"{k}={ctx[k]}" for k in DEFAULT_CONTEXT_KEYS if ctx.get(k) is not None)
        if bound:
            parts.append(f"[{bound}]")
        parts.append(record.getMessage())
        parts.extend(f"{k}={v}" for k, v in _record_fields(record).items() if k not in ctx)
        line = " ".join(parts)
        err = _exc_text(record)
        return f"{line}\n{err}" if err else line


# ----------------------------
# Setup
# ----------------------------


def _is_tty(stream: Any) -> bool:
    isatty = getattr(stream, "isatty", None)
    try:
        return bool(isatty and isatty()) and "NO_COLOR" not in os.environ
    except ValueError:
        return False


def _use_json(flag: Optional[bool], stream: Any) -> bool:
    if flag is not None:
        return flag
    env = os.environ.get("SIMPLETOKEN_LOG_FORMAT", "").strip().lower()
    if env in ("json", "text"):
        return env == "json"
    return not _is_tty(stream)


def configure(
    *,
    json: Optional[bool] = None,
    level: str | int = "INFO",
    stream: Optional[IO[str]] = None,
    file_path: Optional[Path | str] = None,
) -> None:
    """
    (Re)configure the `simpletoken` logger tree.

    json      : force JSON (True) or text (False). None reads SIMPLETOKEN_LOG_FORMAT
                and otherwise picks text on a TTY, JSON elsewhere.
    level     : level name or number; unknown names fall back to INFO.
    stream    : console stream (default: the current sys.stderr).
    file_path : optional extra JSON-lines file.
    """
    stream = stream if stream is not None else sys.stderr
    lvl = level if isinstance(level, int) else logging.getLevelName(level.upper())
    if not isinstance(lvl, int):
        lvl = logging.INFO

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(lvl)
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    console = logging.StreamHandler(stream)
    console.setFormatter(JSONFormatter() if _use_json(json, stream) else TextFormatter(color=_is_tty(stream)))
    handlers: list[logging.Handler] = [console]

    if file_path:
        p = Path(file_path).expanduser()
        p.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(p, encoding="utf-8")
        fh.setFormatter(JSONFormatter())
        handlers.append(fh)

    for h in handlers:
        h.setLevel(lvl)
        h.addFilter(ContextFilter())
        root.addHandler(h)


def configure_from_config(cfg: Any) -> None:
    """Apply the `log` section of a `simpletoken.config.Config`."""
    fmt = (cfg.log.format or "").strip().lower()
    configure(
        json={"json": True, "text": False}.get(fmt),
        level=cfg.log.level,
        file_path=cfg.log.file,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or ROOT_LOGGER)


__all__ = [
    "DEFAULT_CONTEXT_KEYS",
    "ContextFilter",
    "JSONFormatter",
    "TextFormatter",
    "bind",
    "unbind",
    "clear_context",
    "context",
    "trace_scope",
    "configure",
    "configure_from_config",
    "get_logger",
]
