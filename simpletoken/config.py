"""
simpletoken configuration loader.

Layered config with clear precedence:
    1) Explicit overrides passed to `load()` (highest)
    2) Environment variables (SIMPLETOKEN_*)
    3) Config file (TOML or JSON)
    4) Built-in defaults (lowest)

File layout (TOML):

    [token]
    name = "SimpleToken"
    symbol = "STK"
    decimals = 18
    initial_supply = 1000000          # whole tokens, scaled by 10**decimals
    owner = "0x..."                   # optional; defaults to a derived devnet address

    [log]
    level = "INFO"
    format = "text"                   # "text" | "json" | "" (auto)
    file = "/var/log/simpletoken.jsonl"

Overrides use flat keys: `load(name="X", decimals=6, log_level="DEBUG")`.
"""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .address import derive_address, to_address, to_hex
from .errors import LedgerError
from .ledger import DEFAULT_DECIMALS, DEFAULT_NAME, DEFAULT_SYMBOL, Ledger

DEFAULT_INITIAL_SUPPLY = 1_000_000
DEFAULT_OWNER_TAG = "simpletoken:owner"

ENV_PREFIX = "SIMPLETOKEN_"


class ConfigError(LedgerError):
    def __init__(self, message: str = "invalid configuration", *, key: Optional[str] = None):
        super().__init__(message=message, code="CONFIG/INVALID", data={"key": key} if key else None)


# ------------------------------
# Typed configuration model
# ------------------------------


@dataclass
class TokenConfig:
    name: str = DEFAULT_NAME
    symbol: str = DEFAULT_SYMBOL
    decimals: int = DEFAULT_DECIMALS
    initial_supply: int = DEFAULT_INITIAL_SUPPLY
    owner: str = field(default_factory=lambda: to_hex(derive_address(DEFAULT_OWNER_TAG)))

    def validate(self) -> None:
        for key in ("name", "symbol", "owner"):
            if not isinstance(getattr(self, key), str):
                raise ConfigError(f"{key} must be a string, got {getattr(self, key)!r}", key=key)
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int) or not 0 <= self.decimals <= 255:
            raise ConfigError(f"decimals must be in [0, 255], got {self.decimals!r}", key="decimals")
        if not isinstance(self.initial_supply, int) or self.initial_supply < 0:
            raise ConfigError(f"initial_supply must be a non-negative int, got {self.initial_supply!r}", key="initial_supply")
        try:
            to_address(self.owner)
        except LedgerError as e:
            raise ConfigError(f"owner: {e.message}", key="owner") from e


@dataclass
class LogConfig:
    level: str = "INFO"
    format: str = ""  # "", "text" or "json"
    file: Optional[str] = None

    def validate(self) -> None:
        if not isinstance(self.level, str) or self.level.upper() not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}:
            raise ConfigError(f"unknown log level {self.level!r}", key="log.level")
        if not isinstance(self.format, str) or self.format not in ("", "text", "json"):
            raise ConfigError(f"log format must be text or json, got {self.format!r}", key="log.format")
        if self.file is not None and not isinstance(self.file, str):
            raise ConfigError(f"log file must be a path string, got {self.file!r}", key="log.file")


@dataclass
class Config:
    token: TokenConfig = field(default_factory=TokenConfig)
    log: LogConfig = field(default_factory=LogConfig)

    def validate(self) -> None:
        self.token.validate()
        self.log.validate()

    def build_ledger(self) -> Ledger:
        t = self.token
        return Ledger.create(
            t.initial_supply,
            t.owner,
            name=t.name,
            symbol=t.symbol,
            decimals=t.decimals,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ------------------------------
# Helpers
# ------------------------------


def _env_int(name: str) -> Optional[int]:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return None
    try:
        return int(v, 0)
    except ValueError as e:
        raise ConfigError(f"{name} must be int, got {v!r}", key=name) from e


def _env_str(name: str) -> Optional[str]:
    v = os.environ.get(name)
    return v if v else None


def _load_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}", key="config_file")
    suffix = path.suffix.lower()
    with path.open("rb") as f:
        try:
            if suffix in {".toml", ".tml"}:
                return tomllib.load(f)
            if suffix == ".json":
                return json.load(f)
        except (tomllib.TOMLDecodeError, ValueError) as e:
            raise ConfigError(f"cannot parse {path}: {e}", key="config_file") from e
    raise ConfigError(f"unsupported config format: {suffix}. Use .toml or .json", key="config_file")


def _section(data: Any, name: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ConfigError("config file must hold a table/object at the top level", key="config_file")
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a table/object", key=name)
    return section


def _apply(obj: Any, values: Dict[str, Any]) -> None:
    for k, v in values.items():
        if v is None:
            continue
        if not hasattr(obj, k):
            raise ConfigError(f"unknown config key {k!r}", key=k)
        setattr(obj, k, v)


# ------------------------------
# Main loader
# ------------------------------


def load(config_file: Optional[str | Path] = None, **overrides: Any) -> Config:
    """
    Build a validated `Config`.

    Precedence: overrides > env > file > defaults. `config_file` falls back
    to $SIMPLETOKEN_CONFIG when not given.
    """
    cfg = Config()

    path = config_file or _env_str(ENV_PREFIX + "CONFIG")
    if path:
        data = _load_file(Path(path).expanduser())
        _apply(cfg.token, _section(data, "token"))
        _apply(cfg.log, _section(data, "log"))

    _apply(
        cfg.token,
        {
            "name": _env_str(ENV_PREFIX + "NAME"),
            "symbol": _env_str(ENV_PREFIX + "SYMBOL"),
            "decimals": _env_int(ENV_PREFIX + "DECIMALS"),
            "initial_supply": _env_int(ENV_PREFIX + "INITIAL_SUPPLY"),
            "owner": _env_str(ENV_PREFIX + "OWNER"),
        },
    )
    _apply(
        cfg.log,
        {
            "level": _env_str(ENV_PREFIX + "LOG_LEVEL"),
            "format": _env_str(ENV_PREFIX + "LOG_FORMAT"),
            "file": _env_str(ENV_PREFIX + "LOG_FILE"),
        },
    )

    log_overrides = {k[len("log_"):]: overrides.pop(k) for k in list(overrides) if k.startswith("log_")}
    _apply(cfg.token, overrides)
    _apply(cfg.log, log_overrides)

    cfg.validate()
    return cfg


__all__ = ["Config", "ConfigError", "LogConfig", "TokenConfig", "load", "DEFAULT_INITIAL_SUPPLY"]
