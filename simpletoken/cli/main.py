"""
simpletoken — command line for the token ledger.

Commands:
  - simpletoken info            Metadata, owner and supply of a configured ledger
  - simpletoken abi             Print the call/event ABI as JSON
  - simpletoken demo            Replay the calibration scenarios
  - simpletoken run SCRIPT      Execute a JSON list of calls against a fresh ledger

Global options:
  --config PATH          TOML/JSON config (env: SIMPLETOKEN_CONFIG)
  --log-level TEXT       Log level (env: SIMPLETOKEN_LOG_LEVEL)
  --json                 Output JSON instead of human-readable text
  --version, -V          Print version and exit

Script format for `run`:
  [
    {"method": "transfer", "from": "0x<owner>", "args": ["0x<to>", 1000]},
    {"method": "balanceOf", "args": ["0x<to>"]}
  ]
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from .. import logging as slog
from ..address import to_hex
from ..abi import (DispatchError, abi_json, call_from_mapping, dispatch,
                   error_to_result)
from ..config import Config, load
from ..errors import LedgerError
from ..ledger import Ledger
from ..units import format_units
from ..version import version_metadata, version_string
from .demo import run_demo

app = typer.Typer(
    name="simpletoken",
    help="In-memory fungible token ledger",
    no_args_is_help=True,
    add_completion=False,
)


class GlobalContext:
    def __init__(self) -> None:
        self.config_path: Optional[str] = None
        self.json_output: bool = False
        self.cfg: Optional[Config] = None


_ctx = GlobalContext()


def _pretty(obj: Any) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


def _config() -> Config:
    if _ctx.cfg is None:
        try:
            _ctx.cfg = load(_ctx.config_path)
        except LedgerError as e:
            typer.echo(f"Error: {e.message}", err=True)
            raise typer.Exit(2)
    return _ctx.cfg


def _ledger() -> Ledger:
    try:
        return _config().build_ledger()
    except LedgerError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(2)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(version_string())
        raise typer.Exit(0)


@app.callback()
def main_callback(
    config: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to a TOML or JSON config file",
        envvar="SIMPLETOKEN_CONFIG",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ...)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output JSON instead of human-readable text",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_print_version,
        is_eager=True,
        help="Print version and exit",
    ),
) -> None:
    """
    SimpleToken ledger tools.

    Configuration precedence: flags > SIMPLETOKEN_* env vars > config file > defaults.
    """
    _ctx.config_path = config
    _ctx.json_output = json_output
    _ctx.cfg = None
    cfg = _config()
    if log_level:
        cfg.log.level = log_level
        try:
            cfg.log.validate()
        except LedgerError as e:
            typer.echo(f"Error: {e.message}", err=True)
            raise typer.Exit(2)
    slog.configure_from_config(cfg)


@app.command()
def info() -> None:
    """Show metadata, owner and supply of a freshly configured ledger."""
    ledger = _ledger()
    supply = ledger.total_supply()
    data: Dict[str, Any] = {
        "name": ledger.name,
        "symbol": ledger.symbol,
        "decimals": ledger.decimals,
        "owner": to_hex(ledger.owner()),
        "totalSupply": supply,
        **version_metadata(),
    }
    if _ctx.json_output:
        typer.echo(_pretty(data))
        return
    typer.echo(f"{ledger.name} ({ledger.symbol}), {ledger.decimals} decimals")
    typer.echo(f"owner:        {data['owner']}")
    typer.echo(f"total supply: {format_units(supply, ledger.decimals)} {ledger.symbol} ({supply} base units)")


@app.command()
def abi() -> None:
    """Print the ledger ABI (functions and events) as JSON."""
    typer.echo(_pretty(abi_json()))


def _echo_rows(rows: List[Dict[str, Any]]) -> None:
    for i, row in enumerate(rows):
        label = row.get("step") or row.get("method")
        if row["status"] == "SUCCESS":
            typer.echo(f"[{i}] {label}: ok -> {row.get('result')}")
            for ev in row.get("events", []):
                fields = " ".join(f"{k}={v}" for k, v in ev.items() if k != "event")
                typer.echo(f"      {ev['event']} {fields}")
        elif row["status"] == "ROLLED_BACK":
            typer.echo(f"[{i}] {label}: rolled back")
        else:
            err = row["error"]
            typer.echo(f"[{i}] {label}: {err['code']} ({err['message']})")


@app.command()
def demo(
    initial_supply: int = typer.Option(1_000_000, "--initial-supply", help="Whole tokens minted to the owner"),
) -> None:
    """Replay the calibration scenarios against a fresh ledger."""
    ledger, rows = run_demo(initial_supply)
    if _ctx.json_output:
        typer.echo(_pretty({"steps": rows, "state": ledger.snapshot().to_dict()}))
        return
    _echo_rows(rows)
    typer.echo(f"total supply: {format_units(ledger.total_supply(), ledger.decimals)} {ledger.symbol}")


@app.command()
def run(
    script: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of calls"),
    atomic: bool = typer.Option(False, "--atomic", help="Apply all calls as one unit; any failure undoes them all"),
) -> None:
    """Execute a scripted list of calls against a fresh configured ledger."""
    try:
        calls = json.loads(script.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        typer.echo(f"Error: cannot read script: {e}", err=True)
        raise typer.Exit(2)
    if not isinstance(calls, list) or not all(isinstance(c, dict) for c in calls):
        typer.echo("Error: script must be a JSON list of objects", err=True)
        raise typer.Exit(2)

    ledger = _ledger()
    rows: List[Dict[str, Any]] = []
    failed = False

    if atomic:
        start = len(ledger.events)
        try:
            with ledger.batch():
                for item in calls:
                    args = item.get("args", [])
                    if not isinstance(args, list):
                        raise DispatchError("'args' must be a list", method=str(item.get("method")))
                    sender = item.get("from", item.get("sender"))
                    result = dispatch(ledger, str(item.get("method", "")), args, sender=sender)
                    rows.append({"method": item.get("method"), "status": "SUCCESS", "result": result, "events": []})
        except LedgerError as e:
            failed = True
            for row in rows:
                row["status"] = "ROLLED_BACK"
            rows.append({"method": calls[len(rows)].get("method"), **error_to_result(e)})
        else:
            events = [rec.event.to_dict() for rec in ledger.events.get_logs(since=start)]
            if rows:
                rows[-1]["events"] = events
        for row in rows:
            if isinstance(row.get("result"), bytes):
                row["result"] = to_hex(row["result"])
    else:
        for item in calls:
            res = call_from_mapping(ledger, item)
            rows.append({"method": item.get("method"), **res})
            failed = failed or res["status"] != "SUCCESS"

    if _ctx.json_output:
        out: Dict[str, Any] = {"results": rows, "state": ledger.snapshot().to_dict()}
        if atomic:
            out["reverted"] = failed
        typer.echo(_pretty(out))
    else:
        _echo_rows(rows)
        if atomic and failed:
            typer.echo("batch reverted: no call was applied")
    if failed:
        raise typer.Exit(1)


def main() -> None:
    """Entry point for the simpletoken CLI."""
    app()


if __name__ == "__main__":
    main()
