from __future__ import annotations

"""
dappreg.cli
-----------

Devnet command line for a dapp registry kept in a JSON state file.

Identities (callers, owners, destinations) are hex strings; dapp ids, metadata
keys and values are text (right-padded to 32 bytes) or 0x-hex of 32 bytes.

Examples
--------
# Create a registry administered by 0xaa.. with a fee of 1 coin, fund alice
dappreg init --admin 0xaaaa --fee 1000000000000000000
dappreg fund 0xa11ce0 5000000000000000000

# Register and annotate a dapp
dappreg register awesome --caller 0xa11ce0 --value 1000000000000000000
dappreg set-meta awesome key value --caller 0xa11ce0
dappreg meta awesome key

# Administration
dappreg set-fee 10 --caller 0xaaaa
dappreg drain --caller 0xaaaa
dappreg events
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from .config import load_config
from .context import CallEnv
from .errors import DappRegError
from .registry import DappRegistry
from .service import RegistryService
from .treasury import Ledger
from .types import Entry, as_identity, to_hex, word_to_text
from .version import __version__

log = logging.getLogger(__name__)

app = typer.Typer(
    name="dappreg",
    add_completion=False,
    no_args_is_help=True,
    help="Fee-gated dapp id registry (devnet/test tooling).",
)

_STATE: Dict[str, Any] = {"path": None}

# -------------------- utils --------------------


def _state_path() -> Path:
    return _STATE["path"] or load_config().state_path


def _echo(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


def _fail(err: DappRegError) -> None:
    log.warning("%s", err)
    _echo({"error": err.to_dict()})
    raise typer.Exit(code=1)


def _load() -> RegistryService:
    path = _state_path()
    if not path.is_file():
        typer.echo(f"no registry state at {path}; run `dappreg init` first", err=True)
        raise typer.Exit(code=2)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        registry = DappRegistry.load(data["registry"])
        ledger = Ledger.load(data.get("ledger") or {})
    except DappRegError as e:
        _fail(e)
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        # truncated or hand-edited file
        typer.echo(f"unreadable registry state at {path}: {e!r}", err=True)
        raise typer.Exit(code=2)
    return RegistryService(registry, ledger)


def _save(svc: RegistryService) -> None:
    path = _state_path()
    tmp = path.with_suffix(path.suffix + ".tmp")
    payload = {"registry": svc.registry.dump(), "ledger": svc.ledger.dump()}
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)
    tmp.replace(path)


def _run(op: str, *args: Any, caller: Optional[str] = None, value: int = 0, write: bool = False) -> Any:
    svc = _load()
    try:
        # Reads need no real caller; the administrator stands in.
        who = as_identity(caller) if caller else svc.registry.administrator()
        out = svc.call(CallEnv(who, value=value), op, *args)
    except DappRegError as e:
        _fail(e)
    if write:
        _save(svc)
    return out


def _entry(e: Entry) -> Dict[str, Any]:
    return e.to_dict()


# -------------------- commands --------------------


@app.callback()
def main_callback(
    state: Optional[Path] = typer.Option(None, "--state", envvar="DAPPREG_STATE", help="Path of the JSON state file."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (default from DAPPREG_LOG_LEVEL)."),
) -> None:
    level = (log_level or load_config().log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING), stream=sys.stderr)
    _STATE["path"] = state


@app.command()
def init(
    admin: str = typer.Option(..., "--admin", help="Administrator identity (hex)."),
    fee: Optional[int] = typer.Option(None, "--fee", min=0, help="Registration fee in base units."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing state file."),
) -> None:
    """Create a fresh registry state file."""
    path = _state_path()
    if path.exists() and not force:
        typer.echo(f"{path} already exists (use --force to overwrite)", err=True)
        raise typer.Exit(code=2)
    try:
        svc = RegistryService(DappRegistry(as_identity(admin), fee=fee))
    except DappRegError as e:
        _fail(e)
    _save(svc)
    _echo({"state": str(path), "administrator": to_hex(svc.registry.administrator()), "fee": svc.registry.fee()})


@app.command()
def fund(
    account: str = typer.Argument(..., help="Account identity (hex)."),
    amount: int = typer.Argument(..., min=0),
) -> None:
    """Credit a devnet account on the local ledger."""
    svc = _load()
    try:
        acct = as_identity(account)
        svc.ledger.credit(acct, amount)
    except DappRegError as e:
        _fail(e)
    _save(svc)
    _echo({"account": to_hex(acct), "balance": svc.ledger.balance_of(acct)})


@app.command()
def register(
    dapp_id: str = typer.Argument(...),
    caller: str = typer.Option(..., "--caller"),
    value: int = typer.Option(0, "--value", min=0, help="Payment attached to the call."),
) -> None:
    """Register a dapp id to the caller."""
    _echo(_entry(_run("register", dapp_id, caller=caller, value=value, write=True)))


@app.command()
def unregister(dapp_id: str = typer.Argument(...), caller: str = typer.Option(..., "--caller")) -> None:
    """Remove a dapp (owner or administrator)."""
    _run("unregister", dapp_id, caller=caller, write=True)
    _echo({"unregistered": dapp_id})


@app.command()
def get(dapp_id: str = typer.Argument(...)) -> None:
    _echo(_entry(_run("get", dapp_id)))


@app.command()
def at(index: int = typer.Argument(...)) -> None:
    _echo(_entry(_run("at", index)))


@app.command()
def count() -> None:
    _echo({"count": _run("count")})


@app.command()
def meta(dapp_id: str = typer.Argument(...), key: str = typer.Argument(...)) -> None:
    v = _run("meta", dapp_id, key)
    _echo({"id": dapp_id, "key": key, "value": word_to_text(v), "raw": to_hex(v)})


@app.command("set-meta")
def set_meta(
    dapp_id: str = typer.Argument(...),
    key: str = typer.Argument(...),
    value: str = typer.Argument(...),
    caller: str = typer.Option(..., "--caller"),
) -> None:
    """Store a metadata value (dapp owner only)."""
    _run("setMeta", dapp_id, key, value, caller=caller, write=True)
    _echo({"id": dapp_id, "key": key, "value": value})


@app.command("set-owner")
def set_owner(
    dapp_id: str = typer.Argument(...),
    new_owner: str = typer.Argument(..., help="New owner identity (hex)."),
    caller: str = typer.Option(..., "--caller"),
) -> None:
    """Transfer a dapp to a new owner (dapp owner only)."""
    _echo(_entry(_run("setDappOwner", dapp_id, new_owner, caller=caller, write=True)))


@app.command()
def fee() -> None:
    _echo({"fee": _run("fee")})


@app.command("set-fee")
def set_fee(new_fee: int = typer.Argument(..., min=0), caller: str = typer.Option(..., "--caller")) -> None:
    """Change the registration fee (administrator only)."""
    _run("setFee", new_fee, caller=caller, write=True)
    _echo({"fee": new_fee})


@app.command()
def admin() -> None:
    _echo({"administrator": to_hex(_run("administrator"))})


@app.command("transfer-admin")
def transfer_admin(new_admin: str = typer.Argument(...), caller: str = typer.Option(..., "--caller")) -> None:
    """Hand the administrator role to another identity (administrator only)."""
    _run("transferAdministrator", new_admin, caller=caller, write=True)
    _echo({"administrator": to_hex(_run("administrator"))})


@app.command()
def drain(
    caller: str = typer.Option(..., "--caller"),
    to: Optional[str] = typer.Option(None, "--to", help="Destination (defaults to the caller)."),
) -> None:
    """Withdraw all collected fees (administrator only)."""
    amount = _run("drain", to or caller, caller=caller, write=True)
    _echo({"amount": amount, "destination": to or caller})


@app.command()
def balance(account: Optional[str] = typer.Argument(None)) -> None:
    """Show collected fees, or an account's ledger balance."""
    svc = _load()
    if account is None:
        _echo({"collected": svc.registry.balance()})
        return
    try:
        bal = svc.ledger.balance_of(as_identity(account))
    except DappRegError as e:
        _fail(e)
    _echo({"account": account, "balance": bal})


@app.command()
def events(since: int = typer.Option(0, "--since", min=0)) -> None:
    """Print notifications in emission order."""
    svc = _load()
    _echo([e.to_dict() for e in svc.registry.events.since(since)])


@app.command()
def version() -> None:
    _echo({"version": __version__})


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
