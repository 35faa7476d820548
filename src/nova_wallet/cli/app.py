"""CLI for the Nova wallet - manage your Nova account from the terminal."""

from __future__ import annotations

import asyncio
import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from nova_wallet import __version__
from nova_wallet.address import self_check
from nova_wallet.api import NovaApiClient
from nova_wallet.config import CONFIG_FILENAME, STORE_FILENAME, ClientConfig, get_config_dir, load_config
from nova_wallet.endpoints import get_network_endpoints
from nova_wallet.errors import FormatError, WalletError
from nova_wallet.manager import WalletManager
from nova_wallet.result import Result
from nova_wallet.session import SessionHandshake
from nova_wallet.store import NETWORK_KEY, EncryptedFileStore
from nova_wallet.validators import (
    parse_address,
    parse_amount,
    parse_blockchain,
    parse_destination,
    parse_email,
    parse_network,
    parse_stablecoin,
)

app = typer.Typer(
    name="nova",
    help="Nova wallet - addresses, transfers and email login for Nova accounts.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("nova_wallet.cli")

_json_output: bool = False
_network_override: str | None = None


def _version_callback(value: bool):
    if value:
        console.print(f"nova {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output results as JSON"),
    network: Optional[str] = typer.Option(
        None,
        "--network",
        "-n",
        help="Network for this command only (local, testnet, mainnet)",
        envvar="NOVA_NETWORK",
        parser=parse_network,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Nova wallet - addresses, transfers and email login for Nova accounts."""
    global _json_output, _network_override
    _json_output = json_output
    _network_override = network
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
            force=True,
        )
    self_check()


def _run(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


# ------------------------------------------------------------------
# Output helpers
# ------------------------------------------------------------------


def _print_ok(result: dict[str, Any], message: str) -> None:
    if _json_output:
        typer.echo(json.dumps({"status": "ok", "result": result}))
    else:
        console.print(message, soft_wrap=True, highlight=False, markup=False)


def _exit_error(error: WalletError) -> NoReturn:
    if _json_output:
        typer.echo(json.dumps({"status": "error", "error": error.to_dict()}))
    else:
        err_console.print(f"[red]{escape(error.message)}[/red]", soft_wrap=True)
    raise typer.Exit(1)


def _unwrap(result: Result):
    if not result.ok:
        _exit_error(result.error)
    return result.value


# ------------------------------------------------------------------
# Wiring
# ------------------------------------------------------------------


def _load_client_config(config_dir: Path) -> ClientConfig:
    try:
        config = load_config(config_dir / CONFIG_FILENAME)
    except ValidationError as e:
        err_console.print(f"[red]Invalid {CONFIG_FILENAME}:[/red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(1)
    if logging.getLogger().level > logging.DEBUG:
        logging.getLogger("nova_wallet").setLevel(config.log_level)
    return config


def _open_manager() -> tuple[WalletManager, str]:
    """Build the manager and pick the network for this invocation."""
    config_dir = get_config_dir()
    config = _load_client_config(config_dir)
    store = EncryptedFileStore(config_dir / STORE_FILENAME)

    def api_factory(network: str) -> NovaApiClient:
        return NovaApiClient(get_network_endpoints(network, config.endpoints))

    manager = WalletManager(SessionHandshake(store, api_factory))
    network = _network_override or store.get(NETWORK_KEY) or config.default_network
    logger.debug(f"Using network {network}")
    return manager, network


# ------------------------------------------------------------------
# Account commands
# ------------------------------------------------------------------


@app.command()
def address():
    """Show the account address."""
    manager, network = _open_manager()
    addr = _unwrap(_run(manager.address(network)))
    _print_ok({"address": addr}, addr)


@app.command()
def lookup(
    account: str = typer.Argument(help="Nova account address", parser=parse_address),
):
    """Show the external-chain deposit addresses of an account."""
    manager, network = _open_manager()
    contents = _unwrap(_run(manager.lookup(account, network)))
    if _json_output:
        _print_ok(contents.model_dump(), "")
        return
    console.print(Panel(
        "\n".join(f"{name:<8} [cyan]{value}[/cyan]" for name, value in contents.model_dump().items()),
        title="Account Addresses",
    ))


@app.command()
def balance():
    """Show the current account balance."""
    manager, network = _open_manager()
    amount = _unwrap(_run(manager.balance(network)))
    _print_ok({"balance": str(amount)}, str(amount))


@app.command()
def token():
    """Create a bearer token for the logged-in session."""
    manager, network = _open_manager()
    bearer = _unwrap(_run(manager.mint_token(network)))
    _print_ok({"authenticated": True, "token": bearer}, bearer)


@app.command()
def send(
    amount: Decimal = typer.Argument(help="The amount of balance to send", parser=parse_amount),
    destination: Optional[str] = typer.Argument(
        None,
        help="Email or Nova address to send to. If omitted a claim link is created.",
        parser=parse_destination,
    ),
):
    """Send balance to another account."""
    manager, network = _open_manager()
    receipt = _unwrap(_run(manager.send(amount, destination, network)))
    target = receipt.claim_url or receipt.to
    _print_ok(receipt.to_dict(), f"Sent {amount} to {target}")


@app.command()
def withdraw(
    amount: Decimal = typer.Argument(help="The amount of balance to withdraw", parser=parse_amount),
    stablecoin: str = typer.Argument(help="Stablecoin to withdraw as (USDA, USDC, USDM, USDT)", parser=parse_stablecoin),
    to: str = typer.Argument(help="Blockchain address to send the stablecoin to"),
    blockchain: str = typer.Argument(help="Blockchain to send the stablecoin on", parser=parse_blockchain),
):
    """Withdraw balance to an external blockchain."""
    manager, network = _open_manager()
    receipt = _unwrap(_run(manager.withdraw(amount, stablecoin, to, blockchain, network)))
    _print_ok(receipt.to_dict(), f"Withdrew {amount} {stablecoin} to {to} via {receipt.deposit_address}")


# ------------------------------------------------------------------
# Envelope commands
# ------------------------------------------------------------------


@app.command()
def sign(
    message: str = typer.Argument(help="Message to sign (UTF-8)"),
):
    """Sign a message with the imported key."""
    manager, _ = _open_manager()
    envelope = _unwrap(manager.sign(message.encode("utf-8")))
    _print_ok({"signature": envelope}, envelope)


@app.command()
def verify(
    message: str = typer.Argument(help="Message that was signed (UTF-8)"),
    signature: str = typer.Argument(help="128-character signature envelope"),
):
    """Verify a signed message and show who signed it."""
    manager, _ = _open_manager()
    signer = _unwrap(manager.verify(message.encode("utf-8"), signature))
    if signer is None:
        if _json_output:
            typer.echo(json.dumps({"status": "ok", "result": {"verified": False}}))
        else:
            err_console.print("[red]Signature not verified[/red]")
        raise typer.Exit(1)
    _print_ok({"verified": True, "address": signer}, f"Signed by {signer}")


# ------------------------------------------------------------------
# config sub-commands
# ------------------------------------------------------------------

config_app = typer.Typer(name="config", help="Manage nova configuration.", no_args_is_help=True)
config_get_app = typer.Typer(help="Get a configuration value.", no_args_is_help=True)
config_set_app = typer.Typer(help="Set a configuration value.", no_args_is_help=True)
config_app.add_typer(config_get_app, name="get")
config_app.add_typer(config_set_app, name="set")
app.add_typer(config_app, name="config")


@config_get_app.command("network")
def config_get_network():
    """Show the configured network."""
    _, network = _open_manager()
    _print_ok({"network": network}, network)


@config_set_app.command("network")
def config_set_network(
    network: str = typer.Argument(help="The network to use", parser=parse_network),
):
    """Switch to the given network."""
    manager, _ = _open_manager()
    manager.store.set(NETWORK_KEY, network)
    _print_ok({"network": network}, f"Set network to {network}")


# ------------------------------------------------------------------
# import / export sub-commands
# ------------------------------------------------------------------

import_app = typer.Typer(name="import", help="Import an existing wallet.", no_args_is_help=True)
export_app = typer.Typer(name="export", help="Export sensitive wallet data.", no_args_is_help=True)
app.add_typer(import_app, name="import")
app.add_typer(export_app, name="export")


def _read_secret_input(direct: str | None, file: Path | None, prompt: str) -> str:
    if direct and file:
        _exit_error(FormatError("provide either a CLI value or --file, not both"))
    if direct:
        value = direct
    elif file:
        try:
            value = file.read_text(encoding="utf-8")
        except OSError:
            value = ""
    else:
        value = console.input(f"[bold]{prompt}: [/bold]", password=True)
    value = value.strip()
    if not value:
        _exit_error(FormatError("no input received"))
    return value


@import_app.command("key")
def import_key(
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Hex private key (32 or 64 hex chars)"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read the hex private key from a file"),
    force: bool = typer.Option(False, "--force", help="Replace an existing key or logged-in session"),
):
    """Import the wallet from a private key."""
    value = _read_secret_input(key, file, "Enter the hex private key to import")
    manager, _ = _open_manager()
    addr = _unwrap(manager.import_key(value, force=force))
    _print_ok({"imported": True, "method": "key", "address": addr}, "Successfully imported wallet")


@import_app.command("phrase")
def import_phrase(
    phrase: Optional[str] = typer.Option(None, "--phrase", "-p", help="Mnemonic seed phrase (12 or 24 words)"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read the seed phrase from a file"),
    force: bool = typer.Option(False, "--force", help="Replace an existing key or logged-in session"),
):
    """Import the wallet from a mnemonic seed phrase."""
    value = _read_secret_input(phrase, file, "Enter the 12 or 24 word seed phrase to import")
    manager, _ = _open_manager()
    addr = _unwrap(manager.import_phrase(value, force=force))
    _print_ok({"imported": True, "method": "phrase", "address": addr}, "Successfully imported wallet")


@export_app.command("key")
def export_key():
    """Print the wallet's private key."""
    manager, _ = _open_manager()
    key = _unwrap(manager.export_key())
    _print_ok({"key": key}, key)


@export_app.command("phrase")
def export_phrase():
    """Print the wallet's mnemonic seed phrase."""
    manager, _ = _open_manager()
    phrase = _unwrap(manager.export_phrase())
    _print_ok({"phrase": phrase}, phrase)


# ------------------------------------------------------------------
# login sub-commands
# ------------------------------------------------------------------

login_app = typer.Typer(name="login", help="Log in with email (two-step flow).", no_args_is_help=True)
app.add_typer(login_app, name="login")


@login_app.command("request")
def login_request(
    email: str = typer.Argument(help="The email to log in with", parser=parse_email),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an imported key or pending login"),
):
    """Send an authentication code to the email address."""
    manager, network = _open_manager()
    _unwrap(_run(manager.handshake.request_login(email, network, force=force)))
    _print_ok(
        {"email": email, "codeSent": True},
        f"Login code sent to {email}. Now run: nova login confirm <CODE>",
    )


@login_app.command("confirm")
def login_confirm(
    code: str = typer.Argument(help="6-character authentication code"),
):
    """Confirm the authentication code and complete login."""
    manager, network = _open_manager()
    identity = _unwrap(_run(manager.handshake.confirm_login(code, network)))
    _print_ok({"email": identity.email, "loggedIn": True}, f"Logged in as {identity.email}")


if __name__ == "__main__":
    app()
