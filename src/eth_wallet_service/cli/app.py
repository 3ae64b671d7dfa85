"""CLI for eth-wallet-service - run the API or use the wallet from the terminal."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from eth_wallet_service.config import ServiceConfig, load_config
from eth_wallet_service.wallet.errors import WalletError
from eth_wallet_service.wallet.manager import WalletService

app = typer.Typer(
    name="eth-wallet-service",
    help="Ethereum wallet service: encrypted keys, balances, history and transfers.",
    no_args_is_help=True,
)
console = Console()

_config_path: Path | None = None


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        console.print(f"eth-wallet-service {version('eth-wallet-service')}")
        raise typer.Exit()


@app.callback()
def main(
    config: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a wallet-service.yaml file",
        envvar="WALLET_SERVICE_CONFIG",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Ethereum wallet service: encrypted keys, balances, history and transfers."""
    global _config_path
    _config_path = config
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _load() -> ServiceConfig:
    try:
        return load_config(_config_path)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def _service() -> WalletService:
    return WalletService.from_config(_load())


def _fail(error: WalletError) -> None:
    console.print(f"[red]{error.message}[/red]")
    raise typer.Exit(1)


# ------------------------------------------------------------------
# serve / health
# ------------------------------------------------------------------


@app.command()
def serve(
    port: int = typer.Option(None, "--port", "-p", help="Port to serve on (default: from config)"),
    host: str = typer.Option(None, "--host", help="Host to bind to (default: from config)"),
):
    """Launch the HTTP API."""
    from eth_wallet_service.api.server import run_server

    config = _load()
    bind_host = host or config.server.host
    bind_port = port or config.server.port
    console.print(f"[bold green]Starting wallet API at http://{bind_host}:{bind_port}[/bold green]")
    run_server(config, host=bind_host, port=bind_port)


@app.command()
def health():
    """Show configured RPC endpoints and which one answers first."""
    config = _load()
    service = WalletService.from_config(config)

    table = Table(title="RPC Endpoints")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Endpoint", style="cyan")
    for i, url in enumerate(config.rpc.candidates(), 1):
        table.add_row(str(i), url)
    console.print(table)

    try:
        client = service.selector.select(service.candidates, service.preferred)
    except WalletError as e:
        _fail(e)
    console.print(f"Live endpoint: [green]{client.endpoint}[/green]")


# ------------------------------------------------------------------
# wallet sub-commands
# ------------------------------------------------------------------

wallet_app = typer.Typer(
    name="wallet",
    help="Create wallets, query balances and history, send ETH.",
    no_args_is_help=True,
)
app.add_typer(wallet_app, name="wallet")


@wallet_app.command("create")
def wallet_create(
    show_key: bool = typer.Option(
        False, "--show-key", help="Print the private key (it is not kept after exit)"
    ),
):
    """Generate a new Ethereum key pair."""
    service = _service()
    record = service.create_wallet()

    lines = [
        f"Address:    [cyan]{record.address}[/cyan]",
        f"Public key: [dim]{record.public_key}[/dim]",
        f"Created:    {record.created_at.isoformat()}",
    ]
    if show_key:
        key = service.cipher.decrypt(record.encrypted_private_key)
        lines.append(f"\n[bold yellow]Private key:[/bold yellow] {key}")
        lines.append("[dim]Store it somewhere safe. It is not saved by this command.[/dim]")
    else:
        lines.append(
            "\n[bold yellow]Warning:[/bold yellow] this wallet only exists until the command exits. "
            "Without --show-key its private key is discarded, and funds sent to this "
            "address will be unrecoverable."
        )
    console.print(Panel("\n".join(lines), title="Wallet Created"))


@wallet_app.command("balance")
def wallet_balance(
    address: str = typer.Argument(help="Address to query (0x...)"),
):
    """Show the ETH balance of an address."""
    try:
        result = _service().get_balance(address)
    except WalletError as e:
        _fail(e)
    console.print(f"[bold]{result.address}:[/bold] {result.balance} ETH")
    console.print(f"[dim]{result.balance_wei} wei[/dim]")


@wallet_app.command("history")
def wallet_history(
    address: str = typer.Argument(help="Address to query (0x...)"),
):
    """Show transactions touching an address in the most recent blocks."""
    try:
        transactions = _service().get_transactions(address)
    except WalletError as e:
        _fail(e)

    if not transactions:
        console.print("[dim]No transactions found in recent blocks.[/dim]")
        return

    table = Table(title=f"Recent Transactions: {address}")
    table.add_column("Block", justify="right")
    table.add_column("Hash", style="cyan")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Value (ETH)", justify="right")
    for tx in transactions:
        table.add_row(
            str(tx.block_number),
            tx.hash,
            tx.from_address,
            tx.to_address or "-",
            tx.value,
        )
    console.print(table)


@wallet_app.command("send")
def wallet_send(
    amount: str = typer.Argument(help="Amount to send in ETH (e.g. 0.01)"),
    to: str = typer.Option(..., "--to", "-t", help="Recipient address (0x...)"),
    sender: str = typer.Option(..., "--from", "-f", help="Sender address (0x...)"),
):
    """Send ETH. Prompts for the sender's private key."""
    console.print(f"\n[bold]Send {amount} ETH[/bold]")
    console.print(f"  From: {sender}")
    console.print(f"  To:   {to}\n")

    typer.confirm("Confirm this transaction?", abort=True)
    private_key = typer.prompt("Private key", hide_input=True)

    try:
        outcome = _service().send(sender, to, amount, private_key.strip())
    except WalletError as e:
        console.print(f"[red]Transaction failed: {e.message}[/red]")
        raise typer.Exit(1)

    console.print(Panel(
        f"[bold green]Transaction sent![/bold green]\n\n"
        f"Tx: [cyan]{outcome.transaction_hash}[/cyan]\n"
        f"Explorer: https://etherscan.io/tx/{outcome.transaction_hash}",
        title="Transaction Sent",
    ))
