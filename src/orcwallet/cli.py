"""
ORC Wallet CLI - Validate keys, inspect UTXOs and fees, broadcast transactions.
"""

from __future__ import annotations

import asyncio
import sys

import typer
from loguru import logger

from orcwallet.config import get_settings
from orcwallet.errors import WalletError
from orcwallet.fees import FeeEstimator
from orcwallet.formatting import format_address, format_balance
from orcwallet.mempool import MempoolClient, network_for_address
from orcwallet.models import UTXO, BalanceInfo
from orcwallet.utxo import UTXOSelector
from orcwallet.vault import PrivateKeyVault

app = typer.Typer(
    name="orc-wallet",
    help="ORC wallet core utilities",
    add_completion=False,
)

NETWORK_HELP = "Explorer network: mainnet | testnet | testnet4 | regtest"


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


@app.command()
def validate_key(
    key: str = typer.Argument(..., help="WIF or 64 character hex private key"),
    log_level: str = typer.Option("WARNING", "--log-level", "-l"),
) -> None:
    """Check whether a private key has an accepted format."""
    setup_logging(log_level)

    if PrivateKeyVault.validate(key):
        typer.echo("valid")
    else:
        typer.echo("invalid")
        raise typer.Exit(1)


@app.command()
def fee(
    network: str = typer.Option("mainnet", "--network", "-n", help=NETWORK_HELP),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Show the recommended fee rate (sat/vB) for confirmation within about an hour."""
    setup_logging(log_level)
    rate = asyncio.run(_estimate_fee(network))
    typer.echo(f"{rate} sat/vB")


async def _estimate_fee(network: str) -> int:
    settings = get_settings()
    client = MempoolClient(settings)
    try:
        return await FeeEstimator(client, settings.default_fee_rate).estimate(network)
    finally:
        await client.close()


@app.command()
def utxos(
    address: str = typer.Argument(..., help="Bitcoin address"),
    min_value: int | None = typer.Option(
        None, "--min-value", "-m", help="Minimum value in sats for selection"
    ),
    confirmed_only: bool = typer.Option(False, "--confirmed-only", help="Skip unconfirmed"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """List spendable outputs and the one first-fit selection would use."""
    setup_logging(log_level)

    try:
        outputs, selected = asyncio.run(_fetch_utxos(address, min_value, confirmed_only))
    except WalletError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e

    typer.echo(f"\nUTXOs for {format_address(address)} ({network_for_address(address)}):")
    for utxo in outputs:
        marker = "*" if utxo is selected else " "
        status = "confirmed" if utxo.confirmed else "unconfirmed"
        typer.echo(f" {marker} {utxo.txid}:{utxo.vout}  {utxo.value:>12} sats  {status}")
    if selected is None:
        typer.echo("\nNo output meets the minimum value")
    else:
        typer.echo(f"\nSelected: {selected.txid}:{selected.vout}")


async def _fetch_utxos(
    address: str, min_value: int | None, confirmed_only: bool
) -> tuple[list[UTXO], UTXO | None]:
    settings = get_settings()
    client = MempoolClient(settings)
    try:
        selector = UTXOSelector(
            client, min_value=settings.min_utxo_value, retry_delay=settings.utxo_retry_delay
        )
        outputs = await selector.fetch_spendable(address)
        selected = selector.select_one(outputs, min_value=min_value, confirmed_only=confirmed_only)
        return outputs, selected
    finally:
        await client.close()


@app.command()
def balance(
    address: str = typer.Argument(..., help="Bitcoin address"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Show the confirmed and unconfirmed balance of an address."""
    setup_logging(log_level)

    try:
        info = asyncio.run(_fetch_balance(address))
    except WalletError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e

    typer.echo(f"Confirmed:   {format_balance(info.confirmed)} BTC")
    typer.echo(f"Unconfirmed: {format_balance(info.unconfirmed)} BTC")
    typer.echo(f"Total:       {format_balance(info.total)} BTC")


async def _fetch_balance(address: str) -> BalanceInfo:
    client = MempoolClient(get_settings())
    try:
        return await client.get_address_balance(address)
    finally:
        await client.close()


@app.command()
def broadcast(
    tx_hex: str = typer.Argument(..., help="Signed raw transaction (hex)"),
    network: str = typer.Option("mainnet", "--network", "-n", help=NETWORK_HELP),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Broadcast a signed raw transaction through the explorer."""
    setup_logging(log_level)

    try:
        txid = asyncio.run(_broadcast(tx_hex, network))
    except WalletError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e

    typer.echo(txid)


async def _broadcast(tx_hex: str, network: str) -> str:
    client = MempoolClient(get_settings())
    try:
        return await client.broadcast_transaction(tx_hex, network)
    finally:
        await client.close()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
