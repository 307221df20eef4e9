"""nado-mm CLI."""

import asyncio
import logging
import sys
from decimal import Decimal, InvalidOperation

import click
from pydantic import ValidationError

from nadomm.app import MarketMakerApp, build_client
from nadomm.config_loader import ConfigurationError
from nadomm.constants import LOG_FORMAT
from nadomm.quoting.pricing import compute_quote_prices


@click.group()
def cli():
    """nado-mm Command Line Interface."""
    pass


@cli.command()
@click.option(
    "--config",
    type=click.Path(exists=True),
    default="config/config.yaml",
    help="Path to configuration file",
)
@click.option("--dry-run", is_flag=True, help="Quote against the in-memory exchange")
@click.option(
    "--exchange", type=click.Choice(["nado", "sim"]), help="Override exchange mode"
)
@click.option(
    "--feed", type=click.Choice(["polling", "streaming", "none"]), help="Override price feed"
)
def run(config, dry_run, exchange, feed):
    """Start the quoting bot."""
    app = MarketMakerApp(config_path=config, dry_run=dry_run, exchange_mode=exchange, feed_mode=feed)
    try:
        app.load()
    except ConfigurationError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)
    except ValidationError as e:
        click.echo(f"ERROR: Invalid configuration ({e.error_count()} errors):\n{e}", err=True)
        sys.exit(1)

    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        pass
    except Exception as e:
        click.echo(f"Fatal error: {e}", err=True)
        import traceback

        traceback.print_exc()
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    type=click.Path(exists=True),
    default="config/config.yaml",
    help="Path to configuration file",
)
def smoke_test(config):
    """Run a smoke test (initialize components and exit)."""
    try:
        app = MarketMakerApp(config_path=config, dry_run=True)
        asyncio.run(app.initialize())
        click.echo("Smoke test passed: Components initialized successfully.")
    except Exception as e:
        click.echo(f"Smoke test failed: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    type=click.Path(exists=True),
    default="config/config.yaml",
    help="Path to configuration file",
)
@click.option("--dry-run", is_flag=True, help="Read prices from the in-memory exchange")
def prices(config, dry_run):
    """Print the latest bid/ask/mid and account balance once."""
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)
    app = MarketMakerApp(config_path=config, dry_run=dry_run)
    try:
        cfg = app.load()
    except ConfigurationError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)
    except ValidationError as e:
        click.echo(f"ERROR: Invalid configuration ({e.error_count()} errors):\n{e}", err=True)
        sys.exit(1)

    async def _fetch():
        client = build_client(cfg)
        await client.connect()
        try:
            latest = await client.get_latest_prices(cfg.quoting.product_ids)
            balance = await client.get_balance()
        finally:
            await client.disconnect()
        return client.address, latest, balance

    address, latest, balance = asyncio.run(_fetch())
    click.echo(f"Account: {address}  Balance: {balance:.2f}")
    for mp in latest:
        click.echo(f"  product {mp.product_id}: bid={mp.bid} ask={mp.ask} mid={mp.mid}")


@cli.command()
@click.argument("mid")
@click.option("--spread", default="0.00015", help="Spread fraction per side")
@click.option("--decimals", default=6, help="Price precision")
def quote(mid, spread, decimals):
    """Preview the buy/sell prices quoted around MID."""
    try:
        prices = compute_quote_prices(Decimal(mid), Decimal(spread), decimals)
    except (InvalidOperation, ValueError) as e:
        click.echo(f"Invalid input: {e}", err=True)
        sys.exit(2)
    click.echo(f"buy:  {prices.buy}")
    click.echo(f"sell: {prices.sell}")


if __name__ == "__main__":
    cli()

# Alias for __main__.py
main = cli
