"""
tokenvest command-line interface.

Commands:
- deploy: run the genesis Orchestrator for an allocation file
- timeline: show how much each bucket has unlocked at given timestamps
- network: show a deployment network profile
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

import click
from rich import box
from rich.console import Console
from rich.table import Table

from tokenvest.core import config
from tokenvest.core.config import ConfigurationError
from tokenvest.core.exceptions import VestingError
from tokenvest.core.logging_config import setup_logging
from tokenvest.vesting.allocation import format_units, load_allocation
from tokenvest.vesting.orchestrator import Orchestrator

logger = logging.getLogger(__name__)
console = Console()


def _cli_fail(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.error("CLI error: %s", exc)
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _format_ts(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


@click.group()
@click.option("--log-level", default=config.LOG_LEVEL, show_default=True, help="Logging level")
@click.pass_context
def cli(ctx: click.Context, log_level: str):
    """Token vesting ledger tools."""
    ctx.ensure_object(dict)
    setup_logging(
        name="tokenvest",
        log_file=config.LOG_FILE,
        level=log_level,
        environment=config.ENVIRONMENT,
    )


@cli.command("deploy")
@click.argument("allocation_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--minter", help="Address that receives the minter role after genesis")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def deploy(allocation_file: str, minter: str | None, as_json: bool):
    """Mint the genesis supply into one vesting escrow per bucket."""
    try:
        allocation = load_allocation(allocation_file)
        minter = minter or allocation.minter
        if not minter:
            raise click.UsageError("--minter is required when the allocation file has none")

        orchestrator = Orchestrator(allocation.schedules, minter)
        orchestrator.mint_and_transfer_tokens()
    except VestingError as exc:
        _cli_fail(exc)
        return

    rows = []
    for bucket in allocation.buckets:
        vesting = orchestrator.vesting_for(bucket.schedule.beneficiary)
        rows.append({
            "bucket": bucket.name,
            "beneficiary": bucket.schedule.beneficiary,
            "vesting": vesting.address,
            "total": bucket.schedule.total_amount,
            "balance": orchestrator.token.balance_of(vesting.address),
        })

    if as_json:
        click.echo(json.dumps({
            "token": orchestrator.token.address,
            "total_supply": orchestrator.token.total_supply,
            "minter": orchestrator.minter,
            "vestings": rows,
        }, indent=2))
        return

    table = Table(title=f"{orchestrator.token.symbol} genesis", box=box.SIMPLE)
    table.add_column("Bucket", style="cyan")
    table.add_column("Vesting", overflow="fold")
    table.add_column("Total", justify="right", style="green")
    for row in rows:
        table.add_row(row["bucket"], row["vesting"], format_units(row["total"], allocation.decimals))
    console.print(table)
    console.print(
        f"Token [bold]{orchestrator.token.address}[/] "
        f"total supply {format_units(orchestrator.token.total_supply, allocation.decimals)}"
    )


@cli.command("timeline")
@click.argument("allocation_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--at", "timestamps", type=int, multiple=True, help="Unix timestamp (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def timeline(allocation_file: str, timestamps: tuple[int, ...], as_json: bool):
    """Show the unlocked amount of every bucket at the given timestamps."""
    try:
        allocation = load_allocation(allocation_file)
    except VestingError as exc:
        _cli_fail(exc)
        return

    points = sorted(timestamps) or [allocation.listing_timestamp]
    result = {
        bucket.name: {str(ts): bucket.schedule.unlocked_amount(ts) for ts in points}
        for bucket in allocation.buckets
    }

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    table = Table(title="Unlocked tokens", box=box.SIMPLE)
    table.add_column("Bucket", style="cyan")
    for ts in points:
        table.add_column(_format_ts(ts), justify="right")
    for bucket in allocation.buckets:
        table.add_row(
            bucket.name,
            *(format_units(result[bucket.name][str(ts)], allocation.decimals) for ts in points),
        )
    console.print(table)


@cli.command("network")
@click.argument("name", required=False)
def network(name: str | None):
    """Show the deployment profile of a network."""
    try:
        profile = config.get_network_profile(name)
    except ConfigurationError as exc:
        _cli_fail(exc)
        return

    table = Table(title=f"Network: {profile.network.value}", box=box.SIMPLE)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("chain id", str(profile.chain_id))
    table.add_row("gas price", str(profile.gas_price))
    table.add_row("gas limit", str(profile.gas_limit))
    console.print(table)


def main():
    return cli(obj={})


if __name__ == "__main__":
    sys.exit(main() or 0)
