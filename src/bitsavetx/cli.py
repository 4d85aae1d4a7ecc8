"""
bitsavetx/cli.py

Command-line entry point.

Usage:
    bitsavetx preview-deposit 5 4320 --rate 10
    bitsavetx preview-withdrawal 5 --penalty-rate 20
    bitsavetx error-code 106
    bitsavetx track 0x8f3c... --interval 5 --max-attempts 60
"""

import asyncio
import json
import logging

import click

from .calculations import preview_deposit, preview_withdrawal
from .config import NetworkConfig, TrackerConfig, DEFAULT_REWARD_RATE, DEFAULT_PENALTY_RATE
from .errors import get_error_message
from .formatters import format_stx, format_block_height, parse_stx
from .ledger.client import HiroClient
from .tracker import TransactionStatus, TransactionTracker

logger = logging.getLogger("bitsavetx.cli")


def _amount(ctx, param, value: str) -> int:
    try:
        return parse_stx(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def cli(ctx, verbose: bool, as_json: bool):
    """BitSave transaction previews and confirmation tracking."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["json"] = as_json


@cli.command("preview-deposit")
@click.argument("amount", callback=_amount)
@click.argument("lock_blocks", type=click.IntRange(min=0))
@click.option("--rate", type=click.IntRange(min=0), default=DEFAULT_REWARD_RATE, show_default=True,
              help="Reward rate (percent)")
@click.pass_context
def preview_deposit_cmd(ctx, amount: int, lock_blocks: int, rate: int):
    """Preview reward and reputation for depositing AMOUNT STX for LOCK_BLOCKS."""
    preview = preview_deposit(amount, lock_blocks, rate)
    if ctx.obj["json"]:
        click.echo(json.dumps(preview.to_dict()))
        return
    click.echo(f"Deposit:     {format_stx(preview.amount)} STX")
    click.echo(f"Lock:        {format_block_height(preview.lock_blocks)}")
    click.echo(f"Reward:      {format_stx(preview.reward)} STX")
    click.echo(f"At unlock:   {format_stx(preview.total_at_unlock)} STX")
    click.echo(f"Reputation:  {preview.reputation_points} ({preview.reputation_tier})")


@cli.command("preview-withdrawal")
@click.argument("amount", callback=_amount)
@click.option("--penalty-rate", type=click.IntRange(min=0), default=DEFAULT_PENALTY_RATE, show_default=True,
              help="Early withdrawal penalty (percent)")
@click.option("--early/--matured", default=True, show_default=True,
              help="Whether the lock period is still active")
@click.pass_context
def preview_withdrawal_cmd(ctx, amount: int, penalty_rate: int, early: bool):
    """Preview the payout of withdrawing AMOUNT STX."""
    preview = preview_withdrawal(amount, penalty_rate, early=early)
    if ctx.obj["json"]:
        click.echo(json.dumps(preview.to_dict()))
        return
    click.echo(f"Withdrawal:  {format_stx(preview.amount)} STX")
    click.echo(f"Penalty:     {format_stx(preview.penalty)} STX")
    click.echo(f"Payout:      {format_stx(preview.payout)} STX")


@cli.command("error-code")
@click.argument("code", type=int)
def error_code_cmd(code: int):
    """Explain a contract error CODE."""
    click.echo(f"{code}: {get_error_message(code)}")


async def _track(tx_id: str, tracker_config: TrackerConfig, network: NetworkConfig):
    async with HiroClient(network) as client:
        tracker = TransactionTracker(
            client,
            config=tracker_config,
            on_change=lambda state: logger.info(f"State: {state.to_dict()}"),
        )
        async with tracker:
            tracker.track_transaction(tx_id)
            state = await tracker.wait()
        return state, client.explorer_url(tx_id)


@cli.command("track")
@click.argument("tx_id")
@click.option("--interval", type=click.FloatRange(min=0), default=None,
              help="Seconds between status reads")
@click.option("--max-attempts", type=click.IntRange(min=1), default=None,
              help="Status reads before giving up")
@click.option("--network", type=click.Choice(["testnet", "mainnet"]), default=None,
              help="Stacks network (default from BITSAVE_NETWORK)")
@click.pass_context
def track_cmd(ctx, tx_id: str, interval, max_attempts, network):
    """Poll TX_ID until it confirms, fails or times out."""
    tracker_config = TrackerConfig.from_env()
    if interval is not None:
        tracker_config.poll_interval = interval
    if max_attempts is not None:
        tracker_config.max_attempts = max_attempts
    network_config = NetworkConfig.for_network(network) if network else NetworkConfig.from_env()

    state, url = asyncio.run(_track(tx_id, tracker_config, network_config))

    if ctx.obj["json"]:
        click.echo(json.dumps(state.to_dict()))
    elif state.status is TransactionStatus.SUCCESS:
        click.echo(f"Confirmed: {url}")
    else:
        click.echo(f"Failed: {state.error}")

    if state.status is TransactionStatus.ERROR:
        ctx.exit(1)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
