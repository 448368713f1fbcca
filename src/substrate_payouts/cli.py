"""CLI entry point for substrate payouts."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Awaitable, Callable, TypeVar

import click

from substrate_payouts.config import load_config, parse_stashes, read_suri
from substrate_payouts.errors import ConfigError, PayoutsError
from substrate_payouts.models.config import PayoutsConfig, SubmissionPolicy
from substrate_payouts.runner import PayoutRunner
from substrate_payouts.substrate.gateway import SubstrateLedgerGateway
from substrate_payouts.substrate.keys import derive_signer

T = TypeVar("T")


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _load(ctx: click.Context, **flags) -> PayoutsConfig:
    """Config file + env, then any flag given on the command line.

    Flags given to the subcommand win over the same flags given to the group.
    """
    try:
        cfg = load_config(ctx.obj["config_path"])
    except ConfigError as exc:
        _fail(str(exc))

    overrides = dict(ctx.obj.get("flags", {}))
    overrides.update({k: v for k, v in flags.items() if v is not None and v != ()})

    if overrides.get("ws"):
        cfg.ws = overrides["ws"]
    if overrides.get("stashes"):
        cfg.stashes = list(overrides["stashes"])
    if overrides.get("stashes_file"):
        cfg.stashes_file = overrides["stashes_file"]
    if overrides.get("era_depth") is not None:
        cfg.era_depth = overrides["era_depth"]
    if overrides.get("suri_file"):
        cfg.suri_file = overrides["suri_file"]
    if overrides.get("on_failure"):
        cfg.on_failure = SubmissionPolicy(overrides["on_failure"])
    if overrides.get("portion") is not None:
        cfg.portion = overrides["portion"]
    if ctx.obj["verbose"]:
        cfg.log.verbose = True

    logging.getLogger().setLevel(cfg.log.effective_level)

    if not cfg.ws:
        _fail("No endpoint configured. Pass --ws or set PAYOUTS_WS.")
    return cfg


def _stashes(cfg: PayoutsConfig) -> list[str]:
    try:
        return parse_stashes(cfg.stashes, cfg.stashes_file)
    except ConfigError as exc:
        _fail(str(exc))


def _run(cfg: PayoutsConfig, work: Callable[[PayoutRunner], Awaitable[T]]) -> T:
    """Connect, run ``work`` against a PayoutRunner, always disconnect."""

    async def _main() -> T:
        gateway = SubstrateLedgerGateway(cfg.ws, cfg.ss58_format, cfg.call_timeout)
        await gateway.connect()
        try:
            return await work(PayoutRunner(gateway, cfg))
        finally:
            await gateway.close()

    try:
        return asyncio.run(_main())
    except PayoutsError as exc:
        _fail(str(exc))


def _chain_options(f):
    f = click.option("--era-depth", "-e", type=int, default=None,
                     help="Eras before the last claimed era to re-check")(f)
    f = click.option("--stashes-file", "--sf", default=None,
                     help="Path to .json file containing an array of stash addresses")(f)
    f = click.option("--stashes", "-s", multiple=True,
                     help="Stash address to check (repeatable)")(f)
    f = click.option("--ws", "-w", default=None,
                     help="The API endpoint to connect to, e.g. wss://kusama-rpc.polkadot.io")(f)
    return f


def _collect_options(f):
    f = click.option("--on-failure", type=click.Choice([p.value for p in SubmissionPolicy]),
                     default=None, help="Stop at the first failed tx, or keep going")(f)
    f = click.option("--suri-file", "-k", "--kf", default=None,
                     help="Path to .txt file containing private key URI")(f)
    return f


@click.group(invoke_without_command=True)
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@_chain_options
@_collect_options
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    verbose: bool,
    ws: str | None,
    stashes: tuple[str, ...],
    stashes_file: str | None,
    era_depth: int | None,
    suri_file: str | None,
    on_failure: str | None,
) -> None:
    """payouts - claim pending staking rewards on Substrate chains.

    Without a command, runs ``collect`` with the options given here.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose
    ctx.obj["flags"] = {
        k: v for k, v in dict(
            ws=ws, stashes=stashes, stashes_file=stashes_file, era_depth=era_depth,
            suri_file=suri_file, on_failure=on_failure,
        ).items() if v is not None and v != ()
    }

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if ctx.invoked_subcommand is None:
        ctx.invoke(collect)


# ── Payouts ────────────────────────────────────────────


@cli.command()
@_chain_options
@_collect_options
@click.pass_context
def collect(
    ctx: click.Context,
    ws: str | None,
    stashes: tuple[str, ...],
    stashes_file: str | None,
    era_depth: int | None,
    suri_file: str | None,
    on_failure: str | None,
) -> None:
    """Claim all pending payouts for the given stashes (default)."""
    cfg = _load(
        ctx, ws=ws, stashes=stashes, stashes_file=stashes_file,
        era_depth=era_depth, suri_file=suri_file, on_failure=on_failure,
    )
    if not cfg.suri_file:
        _fail("No suri file configured. Pass --suri-file or set PAYOUTS_SURI_FILE.")

    try:
        signer = derive_signer(read_suri(cfg.suri_file))
    except PayoutsError as exc:
        _fail(str(exc))
    addresses = _stashes(cfg)

    report = _run(cfg, lambda runner: runner.collect_payouts(addresses, signer))

    if not report.batches:
        click.echo("No payouts to claim.")
        return
    click.echo(
        f"Sent {report.attempted}/{len(report.batches)} transactions "
        f"({len(report.operations)} payouts): "
        f"{report.succeeded} succeeded, {report.failed} failed"
    )
    if report.failed:
        sys.exit(1)


@cli.command("ls")
@_chain_options
@click.pass_context
def ls(
    ctx: click.Context,
    ws: str | None,
    stashes: tuple[str, ...],
    stashes_file: str | None,
    era_depth: int | None,
) -> None:
    """List pending payouts without submitting anything."""
    cfg = _load(ctx, ws=ws, stashes=stashes, stashes_file=stashes_file, era_depth=era_depth)
    addresses = _stashes(cfg)

    operations = _run(cfg, lambda runner: runner.list_pending_payouts(addresses))

    if not operations:
        click.echo("No pending payouts.")
        return
    for op in operations:
        click.echo(op.describe())
    click.echo(f"Total of {len(operations)} unclaimed payouts.")


@cli.command("ls-nominators")
@_chain_options
@click.option("--portion", "-p", type=click.FloatRange(0, 1), default=None,
                help="Fraction of the 256 rewarded nominator slots to keep")
@click.pass_context
def ls_nominators(
    ctx: click.Context,
    ws: str | None,
    stashes: tuple[str, ...],
    stashes_file: str | None,
    era_depth: int | None,
    portion: float | None,
) -> None:
    """List the smallest nominators of each validator beyond a cut-off."""
    cfg = _load(ctx, ws=ws, stashes=stashes, stashes_file=stashes_file, portion=portion)
    addresses = _stashes(cfg)

    to_kick = _run(cfg, lambda runner: runner.list_lowest_nominators(addresses))

    for stash, backers in to_kick.items():
        click.echo(f"Nominations to remove from validator {stash}: {len(backers)}")
        for backer in backers:
            click.echo(f"  {backer.nominator} {backer.active}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
