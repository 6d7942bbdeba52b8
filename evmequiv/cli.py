"""
evmequiv CLI

Command-line interface for computing code blob hashes and checking deployments
against a node.

Usage:
    evmequiv hash <bytecode|@file> [--wrap]
    evmequiv [--rpc-url URL] [--config FILE] verify <address> <bytecode|@file>
    evmequiv [--rpc-url URL] [--config FILE] verify-absent <address>
    evmequiv [--rpc-url URL] [--config FILE] gas-report <tx_hash>...

Exit codes for verify / verify-absent: 0 match, 1 mismatch, 2 node or input error.
"""

import asyncio
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import EvmEquivConfig, load_config
from .crypto.hashing import blob_hash_hex
from .exceptions import ChainClientError, EvmEquivException
from .gas_costs import GasCostAccumulator
from .logger import configure_logging
from .rpc.client import JsonRpcClient
from .verifier import DeploymentVerifier, VerificationResult


EXIT_MATCH = 0
EXIT_MISMATCH = 1
EXIT_ERROR = 2


def read_bytecode(value: str) -> str:
    """Bytecode given inline as hex, or as @path to a file holding hex."""
    if value.startswith("@"):
        path = Path(value[1:])
        try:
            return path.read_text().strip()
        except OSError as e:
            raise click.BadParameter(f"Cannot read {path}: {e}")
    return value.strip()


def _load(ctx: click.Context) -> EvmEquivConfig:
    try:
        config = load_config(ctx.obj.get("config_path"))
    except EvmEquivException as e:
        raise click.ClickException(str(e))
    if rpc_url := ctx.obj.get("rpc_url"):
        config.rpc.url = rpc_url
    log_file = Path(config.logging.file) if config.logging.file else None
    configure_logging(
        log_level=config.logging.level,
        output=config.logging.output,
        log_file=log_file,
        file_output=True if log_file else None,
    )
    return config


def _report(result: VerificationResult) -> None:
    if result.matched:
        click.echo(click.style("✓ " + result.describe(), fg="green"))
    else:
        click.echo(click.style("✗ " + result.describe(), fg="red"), err=True)


async def _run_verification(config: EvmEquivConfig, address: str, bytecode: Optional[str]) -> VerificationResult:
    async with JsonRpcClient(config.rpc.url, timeout=config.rpc.timeout) as client:
        verifier = DeploymentVerifier(
            client,
            storage_address=config.verification.storage_address,
            length_policy=config.verification.length_policy,
        )
        if bytecode is None:
            return await verifier.verify_not_deployed(address)
        return await verifier.verify_deployed(address, bytecode)


def _verify(ctx: click.Context, address: str, bytecode: Optional[str]) -> None:
    config = _load(ctx)
    try:
        result = asyncio.run(_run_verification(config, address, bytecode))
    except ChainClientError as e:
        click.echo(click.style(f"Node error: {e}", fg="red"), err=True)
        ctx.exit(EXIT_ERROR)
    except (EvmEquivException, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        ctx.exit(EXIT_ERROR)
    _report(result)
    ctx.exit(EXIT_MATCH if result.matched else EXIT_MISMATCH)


@click.group()
@click.version_option(version=__version__, prog_name="evmequiv")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Path to evmequiv.toml")
@click.option("--rpc-url", help="JSON-RPC endpoint of the node")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], rpc_url: Optional[str]):
    """Code blob hashing and deployment verification."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["rpc_url"] = rpc_url


@cli.command("hash")
@click.argument("bytecode")
@click.option("--wrap", is_flag=True, help="Encode lengths above 65535 modulo 65536")
def hash_command(bytecode: str, wrap: bool):
    """Print the versioned blob hash of BYTECODE."""
    try:
        click.echo(blob_hash_hex(read_bytecode(bytecode), allow_overflow=wrap))
    except ValueError as e:
        raise click.ClickException(str(e))


@cli.command("verify")
@click.argument("address")
@click.argument("bytecode")
@click.pass_context
def verify_command(ctx: click.Context, address: str, bytecode: str):
    """Check that ADDRESS was deployed with BYTECODE."""
    _verify(ctx, address, read_bytecode(bytecode))


@cli.command("verify-absent")
@click.argument("address")
@click.pass_context
def verify_absent_command(ctx: click.Context, address: str):
    """Check that no code was ever stored for ADDRESS."""
    _verify(ctx, address, None)


@cli.command("gas-report")
@click.argument("tx_hashes", nargs=-1, required=True)
@click.pass_context
def gas_report_command(ctx: click.Context, tx_hashes):
    """Aggregate opcode cost logs of TX_HASHES."""
    config = _load(ctx)
    accumulator = GasCostAccumulator()

    async def collect():
        async with JsonRpcClient(config.rpc.url, timeout=config.rpc.timeout) as client:
            for tx_hash in tx_hashes:
                await accumulator.collect(client, tx_hash)

    try:
        asyncio.run(collect())
    except EvmEquivException as e:
        click.echo(click.style(f"Node error: {e}", fg="red"), err=True)
        ctx.exit(EXIT_ERROR)
    click.echo(accumulator.report(), nl=False)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
