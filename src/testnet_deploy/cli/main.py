#!/usr/bin/env python3
"""testnet-deploy CLI - Main entry point"""

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from testnet_deploy.config.manager import DEFAULT_CONFIG_PATH, ConfigManager
from testnet_deploy.errors import ConfigError
from testnet_deploy.observability.logging import setup_logging

console = Console()


@click.group()
@click.option("--config", type=click.Path(dir_okay=False), help="Config file path")
@click.option(
    "--repo-root",
    type=click.Path(file_okay=False),
    envvar="TND_REPO_ROOT",
    help="Repository checkout containing the deploy tooling",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx, config, repo_root, verbose):
    """testnet-deploy - reserve, containerize and deploy static testnets"""
    ctx.ensure_object(dict)

    config_path = Path(config) if config else DEFAULT_CONFIG_PATH
    try:
        cfg = ConfigManager(config_path).load()
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()

    if repo_root:
        cfg["repo_root"] = repo_root

    level = "debug" if verbose else cfg.get("logging", {}).get("level", "info")
    try:
        setup_logging(level)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()

    ctx.obj["config"] = cfg
    ctx.obj["verbose"] = verbose


@cli.command()
def version():
    """Show version information"""
    from testnet_deploy import __version__

    console.print(f"testnet-deploy version {__version__}")


# Import subcommands
from testnet_deploy.cli import deploy, testnet, vector, verify

cli.add_command(testnet.testnet)
cli.add_command(deploy.deploy)
cli.add_command(deploy.up)
cli.add_command(verify.verify)
cli.add_command(vector.vector)


if __name__ == "__main__":
    cli()
