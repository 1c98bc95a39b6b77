"""Verification commands"""

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from testnet_deploy.api.client import NodeStatusClient
from testnet_deploy.deployer.container import ContainerWrapper
from testnet_deploy.deployer.host import check_host, check_prerequisites, in_container
from testnet_deploy.errors import TndError
from testnet_deploy.testnet.inventory import DEFAULT_PATH_TEMPLATE, load_inventory

console = Console()


@click.group()
def verify():
    """Verify the host and deployed testnets"""
    pass


@verify.command()
@click.pass_context
def host(ctx):
    """Verify this host can run the deploy recipe"""
    config = ctx.obj["config"]
    console.print("[bold]Checking host prerequisites...[/bold]\n")

    all_passed = True

    try:
        system = check_host()
        console.print(f"[green]✓[/green] {escape(str(system))} host")
    except TndError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        all_passed = False

    container = ContainerWrapper.from_config(config)
    if in_container():
        console.print("[green]✓[/green] Running inside the build container")
        tools = [config["deploy"]["bazel"]]
    else:
        tools = ["docker"] if container.enabled else [config["deploy"]["bazel"]]

    for tool in tools:
        if check_prerequisites([tool]):
            console.print(f"[red]✗[/red] {escape(tool)} not found")
            all_passed = False
        else:
            console.print(f"[green]✓[/green] {escape(tool)} found")

    try:
        container.ensure_available()
        if container.active:
            console.print(f"[green]✓[/green] Container script found: {escape(str(container.script_path))}")
    except TndError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        all_passed = False

    if all_passed:
        console.print("\n[green]✅ Host is ready[/green]")
    else:
        console.print("\n[yellow]⚠ Some checks failed[/yellow]")
        raise click.Abort()


@verify.command()
@click.argument("name")
@click.pass_context
def nodes(ctx, name):
    """Check the status endpoint of every node of a testnet"""
    config = ctx.obj["config"]
    health_config = config.get("health", {})

    try:
        inventory = load_inventory(
            Path(config.get("repo_root", ".")),
            name,
            config.get("inventory", {}).get("path", DEFAULT_PATH_TEMPLATE),
        )
    except TndError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()

    client = NodeStatusClient(
        port=int(health_config.get("port", 8080)),
        path=health_config.get("path", "/api/v2/status"),
        timeout=float(health_config.get("timeout", 5)),
    )
    results = client.check_all(inventory.nodes)

    table = Table(title=f"Node Health: {escape(inventory.testnet)}")
    table.add_column("Node", style="cyan")
    table.add_column("Subnet")
    table.add_column("Status")
    table.add_column("Error", style="dim")

    subnets = {node.name: node.subnet or "" for node in inventory.nodes}
    for result in results:
        status = "[green]✓[/green]" if result.healthy else "[red]✗[/red]"
        table.add_row(
            escape(result.name),
            escape(subnets.get(result.name, "")),
            status,
            escape(result.error or ""),
        )

    console.print(table)

    unhealthy = [r for r in results if not r.healthy]
    if unhealthy:
        console.print(f"\n[yellow]⚠ {len(unhealthy)} of {len(results)} nodes unhealthy[/yellow]")
        raise click.Abort()

    console.print(f"\n[green]✅ All {len(results)} nodes healthy[/green]")
