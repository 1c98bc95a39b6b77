"""Testnet reservation commands"""

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from testnet_deploy.deployer.reservation import ReservationService
from testnet_deploy.errors import TndError

console = Console()


def _service(ctx) -> ReservationService:
    return ReservationService.from_config(ctx.obj["config"])


@click.group()
def testnet():
    """Manage testnet reservations"""
    pass


@testnet.command("reserve")
@click.argument("name")
@click.pass_context
def reserve_testnet(ctx, name):
    """Reserve a testnet"""
    try:
        reservation = _service(ctx).reserve(name)
        console.print(f"[green]✓[/green] Testnet reserved: {escape(reservation.testnet)}")

    except TndError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()


@testnet.command("release")
@click.argument("name")
@click.option("--force", is_flag=True, help="Release even without a reservation record")
@click.pass_context
def release_testnet(ctx, name, force):
    """Release a reserved testnet"""
    try:
        _service(ctx).release(name, force=force)
        console.print(f"[green]✓[/green] Testnet released: {escape(name)}")

    except TndError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()


@testnet.command("adopt")
@click.argument("name")
@click.pass_context
def adopt_testnet(ctx, name):
    """Record a testnet reserved outside this tool"""
    try:
        reservation = _service(ctx).adopt(name)
        console.print(f"[green]✓[/green] Tracking {escape(reservation.testnet)} ({reservation.state.value})")

    except TndError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()


@testnet.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include released testnets")
@click.option("--format", type=click.Choice(["table", "json", "yaml"]), default="table")
@click.pass_context
def list_testnets(ctx, show_all, format):
    """List reservations"""
    try:
        reservations = _service(ctx).ledger.list(active_only=not show_all)

        if format == "json":
            console.print_json(data=[r.to_dict() for r in reservations])
        elif format == "yaml":
            console.print(yaml.safe_dump([r.to_dict() for r in reservations], default_flow_style=False), markup=False)
        else:
            table = Table(title="Reservations")
            table.add_column("Testnet", style="cyan")
            table.add_column("State", style="green")
            table.add_column("Owner")
            table.add_column("Reserved At")
            table.add_column("Updated At")

            for r in reservations:
                state = r.state.value + (" (external)" if r.external else "")
                table.add_row(escape(r.testnet), state, escape(r.owner), r.reserved_at, r.updated_at)

            console.print(table)

    except TndError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()


@testnet.command("show")
@click.argument("name")
@click.pass_context
def show_testnet(ctx, name):
    """Show a reservation"""
    try:
        reservation = _service(ctx).ledger.get(name)
        if reservation is None:
            console.print(f"[yellow]No reservation recorded for {escape(name)}[/yellow]")
            raise click.Abort()

        console.print(yaml.safe_dump(reservation.to_dict(), default_flow_style=False), markup=False)

    except TndError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()


@testnet.command("recover")
@click.argument("name")
@click.pass_context
def recover_testnet(ctx, name):
    """Mark an interrupted deploy as failed so the testnet can be redeployed"""
    try:
        reservation = _service(ctx).recover(name)
        console.print(f"[green]✓[/green] {escape(reservation.testnet)} is {reservation.state.value}")

    except TndError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()
