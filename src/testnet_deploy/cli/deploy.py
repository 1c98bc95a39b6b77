"""Deployment commands"""

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from testnet_deploy.deployer.deploy import Deployer
from testnet_deploy.deployer.reservation import ReservationService, ReservationState
from testnet_deploy.deployer.runner import quote_command
from testnet_deploy.deployer.workflow import Workflow, WorkflowResult
from testnet_deploy.errors import TndError
from testnet_deploy.testnet.identifier import validate_testnet

console = Console()


def _workflow(ctx, no_container: bool = False) -> Workflow:
    config = ctx.obj["config"]
    deployer = Deployer.from_config(config)
    if no_container:
        deployer.container.enabled = False
    return Workflow(ReservationService.from_config(config), deployer)


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("name")
@click.argument("extra_args", nargs=-1, type=click.UNPROCESSED)
@click.option("--dry-run", is_flag=True, help="Show the deploy command without running it")
@click.option("--no-container", is_flag=True, help="Run the deploy tool directly on this host")
@click.option(
    "--force",
    is_flag=True,
    help="Deploy even if the testnet is not recorded as reserved or a previous deploy was interrupted",
)
@click.pass_context
def deploy(ctx, name, extra_args, dry_run, no_container, force):
    """Deploy to a reserved testnet

    Arguments after -- are passed on to the deploy tool.
    """
    workflow = _workflow(ctx, no_container)
    reservations = workflow.reservations

    try:
        workflow.host_check()
        name = validate_testnet(name)
        current = reservations.ledger.get(name)
        if current and current.state == ReservationState.DEPLOYING and force and not dry_run:
            current = reservations.recover(name)
        if current is None or not current.active:
            if not force:
                console.print(f"[red]Error:[/red] Testnet {escape(name)} is not reserved")
                console.print(f"  Reserve it first: tnd testnet reserve {escape(name)}")
                console.print("  Or deploy anyway with --force")
                raise click.Abort()
            if not dry_run:
                reservations.adopt(name)

        step = workflow.deploy(name, extra_args, dry_run=dry_run)

        if dry_run:
            console.print("[bold cyan]Dry run - deploy command:[/bold cyan]")
            console.print(quote_command(step.command), markup=False)
        else:
            console.print(f"\n[green]✓ Deployed to testnet {escape(name)}[/green]")

    except TndError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("name")
@click.argument("extra_args", nargs=-1, type=click.UNPROCESSED)
@click.option("--dry-run", is_flag=True, help="Show every step without running anything")
@click.option("--no-container", is_flag=True, help="Run the deploy tool directly on this host")
@click.option("--skip-reserve", is_flag=True, help="Use a reservation made outside this tool")
@click.option("--release-on-failure", is_flag=True, help="Release the testnet if the deploy fails")
@click.pass_context
def up(ctx, name, extra_args, dry_run, no_container, skip_reserve, release_on_failure):
    """Reserve a testnet and deploy to it"""
    workflow = _workflow(ctx, no_container)

    if dry_run:
        console.print("[bold cyan]Dry run mode - no command will be executed[/bold cyan]\n")
    console.print(f"[bold]Bringing up testnet {escape(name)}[/bold]\n")

    try:
        result = workflow.run(
            name,
            extra_args=extra_args,
            skip_reserve=skip_reserve,
            release_on_failure=release_on_failure,
            dry_run=dry_run,
        )
    except TndError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()

    print_result(result)

    if not result.ok:
        raise click.Abort()


def print_result(result: WorkflowResult):
    """Render workflow steps as a table"""
    table = Table(title=f"Testnet {escape(result.testnet)}", show_header=True)
    table.add_column("Step", style="cyan")
    table.add_column("Status")
    table.add_column("Detail")
    table.add_column("Command", style="dim")

    for step in result.steps:
        status = "[green]✓[/green]" if step.ok else "[red]✗[/red]"
        command = quote_command(step.command) if step.command else ""
        table.add_row(step.name, status, escape(step.detail), escape(command))

    console.print(table)

    if result.ok:
        if result.dry_run:
            console.print("\n[green]✓ Dry run complete[/green]")
        else:
            console.print(f"\n[green]✓ Testnet {escape(result.testnet)} is deployed[/green]")
            console.print(f"  Release it when done: tnd testnet release {escape(result.testnet)}")
        return

    failed = result.failed_step
    console.print(f"\n[red]✗ Failed at: {failed.name}[/red]")
    if result.released:
        console.print(f"[yellow]Testnet {escape(result.testnet)} was released[/yellow]")
