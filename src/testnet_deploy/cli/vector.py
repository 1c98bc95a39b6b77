"""Vector scrape configuration commands"""

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from testnet_deploy.errors import TndError
from testnet_deploy.observability.vector import JobType, VectorConfig, job_names
from testnet_deploy.testnet.inventory import DEFAULT_PATH_TEMPLATE, load_inventory

console = Console()


@click.command()
@click.argument("name")
@click.option("--job", type=click.Choice(job_names()), default="replica", help="Job to scrape")
@click.option("--scrape-interval", type=click.IntRange(min=1), help="Scrape interval in seconds")
@click.option("--proxy-url", help="HTTP proxy for scraping")
@click.option("--format", "fmt", type=click.Choice(["yaml", "json"]), default="yaml")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Write to file instead of stdout")
@click.pass_context
def vector(ctx, name, job, scrape_interval, proxy_url, fmt, output):
    """Generate a Vector scrape config for a testnet's nodes"""
    config = ctx.obj["config"]
    vector_config = config.get("vector", {})

    try:
        inventory = load_inventory(
            Path(config.get("repo_root", ".")),
            name,
            config.get("inventory", {}).get("path", DEFAULT_PATH_TEMPLATE),
        )
    except TndError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()

    job_type = JobType.from_name(job)
    generated = VectorConfig.from_target_groups(
        inventory.target_groups(job_type.port),
        job_type,
        scrape_interval=scrape_interval or vector_config.get("scrape_interval", 30),
        proxy_url=proxy_url or vector_config.get("proxy_url") or None,
    )
    rendered = generated.render(fmt)

    if output:
        Path(output).write_text(rendered)
        console.print(f"[green]✓[/green] Wrote {len(generated.sources)} sources to {escape(output)}")
    else:
        click.echo(rendered)
