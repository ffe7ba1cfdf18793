"""CLI entry point for the UCC lead finder."""

from __future__ import annotations

import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ucc_leads.config import load_config
from ucc_leads.models import LeadItem
from ucc_leads.pipeline import InvalidTopicError, LeadPipeline

console = Console()


def _setup_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, show_time=False)],
    )


def _print_table(items: list[LeadItem], title: str) -> None:
    table = Table(title=title, show_lines=False)
    table.add_column("Score", justify="right")
    table.add_column("Tags")
    table.add_column("Business")
    table.add_column("Email")
    table.add_column("Phone")
    table.add_column("URL", overflow="fold")
    for item in items:
        tags = ", ".join(item.model_dump()["tags"])
        table.add_row(
            str(item.score),
            tags or "[dim]-[/dim]",
            item.business_name,
            item.email or "",
            item.phone or "",
            item.url,
        )
    console.print(table)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose debug logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Find businesses that may need financing from UCC filings and web search.

    Example: python -m ucc_leads search "ABC Logistics LLC"
    """
    _setup_logging(verbose)
    ctx.obj = load_config()


@main.command()
@click.argument("topic")
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON response")
@click.option("--max-results", default=None, type=int, help="Max leads returned (default: 50)")
@click.option("--concurrency", "-c", default=None, type=int, help="Max concurrent fetches (default: 6)")
@click.pass_obj
def search(config, topic: str, as_json: bool, max_results: int | None, concurrency: int | None) -> None:
    """Search, enrich and rank leads for TOPIC."""
    if max_results:
        config.max_results = max_results
    if concurrency:
        config.max_concurrency = concurrency

    async def _run():
        async with LeadPipeline(config) as pipeline:
            return await pipeline.run(topic)

    try:
        response = asyncio.run(_run())
    except InvalidTopicError as e:
        console.print(f"[red]Input error: {e}[/red]")
        sys.exit(2)

    if as_json:
        click.echo(response.model_dump_json(indent=2))
        return
    _print_table(response.items, f"Leads for '{response.query}'")
    console.print(f"\n[bold]{len(response.items)} leads[/bold]")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON response")
@click.pass_obj
def feeds(config, as_json: bool) -> None:
    """Aggregate the configured UCC feeds and enrich each entry."""
    if not config.feed_urls:
        console.print("[red]No feeds configured (set FEED_URLS)[/red]")
        sys.exit(1)

    async def _run():
        async with LeadPipeline(config) as pipeline:
            return await pipeline.run_feeds()

    response = asyncio.run(_run())
    if as_json:
        click.echo(response.model_dump_json(indent=2))
        return
    _print_table(response.items, f"Feed leads ({len(config.feed_urls)} feeds)")


@main.command()
@click.pass_obj
def serve(config) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("ucc_leads.web.app:app", host=config.web_host, port=config.web_port)


if __name__ == "__main__":
    main()
