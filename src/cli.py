"""CLI entry point for the TeamCity reporter."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections import Counter
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from src.models.config import ReporterConfig
from src.plugin.event_bus import EventBus, read_recording
from src.plugin.router import register_reporter

# stdout carries the service messages; everything human-facing goes to stderr
console = Console(stderr=True)

DEFAULT_CONFIG = "teamcity-reporter.json"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Report runner events to TeamCity as service messages."""
    setup_logging(verbose)


@cli.command()
@click.argument("events_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "-c", default=None, help="Config file path")
def replay(events_file: str, config: str | None) -> None:
    """Replay a JSON-lines recording of runner events."""
    try:
        cfg = ReporterConfig.load(config) if config else ReporterConfig()
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'teamcity-reporter init' to create a default config.")
        sys.exit(1)

    bus = EventBus()
    router = register_reporter(bus, cfg)
    if router is None:
        console.print("[yellow]Reporter disabled in config, nothing to do[/yellow]")
        return

    counts: Counter[str] = Counter()

    async def _run() -> None:
        for event, test in read_recording(events_file):
            if bus.emit(event, test):
                counts[event] += 1
            else:
                counts["unhandled"] += 1
        await router.drain()

    try:
        asyncio.run(_run())
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    table = Table(title="Replayed Events")
    table.add_column("Event", style="bold")
    table.add_column("Count")
    for event, count in sorted(counts.items()):
        table.add_row(event, str(count))
    console.print(table)


@cli.command()
@click.option("--images-dir", default="hermione-images", help="Root directory for images")
@click.option(
    "--report-screenshots",
    type=click.Choice(["never", "onlyFailures", "always"]),
    default="onlyFailures",
    help="Which visual-check images to publish",
)
def init(images_dir: str, report_screenshots: str) -> None:
    """Create a default configuration file."""
    config_path = Path(DEFAULT_CONFIG)
    if config_path.exists():
        if not click.confirm(f"{DEFAULT_CONFIG} already exists. Overwrite?"):
            return

    cfg = ReporterConfig(images_dir=images_dir, report_screenshots=report_screenshots)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nReplay a recording with:")
    console.print(f"  [blue]teamcity-reporter replay events.jsonl -c {DEFAULT_CONFIG}[/blue]")


if __name__ == "__main__":
    cli()
