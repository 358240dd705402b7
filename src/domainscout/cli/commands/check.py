"""
Check commands for running domain availability checks.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from domainscout.core.config import AppConfig, ConfigError, load_app_config
from domainscout.core.logging import setup_logging
from domainscout.core.normalize import DomainStatus

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("domainscout.cli")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

app = typer.Typer(
    help="Run availability checks",
    no_args_is_help=True,
)


def load_config_or_exit(config_path: Path | None) -> AppConfig:
    """Load app configuration, exiting with status 1 on errors."""
    try:
        return load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Error loading configuration:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)


@app.command("run")
def run_check(
    input_path: Optional[Path] = typer.Option(
        None,
        "--input",
        "-i",
        help="Domain list file (default from config: input/domains.txt)",
    ),
    output_path: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Result store file (default from config: output/domain.json)",
    ),
    sessions: Optional[int] = typer.Option(
        None,
        "--sessions",
        "-s",
        min=1,
        max=20,
        help="Maximum parallel browser sessions",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (default: configs/app.yaml if present)",
    ),
    headed: bool = typer.Option(
        False,
        "--headed",
        help="Show the browser windows",
    ),
    cdp_url: Optional[str] = typer.Option(
        None,
        "--cdp-url",
        help="Connect to a remote browser endpoint instead of launching one",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show the work plan without opening sessions",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    ),
) -> None:
    """Check every unresolved domain in the input list.

    Domains already in the result store are skipped; domains stored with
    status error are checked again.

    Examples:
        domainscout check run
        domainscout check run -i names.txt -o out/names.json --sessions 2
        domainscout check run --dry-run
    """
    from domainscout.core.normalize import InputError
    from domainscout.core.orchestrator import CheckRunner

    config = load_config_or_exit(config_path)

    if input_path is not None:
        config.runner.input_path = input_path
    if output_path is not None:
        config.runner.output_path = output_path
    if sessions is not None:
        config.runner.max_sessions = sessions
    if headed:
        config.browser.headless = False
    if cdp_url:
        config.browser.cdp_url = cdp_url
    if log_level:
        if log_level.upper() not in LOG_LEVELS:
            err_console.print(f"[red]Unknown log level:[/red] {log_level}")
            raise typer.Exit(1)
        config.logging.level = log_level.upper()

    setup_logging(
        level=config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        rich_console=config.logging.rich_console,
    )

    if dry_run:
        console.print("[yellow]Dry run mode - no browser sessions will be opened[/yellow]")

    runner = CheckRunner(config)

    try:
        stats = asyncio.run(runner.run(dry_run=dry_run))
    except InputError as e:
        logger.error(str(e))
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception(f"Check run failed: {e}")
        raise typer.Exit(1)

    console.print()
    _show_summary(stats)


def _show_summary(stats) -> None:
    """Show summary tables of a check run."""
    overview = Table(title="Check Summary", show_header=False)
    overview.add_column("Metric", style="cyan")
    overview.add_column("Value", justify="right")

    overview.add_row("Unique input domains", str(stats.input_domains))
    overview.add_row("Already checked", str(stats.already_checked))
    overview.add_row("Errors queued for retry", str(stats.pruned_errors))
    overview.add_row("To check", str(stats.unresolved))
    overview.add_row("Sessions", str(stats.sessions))
    if stats.duration_seconds is not None:
        overview.add_row("Duration", f"{stats.duration_seconds:.1f}s")

    console.print(overview)

    if stats.dry_run and stats.partitions:
        plan = Table(title="Planned Sessions")
        plan.add_column("Session", justify="right", style="cyan")
        plan.add_column("Domains", justify="right")
        plan.add_column("First domains")
        for index, partition in enumerate(stats.partitions, start=1):
            preview = ", ".join(partition[:3]) + (" ..." if len(partition) > 3 else "")
            plan.add_row(str(index), str(len(partition)), preview)
        console.print(plan)
        return

    if not stats.workers:
        return

    table = Table(title="Sessions")
    table.add_column("Session", justify="right", style="cyan")
    table.add_column("Assigned", justify="right")
    table.add_column("Saved", justify="right", style="green")
    table.add_column("Available", justify="right", style="green")
    table.add_column("Unavailable", justify="right")
    table.add_column("Unknown", justify="right", style="yellow")
    table.add_column("Skipped", justify="right", style="dim")
    table.add_column("Errors", justify="right", style="red")
    table.add_column("Duration", justify="right")

    for worker in stats.workers:
        duration = f"{worker.duration_seconds:.1f}s" if worker.duration_seconds else "-"
        session_label = str(worker.session_number)
        if worker.failed:
            session_label = f"[red]{worker.session_number} (failed)[/red]"
        table.add_row(
            session_label,
            str(worker.assigned),
            str(worker.persisted),
            str(worker.statuses[DomainStatus.AVAILABLE]),
            str(worker.statuses[DomainStatus.UNAVAILABLE]),
            str(worker.statuses[DomainStatus.UNKNOWN]),
            str(worker.skipped + worker.discarded),
            str(worker.errors + worker.statuses[DomainStatus.ERROR]),
            duration,
        )

    console.print(table)

    failures = [w for w in stats.workers if w.failed]
    for worker in failures:
        console.print(f"[red]Session {worker.session_number} failed:[/red] {worker.failure}")
