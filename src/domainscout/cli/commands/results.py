"""
Result store viewing and export commands.
"""

from __future__ import annotations

import asyncio
import csv
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from domainscout.core.normalize import RECORDS_ADAPTER, DomainRecord, DomainStatus, count_by_status
from domainscout.persistence import ResultStore

from .check import load_config_or_exit

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="View and export stored results",
    no_args_is_help=True,
)

STATUS_STYLES = {
    DomainStatus.AVAILABLE: "green",
    DomainStatus.UNAVAILABLE: "dim",
    DomainStatus.UNKNOWN: "yellow",
    DomainStatus.ERROR: "red",
}


def _open_store(output_path: Path | None, config_path: Path | None) -> ResultStore:
    config = load_config_or_exit(config_path)
    path = output_path or config.runner.output_path
    return ResultStore(path, config.store)


def _parse_status(status: str | None) -> DomainStatus | None:
    if status is None:
        return None
    try:
        return DomainStatus(status.lower())
    except ValueError:
        valid = ", ".join(s.value for s in DomainStatus)
        err_console.print(f"[red]Unknown status:[/red] {status}")
        err_console.print(f"[dim]Valid: {valid}[/dim]")
        raise typer.Exit(1)


def _filter(records: list[DomainRecord], status: DomainStatus | None) -> list[DomainRecord]:
    if status is None:
        return records
    return [r for r in records if r.status is status]


@app.command("show")
def show_results(
    output_path: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Result store file (default from config)",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file",
    ),
    status: Optional[str] = typer.Option(
        None,
        "--status",
        "-s",
        help="Filter by status (available, unavailable, unknown, error)",
    ),
    limit: int = typer.Option(
        50,
        "--limit",
        "-n",
        help="Maximum rows to show",
    ),
) -> None:
    """Show stored results and per-status counts.

    Examples:
        domainscout results show
        domainscout results show --status available
    """
    wanted = _parse_status(status)
    store = _open_store(output_path, config_path)

    if not store.path.exists():
        console.print(f"[yellow]No results file at {store.path}[/yellow]")
        return

    records = asyncio.run(store.load())
    selected = _filter(records, wanted)

    if not selected:
        console.print("[yellow]No results found.[/yellow]")
    else:
        table = Table(title=f"Results ({store.path})")
        table.add_column("Domain", style="cyan")
        table.add_column("Status")

        for record in selected[:limit]:
            style = STATUS_STYLES[record.status]
            table.add_row(record.domain, f"[{style}]{record.status.value}[/{style}]")

        console.print(table)

        if len(selected) > limit:
            console.print(f"[dim]Showing {limit} of {len(selected)} results[/dim]")

    counts = count_by_status(records)
    summary = Table(title="Status Counts", show_header=False)
    summary.add_column("Status", style="cyan")
    summary.add_column("Count", justify="right")
    for domain_status, count in counts.items():
        summary.add_row(domain_status.value, str(count))
    summary.add_row("[bold]total[/bold]", f"[bold]{len(records)}[/bold]")

    console.print()
    console.print(summary)


@app.command("export")
def export_results(
    dest: Path = typer.Argument(..., help="Export file path"),
    format: str = typer.Option(
        None,
        "--format",
        "-f",
        help="Output format (inferred from extension if not specified)",
    ),
    output_path: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Result store file (default from config)",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file",
    ),
    status: Optional[str] = typer.Option(
        None,
        "--status",
        "-s",
        help="Filter by status",
    ),
) -> None:
    """Export stored results to a file.

    Supported formats: csv, json, txt (one domain per line)

    Examples:
        domainscout results export out/available.csv --status available
        domainscout results export out/all.json
    """
    if not format:
        format = dest.suffix.lstrip(".").lower()

    if format not in ("csv", "json", "txt"):
        err_console.print(f"[red]Unsupported format:[/red] {format}")
        err_console.print("[dim]Supported: csv, json, txt[/dim]")
        raise typer.Exit(1)

    wanted = _parse_status(status)
    store = _open_store(output_path, config_path)

    records = _filter(asyncio.run(store.load()), wanted)

    if not records:
        console.print("[yellow]No results to export.[/yellow]")
        return

    dest.parent.mkdir(parents=True, exist_ok=True)

    if format == "csv":
        with open(dest, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["domain", "status"])
            for record in records:
                writer.writerow([record.domain, record.status.value])

    elif format == "json":
        dest.write_bytes(RECORDS_ADAPTER.dump_json(records, indent=4) + b"\n")

    elif format == "txt":
        dest.write_text("".join(f"{r.domain}\n" for r in records), encoding="utf-8")

    console.print(f"[green]OK[/green] Exported {len(records)} results to {dest}")


@app.command("reset-errors")
def reset_errors(
    output_path: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Result store file (default from config)",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file",
    ),
) -> None:
    """Remove error results so the next run checks those domains again."""
    store = _open_store(output_path, config_path)

    if not store.path.exists():
        console.print(f"[yellow]No results file at {store.path}[/yellow]")
        return

    kept, dropped = asyncio.run(store.prune_errors())

    if dropped:
        console.print(f"[green]OK[/green] Removed {dropped} error results ({len(kept)} remain)")
    else:
        console.print("[dim]No error results to remove.[/dim]")
