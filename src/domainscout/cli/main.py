"""
DomainScout CLI - Main entry point.

A terminal-first domain availability checker with parallel browser
sessions and a crash-safe JSON result store.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.traceback import install as install_rich_traceback

from domainscout import __app_name__, __version__

# Load environment variables from .env (if present)
load_dotenv()

# Install rich traceback for better error display
install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

# Create main app
app = typer.Typer(
    name=__app_name__,
    help="Terminal-first domain availability checker",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """DomainScout - Domain availability checker."""
    pass


# =============================================================================
# Import and register subcommand modules
# =============================================================================

from .commands import check, config, results  # noqa: E402

app.add_typer(check.app, name="check", help="Run availability checks")
app.add_typer(results.app, name="results", help="View and export stored results")
app.add_typer(config.app, name="config", help="Inspect the application configuration")


# =============================================================================
# Init Command
# =============================================================================


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
    config_path: Path = typer.Option(
        Path("configs/app.yaml"),
        "--config",
        "-c",
        help="Where to write the configuration file",
    ),
) -> None:
    """Initialize DomainScout configuration and directories.

    Creates configs/app.yaml with defaults plus the input, output and
    log directories. An existing configuration is kept unless --force.
    """
    from domainscout.core.config import load_app_config, write_default_config, ConfigError

    if config_path.exists() and not force:
        console.print(f"[yellow]Keeping existing configuration:[/yellow] {config_path}")
    else:
        write_default_config(config_path)

    try:
        config = load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Invalid configuration:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)

    config.ensure_directories()

    input_path = config.runner.input_path
    if not input_path.exists():
        input_path.write_text("# One domain per line\n", encoding="utf-8")

    console.print()
    console.print(Panel.fit(
        "[bold green]OK - DomainScout initialized successfully![/bold green]\n\n"
        "Created:\n"
        f"  - [cyan]{config_path}[/cyan] - Application configuration\n"
        f"  - [cyan]{input_path}[/cyan] - Domains to check, one per line\n"
        f"  - [cyan]{config.runner.output_path.parent}/[/cyan] - Result store directory\n\n"
        "Next steps:\n"
        f"  1. Add domains to [yellow]{input_path}[/yellow]\n"
        "  2. Install a browser: [yellow]playwright install chromium[/yellow]\n"
        "  3. Run a check: [yellow]domainscout check run[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
