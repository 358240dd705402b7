"""
Configuration commands.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Inspect the application configuration",
    no_args_is_help=True,
)


@app.command("validate")
def validate(
    config_path: Path = typer.Option(
        Path("configs/app.yaml"),
        "--config",
        "-c",
        help="Configuration file to validate",
    ),
) -> None:
    """Validate a configuration file without running anything.

    Environment variables are expanded the same way ``check run`` does.
    """
    from domainscout.core.config import validate_config_file

    if not config_path.exists():
        err_console.print(f"[red]Configuration file not found:[/red] {config_path}")
        raise typer.Exit(1)

    errors = validate_config_file(config_path)

    if errors:
        err_console.print(f"[red]Invalid configuration:[/red] {config_path}")
        for error in errors:
            err_console.print(f"  [red]-[/red] {error}")
        raise typer.Exit(1)

    console.print(Panel(
        f"[green]{config_path} is valid[/green]",
        title="Configuration",
        border_style="green",
    ))
