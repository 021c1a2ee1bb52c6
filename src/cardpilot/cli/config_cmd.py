"""cardpilot config — View CardPilot configuration.

Subcommands: show.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cardpilot.config import (
    CardPilotConfig,
    CardPilotConfigError,
    browser_executable_source,
)

console = Console()

config_app = typer.Typer(
    name="config",
    help="View CardPilot configuration.",
    no_args_is_help=True,
)


def find_project_dir() -> Path:
    """Locate the .cardpilot/ project directory by searching upward from cwd."""
    current = Path.cwd()
    for base in [current, *current.parents]:
        candidate = base / ".cardpilot"
        if candidate.is_dir():
            return candidate
    return current / ".cardpilot"


def load_config(project_dir: Path | None = None) -> CardPilotConfig:
    """Load config.yaml from the project dir, or defaults rooted there.

    Exits with code 2 after printing the error if the file is invalid.
    """
    project_dir = project_dir or find_project_dir()
    config_path = project_dir / "config.yaml"
    try:
        if config_path.is_file():
            return CardPilotConfig.from_file(config_path)
        return CardPilotConfig._from_dict({}, project_dir)
    except (CardPilotConfigError, ValueError) as exc:
        console.print(Panel(f"[red]{exc}[/red]", title="[red]Config Error[/red]", border_style="red"))
        raise typer.Exit(code=2)


@config_app.command(name="show")
def config_show(
    dir: Path | None = typer.Option(
        None,
        "--dir",
        "-d",
        help="Path to .cardpilot/ directory.",
    ),
) -> None:
    """Show the resolved CardPilot configuration."""
    project_dir = dir or find_project_dir()
    config_path = project_dir / "config.yaml"
    config = load_config(project_dir)

    executable, exe_source = browser_executable_source(config)

    table = Table(title="CardPilot Configuration", border_style="cyan")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_column("Source", style="dim")

    table.add_row("Project Dir", str(project_dir), "resolved")
    table.add_row("Config File", str(config_path), "exists" if config_path.is_file() else "missing")
    table.add_row("Users File", str(config.users_file), "config")
    table.add_row("Task Log", str(config.task_log_file), "config")
    table.add_row("", "", "")
    table.add_row("Home URL", config.home_url, "config")
    table.add_row("Account URL", config.account_url, "config")
    table.add_row("Billing URL", config.billing_url, "config")
    table.add_row("Billing Path", config.billing_path, "config")
    table.add_row("", "", "")
    table.add_row("Headless", str(config.headless), "config")
    table.add_row("Browser", executable or "Playwright Chromium", exe_source)
    table.add_row("Navigation Timeout", f"{config.navigation_timeout:g}s", "config")
    table.add_row("Field Timeout", f"{config.field_timeout:g}s", "config")
    table.add_row("Submit Timeout", f"{config.submit_timeout:g}s", "config")
    table.add_row("Click Timeout", f"{config.click_timeout:g}s", "config")

    console.print()
    console.print(table)
    console.print()
