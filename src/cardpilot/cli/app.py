"""CardPilot CLI — Main Typer entry point.

Registers all subcommands and provides --version / --verbose global options.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from cardpilot import __version__

TAGLINE = "Keeps the card on file current, without the clicking."

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold cyan]cardpilot[/bold cyan] v{__version__}")
        console.print(f"  {TAGLINE}", style="dim")
        raise typer.Exit()


app = typer.Typer(
    name="cardpilot",
    help=f"CardPilot -- {TAGLINE}",
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show CardPilot version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
) -> None:
    """CardPilot -- automated payment-card updates for streaming accounts."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s  %(message)s")


# ── Register subcommands ──────────────────────────────────────────────────

from cardpilot.cli.config_cmd import config_app  # noqa: E402
from cardpilot.cli.logs import logs  # noqa: E402
from cardpilot.cli.update_card import update_card  # noqa: E402

app.command(name="update-card", help="Sign in and replace the stored payment card.")(update_card)
app.command(name="logs", help="Show task-log entries.")(logs)
app.add_typer(config_app, name="config", help="View CardPilot configuration.")
