"""cardpilot update-card — Sign in and replace the stored payment card.

Prompts for secrets (password, card number, CVC) with hidden input, checks
the card details, runs one automation session and prints the outcome. The
full outcome is appended to the task log.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from cardpilot.cli.config_cmd import find_project_dir, load_config
from cardpilot.config import CardPilotConfigError
from cardpilot.credentials import CardDetails, CardDetailsError, Credentials, mask_card_number
from cardpilot.engine.protocols import UserNotFoundError
from cardpilot.engine.session import AutomationSession
from cardpilot.store import JsonlTaskLog, YamlUserDirectory

console = Console(stderr=True)

_EXPIRY_RE = re.compile(r"^\s*(\d{1,2})\s*/\s*(\d{2}|\d{4})\s*$")


def parse_expiry(value: str) -> tuple[int, int]:
    """Parse ``MM/YY`` or ``MM/YYYY`` into (month, four-digit year)."""
    match = _EXPIRY_RE.match(value)
    if not match:
        raise CardDetailsError(f"Invalid expiry {value!r}; expected MM/YYYY")
    month, year = int(match.group(1)), int(match.group(2))
    if year < 100:
        year += 2000
    return month, year


def _error_panel(message: str, title: str) -> None:
    console.print(Panel(f"[red]{message}[/red]", title=f"[red]{title}[/red]", border_style="red"))


def update_card(
    user_id: str = typer.Argument(..., help="Registered user id."),
    email: str = typer.Option(..., "--email", "-e", help="Sign-in email for the streaming account."),
    password: str = typer.Option(
        ..., "--password", prompt=True, hide_input=True, help="Sign-in password."
    ),
    card_number: str = typer.Option(
        ..., "--card-number", prompt="Card number", hide_input=True, help="New card number."
    ),
    expiry: str = typer.Option(..., "--expiry", prompt="Expiry (MM/YYYY)", help="Card expiry."),
    cvc: str = typer.Option(..., "--cvc", prompt="CVC", hide_input=True, help="Card security code."),
    holder_name: str = typer.Option(..., "--name", prompt="Name on card", help="Cardholder name."),
    postal_code: str | None = typer.Option(None, "--postal-code", help="Billing postal code."),
    headless: bool = typer.Option(True, "--headless/--headed", help="Run the browser headless."),
    dir: Path | None = typer.Option(None, "--dir", "-d", help="Path to .cardpilot/ directory."),
) -> None:
    """Sign into the streaming account and replace its stored card."""
    project_dir = dir or find_project_dir()
    config = load_config(project_dir)
    config.headless = headless

    try:
        month, year = parse_expiry(expiry)
        card = CardDetails(
            number=card_number,
            expiry_month=month,
            expiry_year=year,
            cvc=cvc.strip(),
            holder_name=holder_name.strip(),
            postal_code=postal_code.strip() if postal_code else None,
        )
        card.validate()
    except CardDetailsError as exc:
        _error_panel(str(exc), "Invalid Card")
        raise typer.Exit(code=2)

    task_log = JsonlTaskLog(config.task_log_file)
    session = AutomationSession(
        users=YamlUserDirectory(config.users_file),
        task_log=task_log,
        config=config,
    )

    console.print(f"Updating card {mask_card_number(card.number)} for user [bold]{user_id}[/bold]...")
    try:
        ok = asyncio.run(
            session.update_card_for_user(user_id, Credentials(email=email, password=password), card)
        )
    except UserNotFoundError as exc:
        _error_panel(str(exc), "Unknown User")
        raise typer.Exit(code=2)
    except CardPilotConfigError as exc:
        _error_panel(str(exc), "Config Error")
        raise typer.Exit(code=2)

    if ok:
        console.print(
            Panel(
                f"[green]Card {mask_card_number(card.number)} saved.[/green]",
                title="[green]Success[/green]",
                border_style="green",
            )
        )
        return

    entries = task_log.entries(user_id=user_id)
    last = entries[-1] if entries else {}
    step = (last.get("metadata") or {}).get("failed_step", "?")
    _error_panel(
        f"Failed during {step}: {last.get('message', 'unknown error')}\n\n"
        f"Task log: {task_log.path}",
        "Card Update Failed",
    )
    raise typer.Exit(code=1)
