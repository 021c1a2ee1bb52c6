"""cardpilot logs — Show task-log entries."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from cardpilot.cli.config_cmd import find_project_dir, load_config
from cardpilot.store import JsonlTaskLog

console = Console()


def logs(
    user: str | None = typer.Option(None, "--user", "-u", help="Only show entries for this user id."),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Show at most this many recent entries."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON lines."),
    dir: Path | None = typer.Option(None, "--dir", "-d", help="Path to .cardpilot/ directory."),
) -> None:
    """List recent card-update attempts, newest last."""
    config = load_config(dir or find_project_dir())
    entries = JsonlTaskLog(config.task_log_file).entries(user_id=user)[-limit:]

    if as_json:
        for entry in entries:
            console.print_json(json.dumps(entry))
        return

    if not entries:
        console.print("[dim]No task-log entries.[/dim]")
        return

    table = Table(title="Task Log", border_style="cyan")
    table.add_column("Time", style="dim")
    table.add_column("User")
    table.add_column("Status")
    table.add_column("Card")
    table.add_column("Step")
    table.add_column("Message")

    for entry in entries:
        meta = entry.get("metadata") or {}
        status = entry.get("status", "?")
        style = "green" if status == "SUCCESS" else "red"
        card = f"{meta.get('brand', '?')} {meta.get('last4', '')}".strip()
        table.add_row(
            entry.get("timestamp", "?"),
            entry.get("user_email") or entry.get("user_id", "?"),
            f"[{style}]{status}[/{style}]",
            card,
            meta.get("failed_step") or "-",
            (entry.get("message") or "")[:60],
        )

    console.print(table)
