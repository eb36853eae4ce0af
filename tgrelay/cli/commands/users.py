"""``tgrelay users`` — list tracked users from the configured store."""

from __future__ import annotations

import typer
from rich.table import Table

from tgrelay.cli.commands import _common
from tgrelay.cli.commands._common import console
from tgrelay.directory.registry import UserRegistry
from tgrelay.store import open_store


def users_cmd(
    limit: int = typer.Option(None, "--limit", "-n", help="Rows to show (default: max_recent_users)."),
) -> None:
    """Show the most recently active users."""
    config = _common.load_config(require_bot=False)
    if config.store_path is None:
        console.print("[yellow]TGRELAY_STORE_PATH is not set; nothing is persisted.[/yellow]")
        raise typer.Exit(code=1)

    registry = UserRegistry(open_store(config.store_path), max_users=config.max_users)
    total = len(registry.list_users())
    if not total:
        console.print("[dim]No users recorded yet.[/dim]")
        return

    recent = registry.recent(limit or config.max_recent_users)
    table = Table(title=f"Users (latest {len(recent)}/{total})")
    table.add_column("Chat ID", style="cyan")
    table.add_column("Name")
    table.add_column("Username", style="green")
    table.add_column("Last active")
    for user in recent:
        table.add_row(
            str(user.chat_id),
            user.display_name,
            f"@{user.username}" if user.username else "-",
            user.last_active.strftime("%Y-%m-%d %H:%M:%S"),
        )
    console.print(table)
