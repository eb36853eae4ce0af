"""Main Typer application — imports and registers all CLI commands.

Entry point: ``tgrelay`` (configured via pyproject.toml scripts).

Commands: set-webhook, me, tag, resolve, users, process-update.
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from tgrelay.cli.commands.tags import resolve_cmd, tag_cmd
from tgrelay.cli.commands.update import process_update_cmd
from tgrelay.cli.commands.users import users_cmd
from tgrelay.cli.commands.webhook import me_cmd, set_webhook_cmd
from tgrelay.config import RelayConfig

app = typer.Typer(
    name="tgrelay",
    help="tgrelay: two-way Telegram relay between users and one admin chat.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="set-webhook", help="Register the bot webhook URL.")(set_webhook_cmd)
app.command(name="me", help="Show the bot account for the configured token.")(me_cmd)
app.command(name="tag", help="Print the identity tag for a user id.")(tag_cmd)
app.command(name="resolve", help="Recover the user id from tagged text.")(resolve_cmd)
app.command(name="users", help="List tracked users.")(users_cmd)
app.command(name="process-update", help="Process one saved webhook update.")(process_update_cmd)


def configure_logging(level: str) -> None:
    """Route stdlib logging through Rich at *level*."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", help="Override TGRELAY_LOG_LEVEL (DEBUG, INFO, ...)."
    ),
) -> None:
    """Configure logging before any command runs."""
    configure_logging(log_level or RelayConfig().log_level)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
