"""``tgrelay process-update FILE`` — run one saved webhook update locally."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from tgrelay.cli.commands import _common
from tgrelay.cli.commands._common import console
from tgrelay.config import RelayConfig
from tgrelay.core.errors import ValidationError
from tgrelay.handlers.bot import RelayBot
from tgrelay.models.telegram import Update


async def _process(config: RelayConfig, payload: bytes) -> Update:
    bot = RelayBot(config, api=_common.build_api(config))
    async with bot:
        return await bot.handle_update(payload)


def process_update_cmd(
    file: Path = typer.Argument(..., help="JSON file holding one Update object."),
) -> None:
    """Feed FILE through the relay as if it arrived on the webhook."""
    if not file.exists():
        console.print(f"[bold red]File not found:[/bold red] {file}")
        raise typer.Exit(code=1)

    config = _common.load_config()
    try:
        update = asyncio.run(_process(config, file.read_bytes()))
    except ValidationError as exc:
        console.print(f"[bold red]Invalid update:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    kind = "message" if update.message is not None else "no message"
    console.print(f"[green]Processed update {update.update_id}[/green] ({kind})")
