"""``tgrelay set-webhook URL`` and ``tgrelay me`` — bot management calls."""

from __future__ import annotations

import asyncio

import typer

from tgrelay.cli.commands import _common
from tgrelay.cli.commands._common import console
from tgrelay.config import RelayConfig
from tgrelay.core.errors import RelayError
from tgrelay.models.telegram import ApiResponse


async def _set_webhook(config: RelayConfig, url: str) -> ApiResponse:
    api = _common.build_api(config)
    async with api.client:
        return await api.set_webhook(url, config.webhook_secret)


async def _get_me(config: RelayConfig) -> ApiResponse:
    api = _common.build_api(config)
    async with api.client:
        return await api.get_me()


def _report(response: ApiResponse, success: str) -> None:
    if not response.ok:
        console.print(
            f"[bold red]Rejected:[/bold red] {response.description or 'unknown error'}"
        )
        raise typer.Exit(code=1)
    console.print(f"[green]{success}[/green]")


def set_webhook_cmd(
    url: str = typer.Argument(..., help="Public HTTPS URL the bot API should post updates to."),
) -> None:
    """Register the webhook URL, with the configured secret token if any."""
    config = _common.load_config()
    try:
        response = asyncio.run(_set_webhook(config, url))
    except RelayError as exc:
        console.print(f"[bold red]setWebhook failed:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    _report(response, f"Webhook set to {url}")
    if not config.webhook_secret:
        console.print("[yellow]No webhook secret configured; updates are unauthenticated.[/yellow]")


def me_cmd() -> None:
    """Show the bot account behind the configured token."""
    config = _common.load_config()
    try:
        response = asyncio.run(_get_me(config))
    except RelayError as exc:
        console.print(f"[bold red]getMe failed:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    _report(response, "Bot is reachable")
    result = response.result if isinstance(response.result, dict) else {}
    console.print(f"  id:       [cyan]{result.get('id', '?')}[/cyan]")
    console.print(f"  username: [cyan]@{result.get('username', '?')}[/cyan]")
    console.print(f"  name:     {result.get('first_name', '')}")
