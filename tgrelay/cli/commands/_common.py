"""Helpers shared by the CLI commands."""

from __future__ import annotations

import typer
from rich.console import Console

from tgrelay.bridge.api_client import RetryableApiClient
from tgrelay.bridge.telegram_api import TelegramApi
from tgrelay.config import RelayConfig
from tgrelay.core.errors import ConfigurationError

console = Console()


def load_config(*, require_bot: bool = True) -> RelayConfig:
    """Load configuration from the environment; exit 1 if it is unusable."""
    config = RelayConfig()
    if require_bot:
        try:
            config.validate_required()
        except ConfigurationError as exc:
            console.print(f"[bold red]Configuration error:[/bold red] {exc}")
            raise typer.Exit(code=1) from exc
    return config


def build_api(config: RelayConfig) -> TelegramApi:
    """Remote API client for *config*.  Tests replace this factory."""
    return TelegramApi(
        RetryableApiClient(
            config.bot_token,
            api_base=config.api_base,
            timeout_seconds=config.api_timeout_seconds,
            max_retries=config.max_retries,
            retry_delay_seconds=config.retry_delay_seconds,
        )
    )
