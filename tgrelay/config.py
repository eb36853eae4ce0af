"""Relay configuration — env-driven via pydantic-settings.

Reads from a .env file and TGRELAY_* environment variables.

Examples
--------
Override via environment::

    export TGRELAY_BOT_TOKEN=123456:ABC-DEF
    export TGRELAY_ADMIN_CHAT_ID=-1001234567890
    export TGRELAY_USER_ID_SECRET=change-me
    export TGRELAY_ENABLE_FORUM_MODE=true

Or via .env file::

    TGRELAY_ENABLE_USER_TRACKING=true
    TGRELAY_STORE_PATH=/data/relay.db
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from tgrelay.core.errors import ConfigurationError
from tgrelay.models.identity import SigningMode

_BOT_TOKEN_RE = re.compile(r"^\d+:[A-Za-z0-9_-]+$")
_CHAT_ID_RE = re.compile(r"^-?\d+$")


class RelayConfig(BaseSettings):
    """Relay configuration with environment variable overrides."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TGRELAY_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Bot identity
    bot_token: str = ""
    admin_chat_id: str = ""
    webhook_secret: str = ""

    # Identity tag signing; empty means degraded (forgeable) tags
    user_id_secret: str = ""

    # Feature switches
    enable_user_tracking: bool = False
    enable_forum_mode: bool = False

    # Remote API
    api_base: str = "https://api.telegram.org"
    api_timeout_seconds: float = 30.0
    max_retries: int = 3
    retry_delay_seconds: float = 1.0

    # Broadcast
    broadcast_batch_size: int = 10
    broadcast_delay_seconds: float = 0.1
    max_error_display: int = 5

    # Registry
    max_users: int = 1000
    max_recent_users: int = 20

    # Storage; None keeps state in memory for the life of the process
    store_path: Path | None = None

    log_level: str = "INFO"

    @property
    def signing_mode(self) -> SigningMode:
        """HMAC when a secret is configured, DEGRADED otherwise."""
        return SigningMode.HMAC if self.user_id_secret else SigningMode.DEGRADED

    @property
    def admin_chat(self) -> int:
        """The administrator chat id as an integer."""
        self.validate_required()
        return int(self.admin_chat_id)

    def validate_required(self) -> None:
        """Fail hard when the bot cannot operate with this configuration.

        Raises
        ------
        ConfigurationError
            If the bot token or admin chat id is missing or malformed.
        """
        missing = [
            name
            for name in ("bot_token", "admin_chat_id")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                "Missing required configuration: "
                + ", ".join(f"TGRELAY_{name.upper()}" for name in missing)
            )
        if not _CHAT_ID_RE.match(self.admin_chat_id.strip()):
            raise ConfigurationError("TGRELAY_ADMIN_CHAT_ID must be a valid integer")
        if not _BOT_TOKEN_RE.match(self.bot_token):
            raise ConfigurationError("TGRELAY_BOT_TOKEN format is invalid")
