"""RelayBot — the entry point for webhook updates.

RelayBot wires the API client, tag codec, stores, directories, router and
broadcaster into the two message handlers, and hands every update to a
detached task so the webhook can be acknowledged immediately.
"""

from __future__ import annotations

import asyncio
import hmac
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError as ModelValidationError

from tgrelay.bridge.api_client import RetryableApiClient
from tgrelay.bridge.telegram_api import TelegramApi
from tgrelay.codec.tags import IdentityTagCodec
from tgrelay.config import RelayConfig
from tgrelay.core.errors import ValidationError
from tgrelay.core.tasks import BackgroundTasks
from tgrelay.directory.registry import UserRegistry
from tgrelay.directory.topics import TopicDirectory
from tgrelay.handlers import texts
from tgrelay.handlers.admin import AdminMessageHandler
from tgrelay.handlers.user import UserMessageHandler
from tgrelay.models.telegram import Message, Update
from tgrelay.routing.broadcast import BroadcastEngine
from tgrelay.routing.formatting import escape_markdown
from tgrelay.routing.router import DeliveryRouter
from tgrelay.store import KeyValueStore, open_store

logger = logging.getLogger(__name__)


class RelayBot:
    """Two-way relay between end users and one administrator chat.

    Parameters
    ----------
    config:
        Relay configuration.  Loaded from the environment if not provided.
    store:
        Blob store for the topic mapping and user list.  Defaults to the
        store named by ``config.store_path``.
    api:
        Remote API.  Built from ``config`` if not provided.
    tasks:
        Holder for detached update-processing tasks.
    rng:
        Source of topic icon colours.
    sleep:
        Awaitable used for broadcast pacing.

    Raises
    ------
    ConfigurationError
        If the bot token or admin chat id is missing or malformed.
    """

    def __init__(
        self,
        config: RelayConfig | None = None,
        *,
        store: KeyValueStore | None = None,
        api: TelegramApi | None = None,
        tasks: BackgroundTasks | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config or RelayConfig()
        self.config.validate_required()
        self.admin_chat_id = self.config.admin_chat

        self.store = store if store is not None else open_store(self.config.store_path)
        self.api = api or TelegramApi(
            RetryableApiClient(
                self.config.bot_token,
                api_base=self.config.api_base,
                timeout_seconds=self.config.api_timeout_seconds,
                max_retries=self.config.max_retries,
                retry_delay_seconds=self.config.retry_delay_seconds,
            )
        )
        self.tasks = tasks or BackgroundTasks()

        # Identity and state
        self.codec = IdentityTagCodec(self.config.user_id_secret)
        self.topics = TopicDirectory(
            self.store,
            self.api,
            self.admin_chat_id,
            enabled=self.config.enable_forum_mode,
            rng=rng,
        )
        self.registry = UserRegistry(self.store, max_users=self.config.max_users)

        # Outbound delivery
        self.router = DeliveryRouter(
            self.codec,
            self.topics,
            self.api,
            self.admin_chat_id,
            forum_mode=self.config.enable_forum_mode,
        )
        self.broadcaster = BroadcastEngine(
            self.api,
            self.registry,
            max_errors=self.config.max_error_display,
            sleep=sleep,
        )

        # Handlers
        self.user_handler = UserMessageHandler(
            self.api,
            self.codec,
            self.topics,
            self.registry,
            self.admin_chat_id,
            track_users=self.config.enable_user_tracking,
            forum_mode=self.config.enable_forum_mode,
        )
        self.admin_handler = AdminMessageHandler(
            self.api,
            self.codec,
            self.router,
            self.broadcaster,
            self.registry,
            self.topics,
            self.admin_chat_id,
            track_users=self.config.enable_user_tracking,
            forum_mode=self.config.enable_forum_mode,
            max_recent_users=self.config.max_recent_users,
            batch_size=self.config.broadcast_batch_size,
            inter_batch_delay=self.config.broadcast_delay_seconds,
        )

    # ------------------------------------------------------------------
    # Webhook entry points
    # ------------------------------------------------------------------

    def authorize(self, secret_token: str | None) -> bool:
        """Check the webhook secret header.  Always true when none is configured."""
        expected = self.config.webhook_secret
        if not expected:
            return True
        return hmac.compare_digest((secret_token or "").encode(), expected.encode())

    async def handle_update(self, payload: dict[str, Any] | str | bytes) -> Update:
        """Parse one webhook delivery and schedule its processing.

        Returns as soon as the work is scheduled; processing happens in a
        detached task with no completion guarantee.

        Raises
        ------
        ValidationError
            If *payload* is not a valid update.  An error notice to the
            administrator is scheduled before raising.
        """
        try:
            if isinstance(payload, (str, bytes)):
                update = Update.model_validate_json(payload)
            else:
                update = Update.model_validate(payload)
        except ModelValidationError as exc:
            logger.error("handle_update: invalid update: %s", exc)
            detail = f"invalid update ({exc.error_count()} validation errors)"
            self.tasks.spawn(self._notify_admin(detail), name="update-error-notice")
            raise ValidationError(f"Invalid update: {exc}") from exc

        if update.message is not None:
            self.tasks.spawn(
                self.handle_message(update.message),
                name=f"update-{update.update_id}",
            )
        return update

    async def handle_message(self, message: Message) -> None:
        """Route *message* to the admin or user handler."""
        if message.from_user is None:
            logger.error("handle_message: message %s has no sender", message.message_id)
            return

        sender = message.from_user
        logger.info(
            "Received message from %s (%s) in chat %s",
            sender.username or sender.first_name or "Unknown",
            sender.id,
            message.chat.id,
        )
        if message.chat.id == self.admin_chat_id:
            await self.admin_handler.handle(message)
        else:
            await self.user_handler.handle(message)

    async def _notify_admin(self, detail: str) -> None:
        try:
            await self.api.send_message(
                self.admin_chat_id, texts.update_error(escape_markdown(detail))
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("Admin error notice not sent: %s", exc)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Wait for outstanding work, then release the HTTP client."""
        await self.tasks.drain()
        await self.api.client.close()

    async def __aenter__(self) -> RelayBot:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()
