"""TelegramApi — typed wrappers over the Bot API methods the relay uses.

Each wrapper validates its inputs, fills the relay's defaults, and returns
an ``ApiResponse``.  Remote failures propagate from ``RetryableApiClient``
except for ``is_forum``, which answers ``False`` on any error.
"""

from __future__ import annotations

import logging
from typing import Any

from tgrelay.bridge.api_client import RetryableApiClient
from tgrelay.core.errors import RelayError, ValidationError
from tgrelay.core.validation import (
    MAX_MESSAGE_LENGTH,
    MAX_TOPIC_NAME_LENGTH,
    validate_chat_id,
    validate_text,
)
from tgrelay.models.telegram import ApiResponse

logger = logging.getLogger(__name__)

DEFAULT_ICON_COLORS: tuple[int, ...] = (
    0x6FB9F0,
    0xFFD67E,
    0xCB86DB,
    0x6EBF95,
    0xFFB3BA,
    0x87CEFA,
)


def _with_defaults(params: dict[str, Any], options: dict[str, Any]) -> dict[str, Any]:
    merged = {
        "parse_mode": "Markdown",
        "disable_web_page_preview": True,
        **params,
        **options,
    }
    return {key: value for key, value in merged.items() if value is not None}


class TelegramApi:
    """The remote API surface consumed by the relay."""

    def __init__(self, client: RetryableApiClient) -> None:
        self._client = client

    @property
    def client(self) -> RetryableApiClient:
        return self._client

    async def _call(self, method: str, params: dict[str, Any]) -> ApiResponse:
        return ApiResponse.model_validate(await self._client.call(method, params))

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------

    async def send_message(self, chat_id: Any, text: str, **options: Any) -> ApiResponse:
        """``sendMessage``.  Options with value ``None`` are dropped."""
        params = {
            "chat_id": validate_chat_id(chat_id),
            "text": validate_text(text, max_length=MAX_MESSAGE_LENGTH),
        }
        return await self._call("sendMessage", _with_defaults(params, options))

    async def copy_message(
        self, chat_id: Any, from_chat_id: Any, message_id: int, **options: Any
    ) -> ApiResponse:
        """``copyMessage`` — clone *message_id* into *chat_id*.

        Pass ``caption=`` to override the copied caption.
        """
        if isinstance(message_id, bool) or not isinstance(message_id, int):
            raise ValidationError(f"Invalid message ID: {message_id!r}")
        params = {
            "chat_id": validate_chat_id(chat_id),
            "from_chat_id": validate_chat_id(from_chat_id),
            "message_id": message_id,
        }
        return await self._call("copyMessage", _with_defaults(params, options))

    # ------------------------------------------------------------------
    # Forum topics
    # ------------------------------------------------------------------

    async def create_forum_topic(
        self, chat_id: Any, name: str, icon_color: int | None = None
    ) -> ApiResponse:
        params = {
            "chat_id": validate_chat_id(chat_id),
            "name": validate_text(name, max_length=MAX_TOPIC_NAME_LENGTH),
            "icon_color": icon_color or DEFAULT_ICON_COLORS[0],
        }
        return await self._call("createForumTopic", params)

    async def get_forum_topic_icon_stickers(self) -> list[Any]:
        """Stickers usable as topic icons; empty on any failure."""
        try:
            response = await self._call("getForumTopicIconStickers", {})
        except RelayError as exc:
            logger.error("getForumTopicIconStickers failed: %s", exc)
            return []
        return list(response.result or []) if response.ok else []

    async def get_chat(self, chat_id: Any) -> ApiResponse:
        return await self._call("getChat", {"chat_id": validate_chat_id(chat_id)})

    async def is_forum(self, chat_id: Any) -> bool:
        """Whether *chat_id* is a forum-enabled supergroup.  ``False`` on error."""
        try:
            response = await self.get_chat(chat_id)
        except RelayError as exc:
            logger.error("is_forum: getChat failed for %s: %s", chat_id, exc)
            return False
        return bool(
            response.ok
            and isinstance(response.result, dict)
            and response.result.get("is_forum") is True
        )

    # ------------------------------------------------------------------
    # Bot management
    # ------------------------------------------------------------------

    async def set_webhook(self, url: str, secret: str = "") -> ApiResponse:
        return await self._call("setWebhook", {"url": url, "secret_token": secret})

    async def get_me(self) -> ApiResponse:
        return await self._call("getMe", {})
