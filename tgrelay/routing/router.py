"""DeliveryRouter — maps an administrator message back to a user.

Two addressing channels exist.  A reply to a forwarded message is resolved
through the identity tag embedded in the replied-to text; a message posted
inside a user's forum topic is resolved through the topic directory.  The
tag wins when both are present.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from tgrelay.bridge.telegram_api import TelegramApi
from tgrelay.codec.tags import IdentityTagCodec
from tgrelay.directory.topics import TopicDirectory
from tgrelay.models.telegram import ApiResponse, Message
from tgrelay.routing.formatting import (
    REPLY_FILE_NOTICE,
    REPLY_PREFIX,
    build_caption,
    escape_markdown,
)
from tgrelay.routing.media import copy_media_with_caption

logger = logging.getLogger(__name__)


class ResolvedVia(str, Enum):
    """Which addressing channel identified the recipient."""

    TAG = "tag"
    TOPIC = "topic"
    NONE = "none"


@dataclass(frozen=True)
class Resolution:
    user_id: int | None
    via: ResolvedVia

    @property
    def resolved(self) -> bool:
        return self.user_id is not None


UNRESOLVED = Resolution(user_id=None, via=ResolvedVia.NONE)


class DeliveryRouter:
    """Resolves recipients of administrator messages and delivers to them.

    Parameters
    ----------
    codec:
        Decodes identity tags from replied-to messages.
    topics:
        Thread-to-user directory, consulted in forum mode.
    api:
        Remote API used for delivery.
    admin_chat_id:
        Chat the administrator's messages are copied from.
    forum_mode:
        Whether thread-based resolution is enabled.
    """

    def __init__(
        self,
        codec: IdentityTagCodec,
        topics: TopicDirectory,
        api: TelegramApi,
        admin_chat_id: int,
        *,
        forum_mode: bool = False,
    ) -> None:
        self._codec = codec
        self._topics = topics
        self._api = api
        self._admin_chat_id = admin_chat_id
        self._forum_mode = forum_mode

    @property
    def forum_mode(self) -> bool:
        return self._forum_mode

    def resolve(self, message: Message) -> Resolution:
        """Identify the user *message* is addressed to."""
        replied = message.reply_to_message
        if replied is not None:
            user_id = self._codec.extract_user_id(replied.body)
            if user_id is not None:
                return Resolution(user_id=user_id, via=ResolvedVia.TAG)

        if self._forum_mode and message.message_thread_id is not None:
            user_id = self._topics.reverse_lookup(message.message_thread_id)
            logger.info(
                "resolve: thread %s maps to user %s", message.message_thread_id, user_id
            )
            if user_id is not None:
                return Resolution(user_id=user_id, via=ResolvedVia.TOPIC)

        return UNRESOLVED

    async def deliver(self, user_id: int, message: Message) -> ApiResponse:
        """Send the content of *message* to *user_id* as an admin reply.

        Raises
        ------
        RelayError
            If the text send fails, or both media attempts fail.
        """
        if message.text:
            return await self._api.send_message(
                user_id, f"💬 *Admin reply:*\n\n{escape_markdown(message.text)}"
            )
        return await copy_media_with_caption(
            self._api,
            user_id,
            self._admin_chat_id,
            message.message_id,
            caption=build_caption(REPLY_PREFIX, message.caption),
            separate_text=REPLY_PREFIX,
            failure_text=REPLY_FILE_NOTICE,
        )
