"""Messages from end users: forwarded into the administrator chat."""

from __future__ import annotations

import logging

from tgrelay.bridge.telegram_api import TelegramApi
from tgrelay.codec.tags import IdentityTagCodec
from tgrelay.directory.registry import UserRegistry
from tgrelay.directory.topics import TopicDirectory
from tgrelay.handlers import texts
from tgrelay.models.identity import UserIdentity
from tgrelay.models.telegram import ApiResponse, Message
from tgrelay.routing.formatting import escape_markdown, user_header

logger = logging.getLogger(__name__)


def identity_of(message: Message) -> UserIdentity:
    """Describe the sender of *message*.  Requires ``message.from_user``."""
    sender = message.from_user
    if sender is None:
        raise ValueError("message has no sender")
    return UserIdentity(
        user_id=sender.id,
        chat_id=message.chat.id,
        username=sender.username or None,
        display_name=sender.username or sender.first_name or "Unknown",
    )


class UserMessageHandler:
    """Forwards user messages to the administrator and confirms receipt.

    Parameters
    ----------
    api:
        Remote API.
    codec:
        Builds the identity tag appended to every forwarded message.
    topics:
        Per-user forum topics, used when forum mode is on.
    registry:
        Known-user list, updated when user tracking is on.
    admin_chat_id:
        Destination of forwarded messages.
    track_users:
        Record every sender in *registry*.
    forum_mode:
        Post each user's messages into their own forum topic when the
        administrator chat is a forum.
    """

    def __init__(
        self,
        api: TelegramApi,
        codec: IdentityTagCodec,
        topics: TopicDirectory,
        registry: UserRegistry,
        admin_chat_id: int,
        *,
        track_users: bool = False,
        forum_mode: bool = False,
    ) -> None:
        self._api = api
        self._codec = codec
        self._topics = topics
        self._registry = registry
        self._admin_chat_id = admin_chat_id
        self._track_users = track_users
        self._forum_mode = forum_mode

    async def handle(self, message: Message) -> None:
        """Process one user message.  Never raises."""
        identity = identity_of(message)
        try:
            await self._relay(identity, message)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "User message from %s could not be relayed: %s", identity.chat_id, exc
            )
            try:
                await self._api.send_message(identity.chat_id, texts.FORWARD_FAILED)
            except Exception as notify_exc:  # noqa: BLE001
                logger.error(
                    "Failure notice to %s not sent: %s", identity.chat_id, notify_exc
                )

    async def _relay(self, identity: UserIdentity, message: Message) -> None:
        if self._track_users:
            self._registry.track(identity)

        if message.text == "/start":
            await self._api.send_message(identity.chat_id, texts.WELCOME)
            return

        tag = self._codec.build_tag(identity.chat_id, identity.username)
        thread_id = await self._thread_for(identity)
        header = None if thread_id is not None else user_header(identity)

        response = await self._forward(identity, message, tag, header, thread_id)
        if not response.ok:
            logger.warning(
                "Forward from %s rejected: %s", identity.chat_id, response.description
            )
            return

        logger.info(
            "Forwarded message: user %s -> admin%s",
            identity.display_name,
            f" (thread {thread_id})" if thread_id is not None else "",
        )
        await self._api.send_message(identity.chat_id, texts.FORWARD_CONFIRMED)

    async def _thread_for(self, identity: UserIdentity) -> int | None:
        if not self._forum_mode:
            return None
        if not await self._api.is_forum(self._admin_chat_id):
            return None
        return await self._topics.get_or_create_topic(
            identity.user_id, identity.display_name
        )

    async def _forward(
        self,
        identity: UserIdentity,
        message: Message,
        tag: str,
        header: str | None,
        thread_id: int | None,
    ) -> ApiResponse:
        if message.text:
            return await self._api.send_message(
                self._admin_chat_id,
                texts.forward_text(message.text, tag, header),
                message_thread_id=thread_id,
            )

        caption = escape_markdown(message.caption) if message.caption else ""
        return await self._api.copy_message(
            self._admin_chat_id,
            identity.chat_id,
            message.message_id,
            message_thread_id=thread_id,
            caption=texts.forward_caption(caption, message.media_label, tag, header),
        )
