"""Messages from the administrator chat: commands, replies, broadcasts."""

from __future__ import annotations

import logging
from typing import Any, Literal, Union

from tgrelay.bridge.telegram_api import TelegramApi
from tgrelay.codec.tags import IdentityTagCodec
from tgrelay.directory.registry import UserRegistry
from tgrelay.directory.topics import TopicDirectory
from tgrelay.handlers import texts
from tgrelay.models.broadcast import (
    ALL_USERS,
    BroadcastJob,
    MediaPayload,
    Payload,
    TextPayload,
)
from tgrelay.models.telegram import Message
from tgrelay.routing.broadcast import BroadcastEngine, format_report, parse_post_targets
from tgrelay.routing.formatting import escape_markdown
from tgrelay.routing.router import DeliveryRouter

logger = logging.getLogger(__name__)

POST_COMMAND = "/post"

Targets = Union[Literal["all"], list[str]]


class AdminMessageHandler:
    """Handles everything posted in the administrator chat.

    Parameters
    ----------
    api:
        Remote API.
    codec:
        Used to tell a broadcast-by-reply apart from a reply to a user.
    router:
        Resolves and delivers replies to users.
    broadcaster:
        Executes ``/post`` broadcasts.
    registry:
        Known users, for ``/users`` and ``/status``.
    topics:
        Forum topic directory, for ``/status``.
    admin_chat_id:
        The administrator chat.
    track_users, forum_mode:
        Feature switches, reported in ``/start`` and ``/status``.
    max_recent_users:
        Length of the ``/users`` listing.
    batch_size, inter_batch_delay:
        Broadcast pacing.
    """

    def __init__(
        self,
        api: TelegramApi,
        codec: IdentityTagCodec,
        router: DeliveryRouter,
        broadcaster: BroadcastEngine,
        registry: UserRegistry,
        topics: TopicDirectory,
        admin_chat_id: int,
        *,
        track_users: bool = False,
        forum_mode: bool = False,
        max_recent_users: int = 20,
        batch_size: int = 10,
        inter_batch_delay: float = 0.1,
    ) -> None:
        self._api = api
        self._codec = codec
        self._router = router
        self._broadcaster = broadcaster
        self._registry = registry
        self._topics = topics
        self._admin_chat_id = admin_chat_id
        self._track_users = track_users
        self._forum_mode = forum_mode
        self._max_recent_users = max_recent_users
        self._batch_size = batch_size
        self._inter_batch_delay = inter_batch_delay

    async def handle(self, message: Message) -> None:
        """Process one administrator message.  Never raises."""
        try:
            await self._dispatch(message)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Admin message %s failed: %s", message.message_id, exc)
            try:
                await self._notify(
                    message, texts.handler_error(escape_markdown(str(exc))), reply=False
                )
            except Exception as notify_exc:  # noqa: BLE001
                logger.error("Admin error notice not sent: %s", notify_exc)

    async def _notify(self, message: Message, text: str, *, reply: bool = True) -> None:
        """Answer in the administrator chat, in the thread *message* came from."""
        options: dict[str, Any] = {"message_thread_id": message.message_thread_id}
        if reply:
            options["reply_to_message_id"] = message.message_id
        await self._api.send_message(self._admin_chat_id, text, **options)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _dispatch(self, message: Message) -> None:
        text = message.text or ""

        if text == "/start":
            await self._start(message)
            return
        if text == "/status":
            await self._status(message)
            return
        if text == "/help":
            await self._notify(
                message, texts.help_text(forum_mode=self._forum_mode), reply=False
            )
            return
        if text == "/users":
            await self._users(message)
            return

        if text.startswith(POST_COMMAND):
            replied = message.reply_to_message
            if (
                replied is not None
                and not replied.is_topic_service_message
                and not self._codec.has_tag_marker(replied.body)
            ):
                await self._post_media(message, replied)
            else:
                await self._post_text(message)
            return

        if message.reply_to_message is not None:
            await self._reply(message, via_reply=True)
        elif self._forum_mode and message.message_thread_id is not None:
            if message.is_topic_service_message:
                logger.info(
                    "Ignoring service message in thread %s", message.message_thread_id
                )
                return
            await self._reply(message, via_reply=False)
        else:
            await self._notify(message, texts.HINT)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def _is_forum_chat(self) -> bool:
        if not self._forum_mode:
            return False
        return await self._api.is_forum(self._admin_chat_id)

    async def _start(self, message: Message) -> None:
        panel = texts.admin_panel(
            tracking=self._track_users,
            forum_mode=self._forum_mode,
            is_forum_chat=await self._is_forum_chat(),
        )
        await self._notify(message, panel, reply=False)

    async def _status(self, message: Message) -> None:
        report = texts.status_report(
            user_count=len(self._registry.list_users()) if self._track_users else None,
            forum_mode=self._forum_mode,
            is_forum_chat=await self._is_forum_chat(),
            topic_count=self._topics.topic_count() if self._forum_mode else 0,
        )
        await self._notify(message, report, reply=False)

    async def _users(self, message: Message) -> None:
        if not self._track_users:
            await self._notify(message, texts.TRACKING_DISABLED, reply=False)
            return
        users = self._registry.list_users()
        if not users:
            await self._notify(message, texts.NO_USERS_YET, reply=False)
            return
        recent = self._registry.recent(self._max_recent_users)
        await self._notify(message, texts.user_list(recent, len(users)), reply=False)

    # ------------------------------------------------------------------
    # Broadcast
    # ------------------------------------------------------------------

    async def _parse_post(self, message: Message) -> tuple[Targets, str] | None:
        """Parse ``/post`` arguments, answering the administrator on error."""
        command_text = (message.text or "")[len(POST_COMMAND):].strip()
        targets, post_message = parse_post_targets(command_text)
        if not post_message:
            await self._notify(message, texts.POST_MISSING_MESSAGE)
            return None
        if targets == ALL_USERS and not self._track_users:
            await self._notify(message, texts.POST_ALL_NEEDS_TRACKING)
            return None
        if targets != ALL_USERS and not targets:
            await self._notify(message, texts.POST_NO_VALID_IDS)
            return None
        return targets, post_message

    async def _post_text(self, message: Message) -> None:
        if not (message.text or "")[len(POST_COMMAND):].strip():
            await self._notify(message, texts.POST_USAGE)
            return
        parsed = await self._parse_post(message)
        if parsed is None:
            return
        targets, post_message = parsed
        await self._run_broadcast(message, targets, TextPayload(text=post_message), media=False)

    async def _post_media(self, message: Message, replied: Message) -> None:
        parsed = await self._parse_post(message)
        if parsed is None:
            return
        targets, post_message = parsed
        payload = MediaPayload(
            from_chat_id=self._admin_chat_id,
            message_id=replied.message_id,
            caption=post_message,
        )
        await self._run_broadcast(message, targets, payload, media=True)

    async def _run_broadcast(
        self, message: Message, targets: Targets, payload: Payload, *, media: bool
    ) -> None:
        count = self._broadcaster.count_targets(targets)
        await self._notify(message, texts.post_started(count, media=media))

        job = BroadcastJob(
            targets=targets,
            payload=payload,
            batch_size=self._batch_size,
            inter_batch_delay=self._inter_batch_delay,
        )
        result = await self._broadcaster.broadcast(job)
        title = "Media broadcast report" if media else "Broadcast report"
        await self._notify(message, format_report(result, title=title), reply=False)

    # ------------------------------------------------------------------
    # Replies
    # ------------------------------------------------------------------

    async def _reply(self, message: Message, *, via_reply: bool) -> None:
        resolution = self._router.resolve(message)
        if resolution.user_id is None:
            notice = (
                texts.unresolved_reply(forum_mode=self._forum_mode)
                if via_reply
                else texts.UNKNOWN_TOPIC
            )
            await self._notify(message, notice)
            return

        response = await self._router.deliver(resolution.user_id, message)
        if response.ok:
            logger.info(
                "Delivered admin message to user %s via %s",
                resolution.user_id,
                resolution.via.value,
            )
            await self._notify(
                message, texts.delivered(resolution.user_id, via_reply=via_reply)
            )
        else:
            await self._notify(
                message,
                texts.delivery_failed(response.description, via_reply=via_reply),
            )
