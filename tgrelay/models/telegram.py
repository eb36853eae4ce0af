"""Inbound Telegram Bot API objects — only the fields the relay reads.

Unknown fields are ignored so newer Bot API versions parse cleanly.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_MEDIA_KINDS: tuple[tuple[str, str], ...] = (
    ("photo", "📷 Photo"),
    ("video", "🎬 Video"),
    ("document", "📄 Document"),
    ("voice", "🎵 Voice message"),
    ("audio", "🎵 Audio"),
    ("video_note", "🎥 Video message"),
    ("sticker", "🎭 Sticker"),
    ("animation", "🎬 Animation"),
)


class TelegramUser(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    is_bot: bool = False
    first_name: str = ""
    username: str | None = None


class TelegramChat(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    type: str = "private"
    is_forum: bool = False


class Message(BaseModel):
    """A Telegram ``Message``."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    message_id: int
    from_user: TelegramUser | None = Field(default=None, alias="from")
    chat: TelegramChat
    message_thread_id: int | None = None
    text: str | None = None
    caption: str | None = None
    reply_to_message: Message | None = None

    photo: list[Any] | None = None
    video: Any = None
    document: Any = None
    voice: Any = None
    audio: Any = None
    video_note: Any = None
    sticker: Any = None
    animation: Any = None

    forum_topic_created: Any = None
    forum_topic_edited: Any = None
    forum_topic_closed: Any = None
    forum_topic_reopened: Any = None

    @property
    def body(self) -> str | None:
        """Text of a text message, caption of a media message."""
        return self.text if self.text is not None else self.caption

    @property
    def media_label(self) -> str:
        """Short human label for the attached media kind."""
        for field_name, label in _MEDIA_KINDS:
            if getattr(self, field_name):
                return label
        return "📷 Photo/File"

    @property
    def has_content(self) -> bool:
        """Whether the message carries text or a relayable media kind."""
        if self.text:
            return True
        return any(getattr(self, name) for name, _ in _MEDIA_KINDS)

    @property
    def is_topic_service_message(self) -> bool:
        """Forum service events and content-less messages are not relayed."""
        return bool(
            self.forum_topic_created
            or self.forum_topic_edited
            or self.forum_topic_closed
            or self.forum_topic_reopened
            or not self.has_content
        )


class Update(BaseModel):
    """One webhook delivery."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    update_id: int
    message: Message | None = None


class ApiResponse(BaseModel):
    """The Bot API response envelope ``{ok, result?, description?}``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    ok: bool
    result: Any = None
    description: str | None = None
    error_code: int | None = None
