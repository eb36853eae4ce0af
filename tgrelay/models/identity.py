"""Identity models — who a relayed message belongs to and how that is tagged."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class SigningMode(str, Enum):
    """How identity signatures are produced.

    DEGRADED tags are an unkeyed hash of the user id: anyone can forge one.
    """

    HMAC = "hmac"
    DEGRADED = "degraded"


class TagFormat(str, Enum):
    """Versions of the identity tag embedded in forwarded text.

    Declaration order is resolution priority, newest format first.
    """

    MENTION_SIGNED = "mention_signed"
    MENTION_LEGACY = "mention_legacy"
    DEEP_LINK_SIGNED = "deep_link_signed"
    DEEP_LINK_LEGACY = "deep_link_legacy"
    BRACKET_SIGNED = "bracket_signed"
    BRACKET_LEGACY = "bracket_legacy"

    @property
    def is_signed(self) -> bool:
        return self in (
            TagFormat.MENTION_SIGNED,
            TagFormat.DEEP_LINK_SIGNED,
            TagFormat.BRACKET_SIGNED,
        )


class UserIdentity(BaseModel):
    """A relayed end-user as seen on an inbound message."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    chat_id: int
    username: str | None = None
    display_name: str = "Unknown"


class SignedTag(BaseModel):
    """An identity tag recovered from text.  Never stored.

    ``user_id`` is ``None`` for the legacy mention format, which carries only
    a username.  ``signature`` is ``None`` for every unsigned format.
    """

    model_config = ConfigDict(frozen=True)

    format: TagFormat
    user_id: int | None = None
    signature: str | None = None
    username: str | None = None
