"""tgrelay data models — all Pydantic v2, all frozen (immutable)."""

from tgrelay.models.broadcast import (
    ALL_USERS,
    BroadcastJob,
    DeliveryResult,
    MediaPayload,
    Payload,
    TextPayload,
)
from tgrelay.models.identity import SignedTag, SigningMode, TagFormat, UserIdentity
from tgrelay.models.registry import UserRecord
from tgrelay.models.telegram import (
    ApiResponse,
    Message,
    TelegramChat,
    TelegramUser,
    Update,
)

__all__ = [
    # identity
    "SigningMode",
    "TagFormat",
    "UserIdentity",
    "SignedTag",
    # registry
    "UserRecord",
    # broadcast
    "ALL_USERS",
    "BroadcastJob",
    "DeliveryResult",
    "MediaPayload",
    "Payload",
    "TextPayload",
    # telegram
    "ApiResponse",
    "Message",
    "TelegramChat",
    "TelegramUser",
    "Update",
]
