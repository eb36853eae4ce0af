"""Copy a media message with a relay caption, degrading when that fails.

Some media kinds reject a caption (stickers, video notes).  The copy is
therefore tried three ways, in order:

1. one ``copyMessage`` carrying *caption*;
2. if the API answers ``ok: false``, *separate_text* as its own message
   followed by a bare copy;
3. if a call raised, *failure_text* followed by a bare copy.

A failure in the last step propagates to the caller.
"""

from __future__ import annotations

import logging

from tgrelay.bridge.telegram_api import TelegramApi
from tgrelay.core.errors import RelayError
from tgrelay.models.telegram import ApiResponse

logger = logging.getLogger(__name__)


async def copy_media_with_caption(
    api: TelegramApi,
    chat_id: int,
    from_chat_id: int,
    message_id: int,
    *,
    caption: str,
    separate_text: str,
    failure_text: str,
) -> ApiResponse:
    try:
        response = await api.copy_message(
            chat_id, from_chat_id, message_id, caption=caption
        )
        if response.ok:
            return response

        logger.info(
            "copy_media: caption rejected for chat %s (%s), sending separately",
            chat_id,
            response.description,
        )
        await api.send_message(chat_id, separate_text)
        return await api.copy_message(chat_id, from_chat_id, message_id)
    except RelayError as exc:
        logger.error(
            "copy_media: failed for chat %s message %s: %s", chat_id, message_id, exc
        )

    try:
        await api.send_message(chat_id, failure_text)
        return await api.copy_message(chat_id, from_chat_id, message_id)
    except RelayError as exc:
        logger.error(
            "copy_media: fallback failed for chat %s message %s: %s",
            chat_id,
            message_id,
            exc,
        )
        raise
