"""Bridge to the Telegram Bot API.

``RetryableApiClient`` owns the HTTP layer (timeout, retry, response shape);
``TelegramApi`` exposes the individual Bot API methods on top of it.
"""

from tgrelay.bridge.api_client import RetryableApiClient
from tgrelay.bridge.telegram_api import DEFAULT_ICON_COLORS, TelegramApi

__all__ = ["DEFAULT_ICON_COLORS", "RetryableApiClient", "TelegramApi"]
