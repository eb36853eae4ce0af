"""Update handling: the RelayBot entry point and its two message handlers."""

from tgrelay.handlers.admin import AdminMessageHandler
from tgrelay.handlers.bot import RelayBot
from tgrelay.handlers.user import UserMessageHandler, identity_of

__all__ = ["AdminMessageHandler", "RelayBot", "UserMessageHandler", "identity_of"]
