"""tgrelay: stateless two-way Telegram relay bot.

End users message the bot; their messages are forwarded into one
administrator chat with a signed identity tag.  The administrator answers
by replying to a forwarded message, or by posting inside the user's forum
topic, and can broadcast to every tracked user with ``/post``.
"""

__version__ = "0.1.0"

from tgrelay.config import RelayConfig
from tgrelay.handlers.bot import RelayBot
from tgrelay.codec.tags import IdentityTagCodec

__all__ = ["IdentityTagCodec", "RelayBot", "RelayConfig", "__version__"]
