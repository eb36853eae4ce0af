"""Outbound delivery: admin replies routed to one user, broadcasts to many."""

from tgrelay.routing.broadcast import BroadcastEngine, format_report, parse_post_targets
from tgrelay.routing.formatting import (
    BROADCAST_PREFIX,
    REPLY_PREFIX,
    build_caption,
    escape_markdown,
    user_header,
)
from tgrelay.routing.media import copy_media_with_caption
from tgrelay.routing.router import DeliveryRouter, Resolution, ResolvedVia

__all__ = [
    "BROADCAST_PREFIX",
    "BroadcastEngine",
    "DeliveryRouter",
    "REPLY_PREFIX",
    "Resolution",
    "ResolvedVia",
    "build_caption",
    "copy_media_with_caption",
    "escape_markdown",
    "format_report",
    "parse_post_targets",
    "user_header",
]
