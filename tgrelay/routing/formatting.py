"""Text helpers shared by the router, the broadcaster and the handlers."""

from __future__ import annotations

import re
from datetime import datetime, timezone

from tgrelay.core.validation import MAX_CAPTION_LENGTH
from tgrelay.models.identity import UserIdentity

REPLY_PREFIX = "💬 Admin reply:"
BROADCAST_PREFIX = "📢 Admin broadcast:"
REPLY_FILE_NOTICE = "💬 The administrator sent you a file"
BROADCAST_FILE_NOTICE = "📎 The administrator also sent a file"
ELLIPSIS = "..."

_MARKDOWN_SPECIAL = re.compile(r"([_*\[\]()~`>#+=|{}.!-])")


def escape_markdown(text: str) -> str:
    """Backslash-escape markup-significant characters.

    >>> escape_markdown("1+1=2!")
    '1\\\\+1\\\\=2\\\\!'
    """
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


def build_caption(prefix: str, body: str | None, limit: int = MAX_CAPTION_LENGTH) -> str:
    """Join *prefix* and *body* and fit the result into *limit* characters.

    An over-long body is cut and marked with ``...``; the prefix is kept.
    """
    if not body:
        return prefix[:limit]
    caption = f"{prefix}\n\n{body}"
    if len(caption) <= limit:
        return caption
    keep = max(0, limit - len(prefix) - 2 - len(ELLIPSIS))
    return f"{prefix}\n\n{body[:keep]}{ELLIPSIS}"


def format_timestamp(moment: datetime | None = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def user_header(identity: UserIdentity, moment: datetime | None = None) -> str:
    """Header placed above a forwarded message outside forum mode."""
    lines = [
        f"📩 *From: {escape_markdown(identity.display_name)}*",
        f"🆔 ID: `{identity.user_id}`",
    ]
    if identity.username:
        lines.append(f"👤 Username: @{escape_markdown(identity.username)}")
    lines.append(f"⏰ Time: {format_timestamp(moment)}")
    lines.append("────────────────────")
    return "\n".join(lines)
