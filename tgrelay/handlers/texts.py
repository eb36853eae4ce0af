"""Message templates sent by the relay to users and to the administrator."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from tgrelay.models.registry import UserRecord
from tgrelay.routing.formatting import escape_markdown, format_timestamp

ENABLED = "🟢 enabled"
DISABLED = "🔴 disabled"

# ----------------------------------------------------------------------
# User side
# ----------------------------------------------------------------------

WELCOME = (
    "👋 Hello! I am a message relay bot.\n\n"
    "Send me your message and I will forward it to the administrator, "
    "who will reply as soon as possible."
)
FORWARD_CONFIRMED = "✅ Your message has been sent to the administrator. Please wait for a reply."
FORWARD_FAILED = "❌ Sorry, your message could not be delivered. Please try again later."


def forward_text(text: str, tag: str, header: str | None) -> str:
    """Body of a forwarded text message; *header* is omitted in a user topic."""
    if header is None:
        return f"📝 *New message:*\n{text}\n\n📍 *From:* {tag}"
    return f"{header}\n📝 *Message:*\n{text}\n\n📍 *From:* {tag}"


def forward_caption(caption: str, media_label: str, tag: str, header: str | None) -> str:
    """Caption of a copied media message; *caption* is already escaped."""
    body = caption or media_label
    if header is None:
        return f"📝 *New message:*\n{body}\n\n📍 *From:* {tag}"
    if caption:
        return f"{header}\n📝 *Caption:* {caption}\n\n📍 *From:* {tag}"
    return f"{header}\n📝 {media_label}\n\n📍 *From:* {tag}"


# ----------------------------------------------------------------------
# Admin commands
# ----------------------------------------------------------------------


def admin_panel(*, tracking: bool, forum_mode: bool, is_forum_chat: bool) -> str:
    forum_line = ENABLED if forum_mode else DISABLED
    if is_forum_chat:
        forum_line += " ✅ forum group detected"
    return (
        "🔧 *Admin panel*\n\n"
        "👋 Welcome to the relay bot admin panel!\n\n"
        "📋 *Commands:*\n"
        "• `/status` - show bot status\n"
        "• `/help` - show help\n"
        "• `/post` - broadcast a message\n"
        "• `/users` - list tracked users (requires user tracking)\n\n"
        "💡 *Usage:*\n"
        "• Reply to a forwarded message to answer that user\n"
        "• Use /post to broadcast\n"
        "• In forum mode every user has their own topic\n\n"
        "📊 *System:*\n"
        f"• User tracking: {ENABLED if tracking else DISABLED}\n"
        f"• Forum mode: {forum_line}\n\n"
        "🤖 Ready and waiting for messages..."
    )


def status_report(
    *,
    user_count: int | None,
    forum_mode: bool,
    is_forum_chat: bool,
    topic_count: int,
    now: datetime | None = None,
) -> str:
    users = "tracking disabled" if user_count is None else str(user_count)
    forum = ENABLED if forum_mode else DISABLED
    if is_forum_chat:
        forum += " (forum group)"
    return (
        "📊 *Bot status*\n\n"
        "🟢 State: running\n"
        "🔄 Mode: stateless relay\n"
        f"👥 Tracked users: {users}\n"
        f"🗣️ Forum mode: {forum}\n"
        f"📝 User topics: {topic_count}\n"
        f"⏰ Checked at: {format_timestamp(now)}"
    )


def help_text(*, forum_mode: bool) -> str:
    forum_help = (
        "\n\n🗣️ *Forum mode:*\n"
        "• Every user has their own topic\n"
        "• Post inside a topic to message that user\n"
        "• Media posted in a topic is relayed too"
        if forum_mode
        else ""
    )
    return (
        "❓ *Help*\n\n"
        "🔄 *Replying:*\n"
        "Reply to a forwarded message to send your answer to that user\n\n"
        "📢 *Broadcast:*\n"
        "• `/post all text` - send to every tracked user\n"
        "• `/post 123,456,789 text` - send to the listed users\n"
        "• Reply to a media message with /post to broadcast the media\n\n"
        "👥 *Users:*\n"
        "• `/users` - list tracked users\n\n"
        "📝 *Messages:*\n"
        "• Text, photos, files and other media are supported\n"
        f"• Markdown formatting is supported{forum_help}\n\n"
        "⚙️ *Commands:*\n"
        "• `/start` - show the admin panel\n"
        "• `/status` - show bot status\n"
        "• `/help` - show this help\n"
        "• `/post` - broadcast a message\n"
        "• `/users` - list tracked users"
    )


POST_USAGE = (
    "📢 *Broadcast usage*\n\n"
    "🎯 *Format:*\n"
    "• `/post all text` - send to every tracked user\n"
    "• `/post 123,456,789 text` - send to the listed users\n\n"
    "💡 *Examples:*\n"
    "• `/post all Maintenance tonight 22:00-23:00`\n"
    "• `/post 123456789,987654321 Hello, this is a test`\n\n"
    "📎 *Media:*\n"
    "Reply to a message with a photo or file, then use /post\n\n"
    "⚠️ *Notes:*\n"
    "• 'all' requires user tracking\n"
    "• Separate user ids with commas\n"
    "• Broadcasts are rate limited automatically"
)
POST_MISSING_MESSAGE = "❌ Please provide the message to broadcast"
POST_ALL_NEEDS_TRACKING = (
    "❌ Broadcasting to 'all' requires user tracking\n\n"
    "Set `TGRELAY_ENABLE_USER_TRACKING=true`"
)
POST_NO_VALID_IDS = (
    "❌ No valid user ids found\n\n"
    "Check the format: `/post 123,456,789 text`"
)


def post_started(target_count: int, *, media: bool = False) -> str:
    if media:
        return f"🚀 Starting media broadcast...\n\n📊 Recipients: {target_count}"
    return f"🚀 Starting broadcast...\n\n📊 Recipients: {target_count}\n⏳ Please wait..."


TRACKING_DISABLED = (
    "❌ User tracking is disabled\n\n"
    "Set `TGRELAY_ENABLE_USER_TRACKING=true`"
)
NO_USERS_YET = "📭 No users recorded yet\n\nUsers are recorded when they first message the bot"


def user_list(recent: Sequence[UserRecord], total: int) -> str:
    entries = "\n\n".join(
        f"{index}. {escape_markdown(user.display_name)}\n"
        f"   ID: `{user.chat_id}`\n"
        f"   Last active: {format_timestamp(user.last_active)}"
        for index, user in enumerate(recent, start=1)
    )
    more = "\n\n..." if total > len(recent) else ""
    return f"👥 *Users* (latest {len(recent)}/{total})\n\n{entries}{more}"


# ----------------------------------------------------------------------
# Admin replies
# ----------------------------------------------------------------------


def unresolved_reply(*, forum_mode: bool) -> str:
    if forum_mode:
        return (
            "⚠️ Could not identify the user. Make sure you:\n"
            "• reply to a forwarded message that carries a user tag\n"
            "• or post directly in that user's topic"
        )
    return "⚠️ Could not identify the user. Reply to a forwarded message that carries a user tag."


UNKNOWN_TOPIC = "⚠️ No user is linked to this topic. Topics must be created by a user message."
HINT = (
    "💡 *Tip:* reply to a user's message to answer them, or use a broadcast command.\n\n"
    "📢 Broadcast: `/post all text`\n"
    "❓ Help: `/help`"
)


def delivered(user_id: int, *, via_reply: bool) -> str:
    what = "Reply" if via_reply else "Message"
    return f"✅ {what} sent to user (ID: {user_id})"


def delivery_failed(description: str | None, *, via_reply: bool) -> str:
    what = "Reply" if via_reply else "Message"
    return f"❌ {what} could not be sent: {description or 'unknown error'}"


def handler_error(detail: str) -> str:
    return f"❌ Error while processing the message: {detail}"


def update_error(detail: str) -> str:
    return f"🚨 Bot error: {detail}"
