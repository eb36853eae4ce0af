"""Identity tag format versions and their parsers.

``TAG_PRIORITY`` is the resolution contract: the codec tries each variant in
this order and the first variant found anywhere in the text decides the
result.  A message carrying several markers is therefore always resolved by
its newest-format marker, never by whichever happens to come first in the
text.

Rendered forms::

    MENTION_SIGNED    [@alice (42:0123456789abcdef)](https://t.me/alice)
    MENTION_LEGACY    [@alice](https://t.me/alice)
    DEEP_LINK_SIGNED  [👤 USER:42:0123456789abcdef](tg://user?id=42)
    DEEP_LINK_LEGACY  [👤 USER:42](tg://user?id=42)
    BRACKET_SIGNED    [USER:42:0123456789abcdef]
    BRACKET_LEGACY    [USER:42]
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from tgrelay.models.identity import SignedTag, TagFormat

_SIG = r"([a-f0-9]{16})"


@dataclass(frozen=True)
class TagVariant:
    """One tag format: how to find it and how to read it."""

    format: TagFormat
    pattern: re.Pattern[str]
    parse: Callable[[re.Match[str]], SignedTag]

    def search(self, text: str) -> SignedTag | None:
        match = self.pattern.search(text)
        return self.parse(match) if match else None


def _signed(fmt: TagFormat) -> Callable[[re.Match[str]], SignedTag]:
    def parse(match: re.Match[str]) -> SignedTag:
        return SignedTag(format=fmt, user_id=int(match[1]), signature=match[2])

    return parse


def _unsigned(fmt: TagFormat) -> Callable[[re.Match[str]], SignedTag]:
    def parse(match: re.Match[str]) -> SignedTag:
        return SignedTag(format=fmt, user_id=int(match[1]))

    return parse


def _mention_legacy(match: re.Match[str]) -> SignedTag:
    return SignedTag(format=TagFormat.MENTION_LEGACY, username=match[1])


# re.ASCII keeps \w and \d to [A-Za-z0-9_] and [0-9], matching Telegram
# usernames and numeric ids.
TAG_VARIANTS: dict[TagFormat, TagVariant] = {
    TagFormat.MENTION_SIGNED: TagVariant(
        TagFormat.MENTION_SIGNED,
        re.compile(r"\[@\w+ \((\d+):" + _SIG + r"\)\]\(https://t\.me/\w+\)", re.ASCII),
        _signed(TagFormat.MENTION_SIGNED),
    ),
    TagFormat.MENTION_LEGACY: TagVariant(
        TagFormat.MENTION_LEGACY,
        re.compile(r"\[@(\w+)\]\(https://t\.me/\w+\)", re.ASCII),
        _mention_legacy,
    ),
    TagFormat.DEEP_LINK_SIGNED: TagVariant(
        TagFormat.DEEP_LINK_SIGNED,
        re.compile(r"\[👤 USER:(\d+):" + _SIG + r"\]\(tg://user\?id=\d+\)", re.ASCII),
        _signed(TagFormat.DEEP_LINK_SIGNED),
    ),
    TagFormat.DEEP_LINK_LEGACY: TagVariant(
        TagFormat.DEEP_LINK_LEGACY,
        re.compile(r"\[👤 USER:(\d+)\]\(tg://user\?id=\d+\)", re.ASCII),
        _unsigned(TagFormat.DEEP_LINK_LEGACY),
    ),
    TagFormat.BRACKET_SIGNED: TagVariant(
        TagFormat.BRACKET_SIGNED,
        re.compile(r"\[USER:(\d+):" + _SIG + r"\]", re.ASCII),
        _signed(TagFormat.BRACKET_SIGNED),
    ),
    TagFormat.BRACKET_LEGACY: TagVariant(
        TagFormat.BRACKET_LEGACY,
        re.compile(r"\[USER:(\d+)\](?![:\w])", re.ASCII),
        _unsigned(TagFormat.BRACKET_LEGACY),
    ),
}

TAG_PRIORITY: tuple[TagFormat, ...] = (
    TagFormat.MENTION_SIGNED,
    TagFormat.MENTION_LEGACY,
    TagFormat.DEEP_LINK_SIGNED,
    TagFormat.DEEP_LINK_LEGACY,
    TagFormat.BRACKET_SIGNED,
    TagFormat.BRACKET_LEGACY,
)


def find_tag(text: str) -> SignedTag | None:
    """Return the highest-priority tag present in *text*, unverified."""
    for fmt in TAG_PRIORITY:
        tag = TAG_VARIANTS[fmt].search(text)
        if tag is not None:
            return tag
    return None


def render_signed(user_id: int, signature: str, username: str | None = None) -> str:
    if username:
        return f"[@{username} ({user_id}:{signature})](https://t.me/{username})"
    return f"[👤 USER:{user_id}:{signature}](tg://user?id={user_id})"


def render_unsigned(user_id: object, username: str | None = None) -> str:
    if username:
        return f"[@{username}](https://t.me/{username})"
    return f"[👤 USER:{user_id}](tg://user?id={user_id})"
