"""Input validation for public relay operations.

Chat ids may be negative (groups and channels); user ids never are.  Both
are accepted as ``int`` or as their decimal string form and normalised to
``int``.
"""

from __future__ import annotations

import re
from typing import Any

from tgrelay.core.errors import ValidationError

_CHAT_ID_RE = re.compile(r"^-?\d+$")
_USER_ID_RE = re.compile(r"^\d+$")

MAX_MESSAGE_LENGTH = 4096
MAX_CAPTION_LENGTH = 1024
MAX_TOPIC_NAME_LENGTH = 128


def _as_text(value: Any) -> str:
    # bool is an int subclass; True must not pass as chat id 1
    if value is None or isinstance(value, bool):
        return ""
    return str(value).strip()


def validate_chat_id(value: Any) -> int:
    """Return *value* as an integer chat id or raise ``ValidationError``."""
    text = _as_text(value)
    if not _CHAT_ID_RE.match(text):
        raise ValidationError(f"Invalid chat ID format: {value!r}")
    return int(text)


def validate_user_id(value: Any) -> int:
    """Return *value* as a non-negative integer user id or raise."""
    text = _as_text(value)
    if not _USER_ID_RE.match(text):
        raise ValidationError(f"Invalid user ID format: {value!r}")
    return int(text)


def validate_text(value: Any, *, max_length: int | None = None) -> str:
    """Require a string no longer than *max_length* characters."""
    if not isinstance(value, str):
        raise ValidationError("Text must be a string")
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"Text exceeds maximum length of {max_length}")
    return value
