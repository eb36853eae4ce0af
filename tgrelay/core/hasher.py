"""Canonical JSON and hashing helpers for stored blobs.

Blobs written by the directories are serialised canonically so the same
logical value always produces the same bytes, and therefore the same
version token.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json(obj: Any) -> str:
    """Produce canonical JSON text — deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def blob_version(blob: str | None) -> str | None:
    """Version token for a stored blob.

    The token is the content hash of the raw text, so any writer that
    changes the blob changes the token.  An absent blob has no version.
    """
    if blob is None:
        return None
    return sha256_hex(blob.encode("utf-8"))
