"""Key-value store protocol.

The relay's durable state is a handful of JSON blobs, each under one key.
There are no transactions, but every backend offers a conditional write:
``compare_and_set`` replaces a blob only if it still has the version the
caller read.  Read-modify-write callers use it to detect a concurrent
writer instead of silently overwriting its change.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from tgrelay.core.errors import StorageCorrupt

logger = logging.getLogger(__name__)


class StoredBlob(BaseModel):
    """A blob together with the version token it was read at.

    ``version`` is ``None`` when the key does not exist.
    """

    model_config = ConfigDict(frozen=True)

    value: str | None = None
    version: str | None = None


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol every tgrelay store backend implements."""

    def get(self, key: str) -> str | None:
        """Return the raw blob under *key*, or ``None``."""
        ...

    def put(self, key: str, value: str) -> None:
        """Unconditionally replace the blob under *key*."""
        ...

    def get_versioned(self, key: str) -> StoredBlob:
        """Return the blob and its current version token."""
        ...

    def compare_and_set(
        self, key: str, value: str, expected_version: str | None
    ) -> bool:
        """Write *value* only if *key* is still at *expected_version*.

        ``expected_version=None`` means "only if the key does not exist".
        Returns ``True`` if the write happened.
        """
        ...


def decode_json(key: str, raw: str | None, expected: type) -> Any:
    """Decode a stored blob and check its top-level type.

    Returns ``None`` for a missing blob.

    Raises
    ------
    StorageCorrupt
        If *raw* is not JSON, or decodes to something other than *expected*.
    """
    if raw is None or raw == "":
        return None
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise StorageCorrupt(key, f"invalid JSON ({exc})") from exc
    if not isinstance(value, expected):
        raise StorageCorrupt(
            key, f"expected {expected.__name__}, got {type(value).__name__}"
        )
    return value
