"""Blob stores for the relay's durable state.

Backends:

1. **SQLite** (``SqliteStore``): persistent, crash-safe.
2. **In-memory** (``InMemoryStore``): volatile, for tests and local runs.
"""

from __future__ import annotations

from pathlib import Path

from tgrelay.store.base import KeyValueStore, StoredBlob, decode_json
from tgrelay.store.memory import InMemoryStore
from tgrelay.store.sqlite import SqliteStore

USER_TOPIC_MAPPING_KEY = "user_topic_mapping"
USER_LIST_KEY = "user_list"


def open_store(path: Path | None) -> KeyValueStore:
    """Return a SQLite store at *path*, or an in-memory store if ``None``."""
    if path is None:
        return InMemoryStore()
    return SqliteStore(path)


__all__ = [
    "InMemoryStore",
    "KeyValueStore",
    "SqliteStore",
    "StoredBlob",
    "USER_LIST_KEY",
    "USER_TOPIC_MAPPING_KEY",
    "decode_json",
    "open_store",
]
