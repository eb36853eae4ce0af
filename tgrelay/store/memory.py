"""In-memory store — volatile, for tests and single-process runs."""

from __future__ import annotations

import threading

from tgrelay.core.hasher import blob_version
from tgrelay.store.base import StoredBlob


class InMemoryStore:
    """Dict-backed ``KeyValueStore``.

    State lives only as long as the process, which matches how a recycled
    webhook worker would lose it.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def get_versioned(self, key: str) -> StoredBlob:
        with self._lock:
            value = self._data.get(key)
        return StoredBlob(value=value, version=blob_version(value))

    def compare_and_set(
        self, key: str, value: str, expected_version: str | None
    ) -> bool:
        with self._lock:
            if blob_version(self._data.get(key)) != expected_version:
                return False
            self._data[key] = value
            return True

    def __repr__(self) -> str:
        return f"InMemoryStore(keys={sorted(self._data)!r})"
