"""SQLite-backed store — persistent, survives process restart.

Each key is one row.  The version token is the content hash of the value,
so ``compare_and_set`` is a single guarded ``UPDATE`` (or an ``INSERT`` that
fails on the primary key when the caller expected the key to be absent).
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from tgrelay.core.hasher import blob_version
from tgrelay.store.base import StoredBlob

logger = logging.getLogger(__name__)

_CREATE_BLOBS = """
CREATE TABLE IF NOT EXISTS blobs (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    version    TEXT NOT NULL,
    updated_at TEXT DEFAULT (datetime('now'))
);
"""


class SqliteStore:
    """``KeyValueStore`` over a single SQLite file.

    Every method is a blocking ``sqlite3`` call and runs directly on the
    event loop when used from the async handlers.  Each call is a single
    keyed row read or write on a small table, so it stays short; move the
    calls to a worker thread before storing anything larger.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            with conn:
                conn.execute(_CREATE_BLOBS)
        finally:
            conn.close()
        logger.info("SqliteStore: using %s", self._db_path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    # ------------------------------------------------------------------
    # KeyValueStore
    # ------------------------------------------------------------------

    def get(self, key: str) -> str | None:
        return self.get_versioned(key).value

    def get_versioned(self, key: str) -> StoredBlob:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT value, version FROM blobs WHERE key = ?", (key,)
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return StoredBlob()
        return StoredBlob(value=row[0], version=row[1])

    def put(self, key: str, value: str) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    "INSERT INTO blobs (key, value, version) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                    "version = excluded.version, updated_at = datetime('now')",
                    (key, value, blob_version(value)),
                )
        finally:
            conn.close()

    def compare_and_set(
        self, key: str, value: str, expected_version: str | None
    ) -> bool:
        new_version = blob_version(value)
        conn = self._connect()
        try:
            with conn:
                if expected_version is None:
                    try:
                        conn.execute(
                            "INSERT INTO blobs (key, value, version) VALUES (?, ?, ?)",
                            (key, value, new_version),
                        )
                    except sqlite3.IntegrityError:
                        return False
                    return True
                cursor = conn.execute(
                    "UPDATE blobs SET value = ?, version = ?, "
                    "updated_at = datetime('now') WHERE key = ? AND version = ?",
                    (value, new_version, key, expected_version),
                )
                return cursor.rowcount == 1
        finally:
            conn.close()

    def __repr__(self) -> str:
        return f"SqliteStore(db_path={str(self._db_path)!r})"
