"""TopicDirectory — one forum topic per user in the admin chat.

The mapping ``{user_id: thread_id}`` is a single JSON object under
``user_topic_mapping``.  It is auxiliary state: a corrupt or unreadable
blob must never stop message routing, so reads degrade to an empty mapping
and write failures are logged, not raised.

First contact from a user is a read-modify-write of the whole blob.  The
write is a compare-and-set against the version that was read; if another
request mapped the same user in between, its thread wins and the thread
created here is left orphaned (and logged).
"""

from __future__ import annotations

import logging
import random
from typing import Any

from tgrelay.bridge.telegram_api import DEFAULT_ICON_COLORS, TelegramApi
from tgrelay.core.errors import RelayError, StorageCorrupt, ValidationError
from tgrelay.core.hasher import canonical_json
from tgrelay.core.validation import validate_user_id
from tgrelay.store import USER_TOPIC_MAPPING_KEY, KeyValueStore, decode_json

logger = logging.getLogger(__name__)

MAX_DISPLAY_NAME_LENGTH = 64


class TopicDirectory:
    """User ↔ forum-thread directory.

    Parameters
    ----------
    store:
        Blob store holding the mapping.
    api:
        Used to create topics on first contact.
    admin_chat_id:
        The forum chat topics are created in.
    enabled:
        When ``False``, ``get_or_create_topic`` always answers ``None``.
    rng:
        Source of the pseudo-random icon colour.
    max_write_attempts:
        Compare-and-set attempts before giving up on persisting.
    """

    def __init__(
        self,
        store: KeyValueStore,
        api: TelegramApi,
        admin_chat_id: int,
        *,
        enabled: bool = True,
        rng: random.Random | None = None,
        max_write_attempts: int = 3,
    ) -> None:
        self._store = store
        self._api = api
        self._admin_chat_id = admin_chat_id
        self._enabled = enabled
        self._rng = rng or random.Random()
        self._max_write_attempts = max_write_attempts

    @property
    def enabled(self) -> bool:
        return self._enabled

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _read(self) -> tuple[dict[int, int], str | None]:
        blob = self._store.get_versioned(USER_TOPIC_MAPPING_KEY)
        try:
            raw = decode_json(USER_TOPIC_MAPPING_KEY, blob.value, dict)
        except StorageCorrupt as exc:
            logger.error("get_mapping: %s — treating as empty", exc)
            return {}, blob.version

        mapping: dict[int, int] = {}
        for key, value in (raw or {}).items():
            try:
                mapping[int(key)] = int(value)
            except (TypeError, ValueError):
                logger.warning(
                    "get_mapping: skipping malformed entry %r -> %r", key, value
                )
        return mapping, blob.version

    def get_mapping(self) -> dict[int, int]:
        """Return the current ``{user_id: thread_id}`` mapping (never raises)."""
        return self._read()[0]

    def reverse_lookup(self, thread_id: Any) -> int | None:
        """Return the user owning *thread_id*, or ``None``."""
        if isinstance(thread_id, bool) or not isinstance(thread_id, int):
            logger.error("reverse_lookup: invalid topic ID %r", thread_id)
            return None
        for user_id, user_thread_id in self.get_mapping().items():
            if user_thread_id == thread_id:
                return user_id
        return None

    def topic_count(self) -> int:
        return len(self.get_mapping())

    # ------------------------------------------------------------------
    # First contact
    # ------------------------------------------------------------------

    async def get_or_create_topic(self, user_id: Any, display_name: str) -> int | None:
        """Return the user's thread id, creating the topic on first contact.

        ``None`` means "use default addressing": the feature is disabled,
        the input was invalid, or the topic could not be created.
        """
        if not self._enabled:
            return None
        try:
            uid = validate_user_id(user_id)
        except ValidationError as exc:
            logger.error("get_or_create_topic: %s", exc)
            return None

        mapping, version = self._read()
        if uid in mapping:
            return mapping[uid]

        name = f"💬 {(display_name or 'Unknown')[:MAX_DISPLAY_NAME_LENGTH]} ({uid})"
        color = self._rng.choice(DEFAULT_ICON_COLORS)
        try:
            response = await self._api.create_forum_topic(self._admin_chat_id, name, color)
        except RelayError as exc:
            logger.error("get_or_create_topic: createForumTopic failed for %s: %s", uid, exc)
            return None

        result = response.result if isinstance(response.result, dict) else {}
        if not response.ok or "message_thread_id" not in result:
            logger.error(
                "get_or_create_topic: failed to create topic for %s: %s",
                uid,
                response.description or "no thread id in response",
            )
            return None

        thread_id = int(result["message_thread_id"])
        return self._persist(uid, thread_id, mapping, version)

    def _persist(
        self,
        user_id: int,
        thread_id: int,
        mapping: dict[int, int],
        version: str | None,
    ) -> int:
        """Record ``user_id -> thread_id``; return the thread id that won."""
        for attempt in range(1, self._max_write_attempts + 1):
            updated = {**mapping, user_id: thread_id}
            blob = canonical_json({str(k): v for k, v in updated.items()})
            try:
                written = self._store.compare_and_set(USER_TOPIC_MAPPING_KEY, blob, version)
            except Exception as exc:  # noqa: BLE001
                logger.error("persist mapping: write failed: %s", exc)
                return thread_id

            if written:
                logger.info(
                    "User topic created: user_id=%s thread_id=%s", user_id, thread_id
                )
                return thread_id

            mapping, version = self._read()
            existing = mapping.get(user_id)
            if existing is not None and existing != thread_id:
                logger.warning(
                    "get_or_create_topic: concurrent first contact for user %s; "
                    "keeping thread %s, thread %s is orphaned",
                    user_id,
                    existing,
                    thread_id,
                )
                return existing
            logger.info(
                "persist mapping: version conflict on attempt %d, merging and retrying",
                attempt,
            )

        logger.error(
            "persist mapping: gave up after %d conflicting writes for user %s",
            self._max_write_attempts,
            user_id,
        )
        return thread_id
