"""UserRegistry — the persisted list of users who have messaged the bot.

Used to resolve the ``all`` broadcast target and for ``/users``.  The list
is one JSON array under ``user_list``, capped at ``max_users``; the least
recently active users are evicted first.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from pydantic import ValidationError as ModelValidationError

from tgrelay.core.errors import StorageCorrupt
from tgrelay.core.hasher import canonical_json
from tgrelay.models.identity import UserIdentity
from tgrelay.models.registry import UserRecord
from tgrelay.store import USER_LIST_KEY, KeyValueStore, decode_json

logger = logging.getLogger(__name__)

MAX_USERS_LIMIT = 1000


class UserRegistry:
    def __init__(self, store: KeyValueStore, *, max_users: int = MAX_USERS_LIMIT) -> None:
        self._store = store
        self._max_users = max_users

    def list_users(self) -> list[UserRecord]:
        """All known users in stored order.  Corrupt data reads as empty."""
        try:
            raw = decode_json(USER_LIST_KEY, self._store.get(USER_LIST_KEY), list)
        except StorageCorrupt as exc:
            logger.error("list_users: %s — treating as empty", exc)
            return []

        users: list[UserRecord] = []
        for item in raw or []:
            try:
                users.append(UserRecord.model_validate(item))
            except ModelValidationError:
                logger.warning("list_users: skipping malformed record %r", item)
        return users

    def chat_ids(self) -> list[int]:
        return [user.chat_id for user in self.list_users()]

    def recent(self, limit: int = 20) -> list[UserRecord]:
        """Most recently active users first."""
        users = sorted(self.list_users(), key=lambda u: u.last_active, reverse=True)
        return users[:limit]

    def track(self, identity: UserIdentity, *, now: datetime | None = None) -> None:
        """Insert or refresh *identity*; storage failures are logged only."""
        record = UserRecord(
            chat_id=identity.chat_id,
            user_id=identity.user_id,
            username=identity.username,
            display_name=identity.display_name[:100],
            last_active=now or datetime.now(timezone.utc),
        )
        users = [u for u in self.list_users() if u.chat_id != record.chat_id]
        users.append(record)

        if len(users) > self._max_users:
            users.sort(key=lambda u: u.last_active, reverse=True)
            del users[self._max_users:]

        try:
            self._store.put(
                USER_LIST_KEY,
                canonical_json([u.model_dump(mode="json") for u in users]),
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("track: write failed for chat %s: %s", record.chat_id, exc)
            return
        logger.info(
            "track: user added/updated chat_id=%s name=%s",
            record.chat_id,
            record.display_name,
        )
