"""Adversarial tests — concurrent first contact for the same user.

Two webhook deliveries for a new user can both miss the mapping and both
create a topic.  The compare-and-set write must let exactly one thread win
and every caller must end up using the winner.
"""

from __future__ import annotations

import asyncio
import logging

import pytest

from tgrelay.core.hasher import canonical_json
from tgrelay.directory.topics import TopicDirectory
from tgrelay.store import USER_TOPIC_MAPPING_KEY, InMemoryStore
from tests.conftest import ADMIN_CHAT_ID


class InterleavingStore(InMemoryStore):
    """Lands a competing write just before the first compare-and-set."""

    def __init__(self, competing: dict[str, int]) -> None:
        super().__init__()
        self._competing = competing
        self.raced = False

    def compare_and_set(self, key, value, expected_version):
        if not self.raced:
            self.raced = True
            self.put(key, canonical_json(self._competing))
        return super().compare_and_set(key, value, expected_version)


class TestTopicRace:
    @pytest.mark.asyncio
    async def test_existing_thread_adopted(self, api, bot_server, caplog):
        """The losing writer returns the winner's thread and logs its orphan."""
        store = InterleavingStore({"42": 555})
        topics = TopicDirectory(store, api, ADMIN_CHAT_ID)
        with caplog.at_level(logging.WARNING, logger="tgrelay.directory.topics"):
            thread_id = await topics.get_or_create_topic(42, "alice")
        assert thread_id == 555
        assert topics.get_mapping() == {42: 555}
        assert "thread 101 is orphaned" in caplog.text

    @pytest.mark.asyncio
    async def test_unrelated_write_is_merged(self, api, bot_server):
        """A concurrent write for another user is kept alongside ours."""
        store = InterleavingStore({"7": 700})
        topics = TopicDirectory(store, api, ADMIN_CHAT_ID)
        assert await topics.get_or_create_topic(42, "alice") == 101
        assert topics.get_mapping() == {7: 700, 42: 101}

    @pytest.mark.asyncio
    async def test_persistent_conflict_gives_up(self, api, bot_server, caplog):
        class AlwaysConflicting(InMemoryStore):
            def compare_and_set(self, key, value, expected_version):
                return False

        topics = TopicDirectory(AlwaysConflicting(), api, ADMIN_CHAT_ID, max_write_attempts=2)
        assert await topics.get_or_create_topic(42, "alice") == 101
        assert "gave up after 2 conflicting writes" in caplog.text

    @pytest.mark.asyncio
    async def test_concurrent_first_contacts_agree(self, api, bot_server):
        """Two overlapping first contacts converge on one stored thread."""
        gate = asyncio.Event()
        created = 0
        store = InMemoryStore()
        topics = TopicDirectory(store, api, ADMIN_CHAT_ID)

        original = api.create_forum_topic

        async def paused_create(*args, **kwargs):
            nonlocal created
            response = await original(*args, **kwargs)
            created += 1
            if created == 2:
                gate.set()
            await gate.wait()
            return response

        api.create_forum_topic = paused_create
        first = asyncio.ensure_future(topics.get_or_create_topic(42, "alice"))
        second = asyncio.ensure_future(topics.get_or_create_topic(42, "alice"))
        results = await asyncio.gather(first, second)

        assert len(bot_server.calls_to("createForumTopic")) == 2
        stored = topics.get_mapping()[42]
        assert results == [stored, stored]
        assert store.get(USER_TOPIC_MAPPING_KEY) == canonical_json({"42": stored})
