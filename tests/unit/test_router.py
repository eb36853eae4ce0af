"""Unit tests for DeliveryRouter — resolution channels and media fallbacks."""

from __future__ import annotations

import httpx
import pytest

from tgrelay.codec.signing import sign
from tgrelay.core.errors import ApiRejected
from tgrelay.routing.formatting import REPLY_FILE_NOTICE, REPLY_PREFIX
from tgrelay.routing.router import DeliveryRouter, ResolvedVia
from tgrelay.store import USER_TOPIC_MAPPING_KEY
from tests.conftest import ADMIN_CHAT_ID, SECRET


def _forwarded(text: str) -> dict:
    return {"message_id": 900, "chat": {"id": ADMIN_CHAT_ID}, "text": text}


@pytest.fixture
def router(codec, topics, api) -> DeliveryRouter:
    return DeliveryRouter(codec, topics, api, ADMIN_CHAT_ID, forum_mode=True)


class TestResolve:
    def test_via_signed_tag(self, router, make_admin_message):
        tag = f"[👤 USER:42:{sign(42, SECRET)}](tg://user?id=42)"
        message = make_admin_message("thanks", reply_to_message=_forwarded(f"hi\n\n{tag}"))
        resolution = router.resolve(message)
        assert resolution.user_id == 42
        assert resolution.via is ResolvedVia.TAG

    def test_via_caption_of_replied_media(self, router, make_admin_message):
        replied = {
            "message_id": 900,
            "chat": {"id": ADMIN_CHAT_ID},
            "photo": [{"file_id": "p"}],
            "caption": f"[USER:42:{sign(42, SECRET)}]",
        }
        message = make_admin_message("ok", reply_to_message=replied)
        assert router.resolve(message).user_id == 42

    def test_via_topic(self, router, store, make_admin_message):
        store.put(USER_TOPIC_MAPPING_KEY, '{"42": 101}')
        message = make_admin_message("hello", message_thread_id=101)
        resolution = router.resolve(message)
        assert resolution.user_id == 42
        assert resolution.via is ResolvedVia.TOPIC

    def test_tag_wins_over_topic(self, router, store, make_admin_message):
        store.put(USER_TOPIC_MAPPING_KEY, '{"43": 101}')
        message = make_admin_message(
            "hello",
            message_thread_id=101,
            reply_to_message=_forwarded(f"[USER:42:{sign(42, SECRET)}]"),
        )
        assert router.resolve(message).user_id == 42

    def test_bad_tag_falls_back_to_topic(self, router, store, make_admin_message):
        store.put(USER_TOPIC_MAPPING_KEY, '{"43": 101}')
        message = make_admin_message(
            "hello",
            message_thread_id=101,
            reply_to_message=_forwarded("[USER:42:0000000000000000]"),
        )
        resolution = router.resolve(message)
        assert resolution.user_id == 43
        assert resolution.via is ResolvedVia.TOPIC

    def test_topic_ignored_without_forum_mode(self, codec, topics, api, store, make_admin_message):
        store.put(USER_TOPIC_MAPPING_KEY, '{"42": 101}')
        router = DeliveryRouter(codec, topics, api, ADMIN_CHAT_ID, forum_mode=False)
        resolution = router.resolve(make_admin_message("hello", message_thread_id=101))
        assert resolution.user_id is None
        assert resolution.via is ResolvedVia.NONE
        assert not resolution.resolved

    def test_unresolved(self, router, make_admin_message):
        message = make_admin_message("hello", reply_to_message=_forwarded("no tag"))
        assert router.resolve(message).via is ResolvedVia.NONE


class TestDeliver:
    @pytest.mark.asyncio
    async def test_text_is_escaped_and_prefixed(self, router, bot_server, make_admin_message):
        response = await router.deliver(42, make_admin_message("see you at 5.30!"))
        assert response.ok
        body = bot_server.calls_to("sendMessage")[0]
        assert body["chat_id"] == 42
        assert body["text"] == "💬 *Admin reply:*\n\nsee you at 5\\.30\\!"

    @pytest.mark.asyncio
    async def test_media_copied_with_caption(self, router, bot_server, make_admin_message):
        message = make_admin_message(photo=[{"file_id": "p"}], caption="look")
        await router.deliver(42, message)
        assert bot_server.methods() == ["copyMessage"]
        body = bot_server.calls_to("copyMessage")[0]
        assert body["from_chat_id"] == ADMIN_CHAT_ID
        assert body["message_id"] == message.message_id
        assert body["caption"] == f"{REPLY_PREFIX}\n\nlook"

    @pytest.mark.asyncio
    async def test_media_without_caption(self, router, bot_server, make_admin_message):
        await router.deliver(42, make_admin_message(sticker={"file_id": "s"}))
        assert bot_server.calls_to("copyMessage")[0]["caption"] == REPLY_PREFIX

    @pytest.mark.asyncio
    async def test_caption_rejected_sends_separately(self, router, bot_server, make_admin_message):
        """An ok:false copy falls back to prefix text plus a bare copy."""
        bot_server.on(
            "copyMessage",
            {"ok": False, "description": "caption not allowed"},
            {"ok": True, "result": {"message_id": 5}},
        )
        response = await router.deliver(42, make_admin_message(video_note={"file_id": "v"}))
        assert response.ok
        assert bot_server.methods() == ["copyMessage", "sendMessage", "copyMessage"]
        assert bot_server.calls_to("sendMessage")[0]["text"] == REPLY_PREFIX
        assert "caption" not in bot_server.calls_to("copyMessage")[1]

    @pytest.mark.asyncio
    async def test_exception_sends_notice_then_bare_copy(self, router, bot_server, make_admin_message):
        bot_server.on(
            "copyMessage",
            httpx.Response(400, json={"ok": False, "description": "bad"}),
            {"ok": True, "result": {"message_id": 5}},
        )
        response = await router.deliver(42, make_admin_message(photo=[{"file_id": "p"}]))
        assert response.ok
        assert bot_server.methods() == ["copyMessage", "sendMessage", "copyMessage"]
        assert bot_server.calls_to("sendMessage")[0]["text"] == REPLY_FILE_NOTICE

    @pytest.mark.asyncio
    async def test_second_failure_propagates(self, router, bot_server, make_admin_message):
        bot_server.on("copyMessage", httpx.Response(403, json={"ok": False, "description": "blocked"}))
        with pytest.raises(ApiRejected) as info:
            await router.deliver(42, make_admin_message(photo=[{"file_id": "p"}]))
        assert "blocked" in str(info.value)
