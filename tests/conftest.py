"""Shared test fixtures for tgrelay."""

from __future__ import annotations

import json
import random
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from tgrelay.bridge.api_client import RetryableApiClient
from tgrelay.bridge.telegram_api import TelegramApi
from tgrelay.codec.tags import IdentityTagCodec
from tgrelay.config import RelayConfig
from tgrelay.directory.registry import UserRegistry
from tgrelay.directory.topics import TopicDirectory
from tgrelay.handlers.bot import RelayBot
from tgrelay.models.telegram import Message
from tgrelay.store import InMemoryStore, SqliteStore

BOT_TOKEN = "123456:ABC-def_ghi"
ADMIN_CHAT_ID = -1001234567890
USER_CHAT_ID = 555000111
SECRET = "s3cr3t"


# ---------------------------------------------------------------------------
# Fake Bot API server
# ---------------------------------------------------------------------------


class FakeBotServer:
    """Scripted Bot API behind ``httpx.MockTransport``.

    Every request is recorded as ``(method, body)``.  Methods answer
    ``{"ok": true, ...}`` with a plausible result unless a rule registered
    with :meth:`on` says otherwise.  A rule is either a response body dict,
    an ``httpx.Response``, an exception instance to raise, or a callable
    taking the request body and returning one of those.  A list of rules is
    consumed one per call; the last one repeats.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.is_forum = False
        self._rules: dict[str, list[Any]] = {}
        self._next_message_id = 1000
        self._next_thread_id = 100

    def on(self, method: str, *rules: Any) -> None:
        self._rules[method] = list(rules)

    def calls_to(self, method: str) -> list[dict[str, Any]]:
        return [body for name, body in self.calls if name == method]

    def methods(self) -> list[str]:
        return [name for name, _ in self.calls]

    def handler(self, request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit("/", 1)[-1]
        body = json.loads(request.content or b"{}")
        self.calls.append((method, body))

        rules = self._rules.get(method)
        if rules:
            rule = rules.pop(0) if len(rules) > 1 else rules[0]
            if callable(rule) and not isinstance(rule, type):
                rule = rule(body)
            if isinstance(rule, BaseException):
                raise rule
            if isinstance(rule, httpx.Response):
                return rule
            return httpx.Response(200, json=rule)
        return httpx.Response(200, json={"ok": True, "result": self._default(method)})

    def _default(self, method: str) -> Any:
        if method in ("sendMessage", "copyMessage"):
            self._next_message_id += 1
            return {"message_id": self._next_message_id}
        if method == "createForumTopic":
            self._next_thread_id += 1
            return {"message_thread_id": self._next_thread_id, "name": "topic"}
        if method == "getChat":
            return {"id": ADMIN_CHAT_ID, "type": "supergroup", "is_forum": self.is_forum}
        if method == "getMe":
            return {"id": 42, "is_bot": True, "first_name": "Relay", "username": "relay_bot"}
        if method == "getForumTopicIconStickers":
            return []
        return True


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def bot_server() -> FakeBotServer:
    """Provide a fresh scripted Bot API."""
    return FakeBotServer()


@pytest.fixture
def sleeps() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def http_client(bot_server: FakeBotServer) -> httpx.AsyncClient:
    """An AsyncClient whose transport is the fake server."""
    return httpx.AsyncClient(transport=httpx.MockTransport(bot_server.handler))


@pytest.fixture
def api_client(http_client: httpx.AsyncClient, sleeps: RecordingSleep) -> RetryableApiClient:
    return RetryableApiClient(BOT_TOKEN, http_client=http_client, sleep=sleeps)


@pytest.fixture
def api(api_client: RetryableApiClient) -> TelegramApi:
    """Provide a TelegramApi wired to the fake server."""
    return TelegramApi(api_client)


# ---------------------------------------------------------------------------
# Stores and directories
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def sqlite_store(tmp_path: Path) -> SqliteStore:
    """Provide a SqliteStore backed by a temp database."""
    return SqliteStore(tmp_path / "relay.db")


@pytest.fixture
def codec() -> IdentityTagCodec:
    """Provide a codec in HMAC mode."""
    return IdentityTagCodec(SECRET)


@pytest.fixture
def topics(store: InMemoryStore, api: TelegramApi) -> TopicDirectory:
    return TopicDirectory(store, api, ADMIN_CHAT_ID, rng=random.Random(7))


@pytest.fixture
def registry(store: InMemoryStore) -> UserRegistry:
    return UserRegistry(store)


# ---------------------------------------------------------------------------
# Messages, config and bot factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_message() -> Callable[..., Message]:
    """Factory fixture: build an inbound Message with sensible defaults."""
    counter = iter(range(1, 1_000_000))

    def _factory(
        text: str | None = None,
        *,
        chat_id: int = USER_CHAT_ID,
        from_id: int | None = None,
        username: str | None = "alice",
        first_name: str = "Alice",
        **overrides: Any,
    ) -> Message:
        data: dict[str, Any] = {
            "message_id": next(counter),
            "from": {
                "id": from_id if from_id is not None else chat_id,
                "is_bot": False,
                "first_name": first_name,
                "username": username,
            },
            "chat": {"id": chat_id, "type": "private" if chat_id > 0 else "supergroup"},
        }
        if text is not None:
            data["text"] = text
        data.update(overrides)
        return Message.model_validate(data)

    return _factory


@pytest.fixture
def make_admin_message(make_message: Callable[..., Message]) -> Callable[..., Message]:
    """Factory fixture: a message posted in the administrator chat."""

    def _factory(text: str | None = None, **overrides: Any) -> Message:
        overrides.setdefault("from_id", 7)
        overrides.setdefault("username", "admin")
        return make_message(text, chat_id=ADMIN_CHAT_ID, **overrides)

    return _factory


@pytest.fixture
def make_config() -> Callable[..., RelayConfig]:
    """Factory fixture: a RelayConfig isolated from the environment."""

    def _factory(**overrides: Any) -> RelayConfig:
        values: dict[str, Any] = {
            "bot_token": BOT_TOKEN,
            "admin_chat_id": str(ADMIN_CHAT_ID),
            "user_id_secret": SECRET,
        }
        values.update(overrides)
        return RelayConfig(_env_file=None, **values)

    return _factory


@pytest.fixture
def make_bot(
    make_config: Callable[..., RelayConfig],
    store: InMemoryStore,
    api: TelegramApi,
    sleeps: RecordingSleep,
) -> Callable[..., RelayBot]:
    """Factory fixture: a RelayBot over the fake server and in-memory store."""

    def _factory(**overrides: Any) -> RelayBot:
        return RelayBot(
            make_config(**overrides),
            store=store,
            api=api,
            rng=random.Random(7),
            sleep=sleeps,
        )

    return _factory
