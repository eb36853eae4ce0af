"""BroadcastEngine — one message fanned out to many users.

Recipients are processed in fixed-size batches.  Deliveries inside a batch
run concurrently; batches run one after another with a short pause between
them to stay under the remote API's rate limits.  A failing recipient never
aborts the broadcast: every failure is counted, and the first few are kept
as human-readable messages for the administrator's report.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Literal

from tgrelay.bridge.telegram_api import TelegramApi
from tgrelay.core.errors import ValidationError
from tgrelay.core.validation import MAX_MESSAGE_LENGTH, validate_chat_id, validate_text
from tgrelay.directory.registry import UserRegistry
from tgrelay.models.broadcast import (
    ALL_USERS,
    BroadcastJob,
    DeliveryResult,
    MediaPayload,
    TextPayload,
)
from tgrelay.models.telegram import ApiResponse
from tgrelay.routing.formatting import (
    BROADCAST_FILE_NOTICE,
    BROADCAST_PREFIX,
    build_caption,
    escape_markdown,
)
from tgrelay.routing.media import copy_media_with_caption

logger = logging.getLogger(__name__)

DEFAULT_MAX_ERRORS = 5

NO_USERS_ERROR = "no users to broadcast to; make sure user tracking is enabled"
NO_TARGETS_ERROR = "no valid user ids given"

Deliver = Callable[[int], Awaitable[ApiResponse]]


def parse_post_targets(command_text: str | None) -> tuple[Literal["all"] | list[str], str]:
    """Split the argument of ``/post`` into targets and message.

    The first space-separated token is ``all`` or a comma-separated list of
    numeric ids; tokens that are not digits are dropped.  Everything after
    the first space is the message.

    >>> parse_post_targets("12,x,34 hello world")
    (['12', '34'], 'hello world')
    >>> parse_post_targets("all")
    ([], '')
    """
    if not command_text:
        return [], ""
    parts = command_text.split(" ", 1)
    if len(parts) < 2:
        return [], ""
    targets, message = parts
    if targets == ALL_USERS:
        return ALL_USERS, message
    ids = [item.strip() for item in targets.split(",")]
    return [item for item in ids if item.isascii() and item.isdigit()], message


def format_report(result: DeliveryResult, *, title: str = "Broadcast report") -> str:
    """Render *result* as the administrator's summary message."""
    lines = [
        f"📊 *{title}*",
        "",
        f"✅ Delivered: {result.success_count}",
        f"❌ Failed: {result.failure_count}",
        "",
    ]
    if not result.errors:
        lines.append("🎉 All messages delivered!")
        return "\n".join(lines)

    lines.append("🔍 *Errors:*")
    lines.extend(escape_markdown(error) for error in result.errors)
    if result.omitted_errors:
        lines.append(f"... and {result.omitted_errors} more errors")
    return "\n".join(lines)


class BroadcastEngine:
    """Executes ``BroadcastJob`` instances.

    Parameters
    ----------
    api:
        Remote API used for delivery.
    registry:
        Source of recipients for the ``all`` target.
    max_errors:
        Number of error messages kept in a ``DeliveryResult``.
    sleep:
        Awaitable used for the inter-batch pause (injected by tests).
    """

    def __init__(
        self,
        api: TelegramApi,
        registry: UserRegistry,
        *,
        max_errors: int = DEFAULT_MAX_ERRORS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._api = api
        self._registry = registry
        self._max_errors = max_errors
        self._sleep = sleep

    def count_targets(self, targets: Literal["all"] | list[str]) -> int:
        """How many recipients *targets* names, before validation."""
        if targets == ALL_USERS:
            return len(self._registry.chat_ids())
        return len(targets)

    async def broadcast(self, job: BroadcastJob) -> DeliveryResult:
        """Deliver *job* to every target and aggregate the outcome."""
        payload = job.payload
        try:
            deliver = self._prepare(payload)
        except ValidationError as exc:
            logger.error("broadcast: rejected payload: %s", exc)
            return DeliveryResult(failure_count=1, errors=[str(exc)])

        if job.targets == ALL_USERS:
            targets: list[object] = list(self._registry.chat_ids())
            if not targets:
                return DeliveryResult(failure_count=1, errors=[NO_USERS_ERROR])
        else:
            targets = list(job.targets)
        if not targets:
            return DeliveryResult(failure_count=1, errors=[NO_TARGETS_ERROR])

        errors: list[str] = []
        failures = 0
        recipients: list[int] = []
        for target in targets:
            try:
                recipients.append(validate_chat_id(target))
            except ValidationError:
                errors.append(f"invalid user id: {target}")
                failures += 1

        logger.info(
            "broadcast: starting kind=%s recipients=%d batch_size=%d",
            payload.kind,
            len(recipients),
            job.batch_size,
        )

        successes = 0
        for start in range(0, len(recipients), job.batch_size):
            batch = recipients[start:start + job.batch_size]
            outcomes = await asyncio.gather(
                *(deliver(chat_id) for chat_id in batch),
                return_exceptions=True,
            )
            for chat_id, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    failures += 1
                    errors.append(f"user {chat_id}: {outcome}")
                    logger.error("broadcast: delivery to %s failed: %s", chat_id, outcome)
                elif not outcome.ok:
                    failures += 1
                    errors.append(
                        f"user {chat_id}: {outcome.description or 'unknown error'}"
                    )
                else:
                    successes += 1

            if start + job.batch_size < len(recipients):
                await self._sleep(job.inter_batch_delay)

        logger.info(
            "broadcast: completed success=%d failed=%d errors=%d",
            successes,
            failures,
            len(errors),
        )
        return DeliveryResult(
            success_count=successes,
            failure_count=failures,
            errors=errors[:self._max_errors],
            omitted_errors=max(0, len(errors) - self._max_errors),
        )

    def _prepare(self, payload: TextPayload | MediaPayload) -> Deliver:
        """Render *payload* once and return the per-recipient send.

        Raises ``ValidationError`` when the rendered text would not fit in a
        single message, so an oversized broadcast fails before any delivery.
        """
        if isinstance(payload, TextPayload):
            text = validate_text(
                f"📢 *Admin broadcast:*\n\n{escape_markdown(payload.text)}",
                max_length=MAX_MESSAGE_LENGTH,
            )

            async def send_text(chat_id: int) -> ApiResponse:
                return await self._api.send_message(chat_id, text)

            return send_text

        escaped = escape_markdown(payload.caption)
        separate = validate_text(
            f"{BROADCAST_PREFIX}\n\n{escaped}" if escaped else BROADCAST_PREFIX,
            max_length=MAX_MESSAGE_LENGTH,
        )
        caption = build_caption(BROADCAST_PREFIX, escaped)

        async def send_media(chat_id: int) -> ApiResponse:
            return await copy_media_with_caption(
                self._api,
                chat_id,
                payload.from_chat_id,
                payload.message_id,
                caption=caption,
                separate_text=separate,
                failure_text=f"{separate}\n\n{BROADCAST_FILE_NOTICE}",
            )

        return send_media
