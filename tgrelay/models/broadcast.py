"""Broadcast models — a one-shot fan-out job and its bounded result."""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

ALL_USERS = "all"


class TextPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str


class MediaPayload(BaseModel):
    """A message in the admin chat to be copied to every recipient.

    ``caption`` is the broadcast text placed under the media.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["media"] = "media"
    from_chat_id: int
    message_id: int
    caption: str = ""


Payload = Union[TextPayload, MediaPayload]


class BroadcastJob(BaseModel):
    """Transient description of one broadcast invocation."""

    model_config = ConfigDict(frozen=True)

    targets: Literal["all"] | list[str]
    payload: Payload = Field(discriminator="kind")
    batch_size: int = Field(default=10, ge=1)
    inter_batch_delay: float = Field(default=0.1, ge=0.0)


class DeliveryResult(BaseModel):
    """Aggregated outcome of a broadcast.

    ``errors`` holds at most the configured number of messages; the rest
    are counted in ``omitted_errors``.
    """

    model_config = ConfigDict(frozen=True)

    success_count: int = 0
    failure_count: int = 0
    errors: list[str] = []
    omitted_errors: int = 0

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count
