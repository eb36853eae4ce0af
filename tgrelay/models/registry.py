"""Registry record — one known user in the persisted ``user_list`` blob."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class UserRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    chat_id: int
    user_id: int
    username: str | None = None
    display_name: str = "Unknown"
    last_active: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
