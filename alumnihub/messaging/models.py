"""Message record — one directed message in the append-only log."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class MessageRecord(BaseModel):
    """
    Immutable once appended. ``recipient`` is an identity email, the admin
    inbox ("admin") or the broadcast marker ("all").
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=1)
    sender: str
    recipient: str
    text: str = Field(min_length=1)
    sent_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: str = "delivered"
    is_read: bool = False

    @property
    def is_broadcast(self) -> bool:
        from alumnihub.engine.identity import BROADCAST_ADDRESS
        return self.recipient == BROADCAST_ADDRESS
