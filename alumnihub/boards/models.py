"""
AlumniHub Board Models — events, jobs and what alumni attach to them.
"""

from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class BoardStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"

    def toggled(self) -> "BoardStatus":
        return BoardStatus.INACTIVE if self is BoardStatus.ACTIVE else BoardStatus.ACTIVE


def new_board_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _today() -> dt.date:
    return dt.datetime.now(dt.timezone.utc).date()


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class EventRecord(BaseModel):
    """An alumni event. ``registered`` never exceeds ``capacity``."""

    id: str = Field(default_factory=lambda: new_board_id("event"))
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    date: dt.date
    time: str = ""
    venue: str = ""
    capacity: int = Field(ge=1)
    registered: int = Field(default=0, ge=0)
    status: BoardStatus = BoardStatus.ACTIVE
    created_by: str = "admin"
    created_at: dt.date = Field(default_factory=_today)

    @model_validator(mode="after")
    def check_capacity(self) -> "EventRecord":
        if self.registered > self.capacity:
            raise ValueError(f"capacity {self.capacity} is below the {self.registered} seats already taken")
        return self

    @property
    def is_active(self) -> bool:
        return self.status == BoardStatus.ACTIVE

    @property
    def is_full(self) -> bool:
        return self.registered >= self.capacity

    @property
    def seats_left(self) -> int:
        return max(self.capacity - self.registered, 0)


class EventRegistration(BaseModel):
    id: str = Field(default_factory=lambda: new_board_id("reg"))
    event_id: str
    user_email: str
    user_name: str
    registered_at: dt.datetime = Field(default_factory=_now)


class JobRecord(BaseModel):
    id: str = Field(default_factory=lambda: new_board_id("job"))
    title: str = Field(min_length=1, max_length=255)
    company: str = Field(min_length=1)
    location: str = ""
    salary: str = ""
    deadline: dt.date
    description: str = ""
    requirements: str = ""
    status: BoardStatus = BoardStatus.ACTIVE
    created_by: str = "admin"
    created_at: dt.date = Field(default_factory=_today)

    @property
    def is_active(self) -> bool:
        return self.status == BoardStatus.ACTIVE


class JobApplication(BaseModel):
    id: str = Field(default_factory=lambda: new_board_id("app"))
    job_id: str
    job_title: str
    company: str
    user_email: str
    user_name: str
    applied_at: dt.datetime = Field(default_factory=_now)
    status: str = "applied"
