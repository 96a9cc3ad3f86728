import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator


class SessionCreate(BaseModel):
    """A session logged by hand, e.g. a partial one kept after a reset."""
    kind: Literal["prayer", "bible_reading"]
    mode: Literal["countdown", "count_up"] = "countdown"
    started_at: datetime
    ended_at: datetime
    planned_duration_seconds: int = Field(default=0, ge=0)
    elapsed_seconds: int = Field(default=0, ge=0)
    completed: bool = False
    topic: str | None = Field(default=None, max_length=255)
    chapter: str | None = Field(default=None, max_length=255)
    verses: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None, max_length=5000)

    @model_validator(mode="after")
    def check_times(self):
        if self.ended_at < self.started_at:
            raise ValueError("ended_at must not be before started_at")
        if (
            self.mode == "countdown"
            and self.planned_duration_seconds > 0
            and self.elapsed_seconds > self.planned_duration_seconds
        ):
            raise ValueError("elapsed_seconds cannot exceed planned_duration_seconds for a countdown")
        return self


class SessionResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    kind: str
    mode: str
    started_at: datetime
    ended_at: datetime | None
    planned_duration_seconds: int
    elapsed_seconds: int
    completed: bool
    topic: str | None
    chapter: str | None
    verses: str | None
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
