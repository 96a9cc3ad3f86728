import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator


class FastStart(BaseModel):
    """Start a fast now, or log a finished one by passing ended_at."""
    fast_type: Literal["water", "food", "social_media", "entertainment", "custom"]
    description: str | None = Field(default=None, max_length=255)
    purpose: str | None = Field(default=None, max_length=5000)
    prayer_focus: str | None = Field(default=None, max_length=5000)
    notes: str | None = Field(default=None, max_length=5000)
    started_at: datetime | None = None
    ended_at: datetime | None = None

    @model_validator(mode="after")
    def check_times(self):
        if self.ended_at is not None and self.started_at is None:
            raise ValueError("started_at is required when logging a finished fast")
        if self.ended_at is not None and self.ended_at < self.started_at:
            raise ValueError("ended_at must not be before started_at")
        return self


class FastEnd(BaseModel):
    ended_at: datetime | None = None  # defaults to now
    notes: str | None = Field(default=None, max_length=5000)


class FastUpdate(BaseModel):
    description: str | None = Field(default=None, max_length=255)
    purpose: str | None = Field(default=None, max_length=5000)
    prayer_focus: str | None = Field(default=None, max_length=5000)
    notes: str | None = Field(default=None, max_length=5000)


class FastResponse(BaseModel):
    id: uuid.UUID
    fast_type: str
    description: str | None
    purpose: str | None
    prayer_focus: str | None
    notes: str | None
    started_at: datetime
    ended_at: datetime | None
    duration_minutes: int | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
