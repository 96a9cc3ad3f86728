import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

PracticeCategory = Literal["fasting", "meditation", "worship", "solitude", "service", "gratitude", "custom"]


class PracticeCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    category: PracticeCategory
    frequency: Literal["daily", "weekly"] = "daily"
    goal: int = Field(default=30, ge=1, le=366)


class PracticeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    category: PracticeCategory | None = None
    goal: int | None = Field(default=None, ge=1, le=366)
    is_active: bool | None = None


class PracticeCheckIn(BaseModel):
    completed_on: date | None = None  # defaults to today (UTC)
    notes: str | None = Field(default=None, max_length=5000)


class PracticeResponse(BaseModel):
    id: uuid.UUID
    name: str
    category: str
    frequency: str
    goal: int
    is_active: bool
    streak: int  # 0 once a day (or week) has been missed
    progress_percent: float
    last_completed_on: date | None
    created_at: datetime


class PracticeLogResponse(BaseModel):
    id: uuid.UUID
    practice_id: uuid.UUID
    completed_on: date
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
