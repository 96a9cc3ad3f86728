import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class PrayerRequestCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    category: str | None = Field(default=None, max_length=50)
    is_private: bool = False
    is_anonymous: bool = False


class PrayerAnsweredRequest(BaseModel):
    testimony: str | None = Field(default=None, max_length=5000)


class PrayerRequestResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID | None  # hidden on anonymous requests from other users
    title: str
    description: str | None
    category: str | None
    is_private: bool
    is_anonymous: bool
    prayer_count: int
    is_answered: bool
    answered_at: datetime | None
    testimony: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
