import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

MAX_ITEMS = 20


class GratitudeEntryWrite(BaseModel):
    items: list[str] = Field(max_length=MAX_ITEMS)
    prayer_of_thanksgiving: str | None = Field(default=None, max_length=5000)

    @field_validator("items")
    @classmethod
    def drop_blank_items(cls, items: list[str]) -> list[str]:
        kept = [item.strip() for item in items if item.strip()]
        if not kept:
            raise ValueError("at least one thing to be grateful for is required")
        if any(len(item) > 500 for item in kept):
            raise ValueError("items are limited to 500 characters")
        return kept


class GratitudeEntryResponse(BaseModel):
    id: uuid.UUID
    entry_date: date
    items: list[str]
    prayer_of_thanksgiving: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
