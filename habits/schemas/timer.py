from pydantic import BaseModel, Field, model_validator

from habits.timer.models import TimerMode


class TimerStartRequest(BaseModel):
    duration_seconds: int | None = Field(default=None, ge=0)
    duration_minutes: int | None = Field(default=None, ge=0)
    mode: TimerMode | None = None
    topic: str | None = Field(default=None, max_length=255)
    chapter: str | None = Field(default=None, max_length=255)
    verses: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None, max_length=5000)

    @model_validator(mode="after")
    def one_duration(self):
        if self.duration_seconds is not None and self.duration_minutes is not None:
            raise ValueError("Give duration_seconds or duration_minutes, not both")
        return self

    @property
    def total_seconds(self) -> int:
        if self.duration_minutes is not None:
            return self.duration_minutes * 60
        return self.duration_seconds or 0


class TimerAnnotateRequest(BaseModel):
    topic: str | None = Field(default=None, max_length=255)
    chapter: str | None = Field(default=None, max_length=255)
    verses: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None, max_length=5000)


class TimerPresetsResponse(BaseModel):
    prayer_preset_minutes: list[int]
    prayer_max_minutes: int
    bible_reading_max_minutes: int
    bible_reading_goal_minutes: int
