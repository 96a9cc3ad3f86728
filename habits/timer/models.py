"""Timer value types"""
import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


class TimerMode(str, Enum):
    COUNTDOWN = "countdown"
    COUNT_UP = "count_up"


class SessionKind(str, Enum):
    PRAYER = "prayer"
    BIBLE_READING = "bible_reading"


DEFAULT_MODES = {
    SessionKind.PRAYER: TimerMode.COUNTDOWN,
    SessionKind.BIBLE_READING: TimerMode.COUNT_UP,
}


class TimerEvent(str, Enum):
    """Transition events delivered to timer listeners"""
    STARTED = "started"
    TICK = "tick"
    PAUSED = "paused"
    RESUMED = "resumed"
    RESET = "reset"
    COMPLETED = "completed"
    STOPPED = "stopped"
    PERSISTENCE_FAILED = "persistence_failed"


class Session(BaseModel):
    """One timed devotional activity.

    Instances are frozen; the timer swaps in a new copy on every tick, so a
    reference handed out (to a listener or the persistence sink) never changes
    underneath its holder.
    """
    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    kind: SessionKind = SessionKind.PRAYER
    mode: TimerMode = TimerMode.COUNTDOWN
    started_at: datetime
    ended_at: datetime | None = None
    planned_duration_seconds: int = Field(default=0, ge=0)
    elapsed_seconds: int = Field(default=0, ge=0)
    completed: bool = False
    topic: str | None = None
    chapter: str | None = None
    verses: str | None = None
    notes: str | None = None

    @property
    def remaining_seconds(self) -> int:
        return max(self.planned_duration_seconds - self.elapsed_seconds, 0)

    @property
    def is_finalized(self) -> bool:
        return self.ended_at is not None


class TimerSnapshot(BaseModel):
    """Read-only view of a timer, safe to take at any time."""
    state: TimerState
    kind: SessionKind
    mode: TimerMode
    session_id: uuid.UUID | None = None
    planned_duration_seconds: int = 0
    elapsed_seconds: int = 0
    remaining_seconds: int = 0
    progress_percent: float = 0.0
    display: str = "00:00"
    started_at: datetime | None = None
    ended_at: datetime | None = None
    completed: bool = False
    topic: str | None = None
    chapter: str | None = None
    verses: str | None = None
    notes: str | None = None
    record_id: uuid.UUID | None = None  # set once the sink has stored the session
    persistence_error: str | None = None
