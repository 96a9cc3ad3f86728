"""Per-user timer instances for the API process."""
import logging
import time
import uuid
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from habits.config import settings
from habits.timer.models import SessionKind, TimerEvent, TimerSnapshot, TimerState
from habits.timer.session_timer import SessionTimer
from habits.timer.sinks import DatabaseSessionSink
from habits.timer.tick import AsyncioTickSource, TickSource

logger = logging.getLogger(__name__)

_RESTING_STATES = (TimerState.IDLE, TimerState.COMPLETED)


def default_max_durations() -> dict[SessionKind, int]:
    return {
        SessionKind.PRAYER: settings.PRAYER_MAX_MINUTES * 60,
        SessionKind.BIBLE_READING: settings.BIBLE_READING_MAX_MINUTES * 60,
    }


class TimerRegistry:
    """Holds one SessionTimer per (user, kind).

    Built in the app lifespan and closed on shutdown, which tears down every
    tick source still running. Timers that sit Idle or Completed without being
    touched for ``idle_evict_seconds`` are dropped on the next creation, so the
    registry only grows with active users.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        tick_source: TickSource | None = None,
        redis_client=None,
        max_durations: dict[SessionKind, int] | None = None,
        idle_evict_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._session_factory = session_factory
        self._tick_source = tick_source or AsyncioTickSource(settings.TIMER_TICK_SECONDS)
        self.redis = redis_client
        self.max_durations = max_durations if max_durations is not None else default_max_durations()
        self.idle_evict_seconds = (
            idle_evict_seconds if idle_evict_seconds is not None else settings.TIMER_IDLE_EVICT_SECONDS
        )
        self._clock = clock
        self._timers: dict[tuple[uuid.UUID, SessionKind], SessionTimer] = {}
        self._last_used: dict[tuple[uuid.UUID, SessionKind], float] = {}

    def __len__(self) -> int:
        return len(self._timers)

    def get(self, user_id: uuid.UUID, kind: SessionKind) -> SessionTimer | None:
        key = (user_id, SessionKind(kind))
        timer = self._timers.get(key)
        if timer is not None:
            self._last_used[key] = self._clock()
        return timer

    def get_or_create(self, user_id: uuid.UUID, kind: SessionKind) -> SessionTimer:
        key = (user_id, SessionKind(kind))
        timer = self._timers.get(key)
        if timer is None:
            self.evict_unused()
            timer = SessionTimer(
                DatabaseSessionSink(self._session_factory, user_id, redis_client=self.redis),
                self._tick_source,
                kind=key[1],
                max_duration_seconds=self.max_durations.get(key[1]),
            )
            timer.subscribe(_TransitionLogger(user_id))
            self._timers[key] = timer
        self._last_used[key] = self._clock()
        return timer

    def evict_unused(self) -> int:
        """Close and drop quiet timers that hold no live episode. Returns how many."""
        cutoff = self._clock() - self.idle_evict_seconds
        stale = [
            key for key, timer in self._timers.items()
            if timer.state in _RESTING_STATES
            and not timer.is_saving
            and self._last_used.get(key, 0) <= cutoff
        ]
        for key in stale:
            self._timers.pop(key).close()
            self._last_used.pop(key, None)
        if stale:
            logger.debug("Evicted %d unused timers", len(stale))
        return len(stale)

    def close(self) -> None:
        for timer in self._timers.values():
            timer.close()
        self._timers.clear()
        self._last_used.clear()


class _TransitionLogger:
    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id

    def __call__(self, event: TimerEvent, snapshot: TimerSnapshot) -> None:
        if event is TimerEvent.TICK:
            return
        logger.info(
            "user=%s %s timer %s (elapsed=%ss, remaining=%ss)",
            self.user_id, snapshot.kind.value, event.value,
            snapshot.elapsed_seconds, snapshot.remaining_seconds,
        )
