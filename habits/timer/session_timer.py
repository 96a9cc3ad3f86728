"""Session timer - countdown / count-up state machine for one devotional activity"""
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from habits.timer.errors import InvalidDurationError, PersistenceError, TimerError
from habits.timer.models import (
    DEFAULT_MODES,
    Session,
    SessionKind,
    TimerEvent,
    TimerMode,
    TimerSnapshot,
    TimerState,
)
from habits.timer.sinks import PersistenceSink
from habits.timer.tick import TickSource
from habits.utils.formatting import format_time, progress_percent

logger = logging.getLogger(__name__)

TimerListener = Callable[[TimerEvent, TimerSnapshot], None]

_LIVE_STATES = (TimerState.RUNNING, TimerState.PAUSED)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionTimer:
    """Tracks one episode at a time: Idle -> Running <-> Paused -> Completed.

    Every transition is guarded by the current state, so repeated calls from
    the UI (double taps on start or stop) are harmless. The tick source runs
    only while Running. A finalized session is handed to the sink exactly once
    per episode; reset() never reaches the sink.

    All methods must be called from the event loop that owns the tick source.
    """

    def __init__(
        self,
        sink: PersistenceSink,
        tick_source: TickSource,
        *,
        kind: SessionKind = SessionKind.PRAYER,
        mode: TimerMode | None = None,
        max_duration_seconds: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.kind = SessionKind(kind)
        self.default_mode = TimerMode(mode) if mode else DEFAULT_MODES[self.kind]
        self.max_duration_seconds = max_duration_seconds
        self._sink = sink
        self._ticks = tick_source
        self._clock = clock

        self._state = TimerState.IDLE
        self._mode = self.default_mode
        self._session: Session | None = None
        self._tick_handle = None
        self._record_id: uuid.UUID | None = None
        self._persistence_error: str | None = None
        self._listeners: list[TimerListener] = []
        self._saves_in_flight = 0
        self._closed = False

    # --- read side ---

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def mode(self) -> TimerMode:
        return self._mode

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def record_id(self) -> uuid.UUID | None:
        return self._record_id

    @property
    def is_ticking(self) -> bool:
        return self._tick_handle is not None

    @property
    def is_saving(self) -> bool:
        return self._saves_in_flight > 0

    def snapshot(self) -> TimerSnapshot:
        session = self._session
        if session is None:
            return TimerSnapshot(
                state=self._state,
                kind=self.kind,
                mode=self._mode,
                persistence_error=self._persistence_error,
            )

        shown = session.remaining_seconds if self._mode is TimerMode.COUNTDOWN else session.elapsed_seconds
        return TimerSnapshot(
            state=self._state,
            kind=self.kind,
            mode=self._mode,
            session_id=session.id,
            planned_duration_seconds=session.planned_duration_seconds,
            elapsed_seconds=session.elapsed_seconds,
            remaining_seconds=session.remaining_seconds,
            progress_percent=progress_percent(session.elapsed_seconds, session.planned_duration_seconds),
            display=format_time(shown),
            started_at=session.started_at,
            ended_at=session.ended_at,
            completed=session.completed,
            topic=session.topic,
            chapter=session.chapter,
            verses=session.verses,
            notes=session.notes,
            record_id=self._record_id,
            persistence_error=self._persistence_error,
        )

    def subscribe(self, listener: TimerListener) -> Callable[[], None]:
        """Register a transition listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- transitions ---

    def start(
        self,
        duration_seconds: int,
        *,
        mode: TimerMode | str | None = None,
        topic: str | None = None,
        chapter: str | None = None,
        verses: str | None = None,
        notes: str | None = None,
    ) -> TimerSnapshot:
        if self._closed:
            raise TimerError("Timer has been closed")
        if self._state in _LIVE_STATES:
            logger.debug("Ignoring start for %s timer, already %s", self.kind.value, self._state.value)
            return self.snapshot()

        mode = TimerMode(mode) if mode else self.default_mode
        self._validate_duration(duration_seconds, mode)

        self._mode = mode
        self._record_id = None
        self._persistence_error = None
        self._session = Session(
            kind=self.kind,
            mode=mode,
            started_at=self._clock(),
            planned_duration_seconds=duration_seconds,
            topic=topic,
            chapter=chapter,
            verses=verses,
            notes=notes,
        )
        self._state = TimerState.RUNNING
        self._start_ticking()
        logger.info(
            "Timer started: %s %s, %ss planned (session %s)",
            self.kind.value, mode.value, duration_seconds, self._session.id,
        )
        self._emit(TimerEvent.STARTED)
        return self.snapshot()

    def pause(self) -> TimerSnapshot:
        if self._state is TimerState.RUNNING:
            self._stop_ticking()
            self._state = TimerState.PAUSED
            self._emit(TimerEvent.PAUSED)
        return self.snapshot()

    def resume(self) -> TimerSnapshot:
        if self._state is TimerState.PAUSED:
            self._state = TimerState.RUNNING
            self._start_ticking()
            self._emit(TimerEvent.RESUMED)
        return self.snapshot()

    def reset(self) -> TimerSnapshot:
        self._stop_ticking()
        discarded = self._session
        self._session = None
        self._record_id = None
        self._persistence_error = None
        self._mode = self.default_mode
        self._state = TimerState.IDLE
        if discarded is not None and not discarded.is_finalized:
            logger.info("Timer reset, discarding session %s", discarded.id)
        self._emit(TimerEvent.RESET)
        return self.snapshot()

    async def stop(self) -> Session | None:
        """End the episode early and save it.

        Returns the finalized session. If the episode already finalized (the
        countdown reached zero first) the existing session is returned without
        a second save. Returns None when there is nothing to stop.

        Raises PersistenceError when the save fails; the timer stays Completed.
        """
        if self._state is TimerState.COMPLETED:
            return self._session
        if self._state not in _LIVE_STATES:
            return None
        return await self._finalize(completed=self._target_reached())

    async def tick(self) -> None:
        if self._state is not TimerState.RUNNING or self._session is None:
            return

        self._session = self._session.model_copy(
            update={"elapsed_seconds": self._session.elapsed_seconds + 1}
        )

        if self._mode is TimerMode.COUNTDOWN and self._session.remaining_seconds == 0:
            try:
                await self._finalize(completed=True)
            except PersistenceError:
                # No caller to raise to from a tick; already logged and exposed
                # through snapshot().persistence_error
                pass
            return

        self._emit(TimerEvent.TICK)

    def annotate(
        self,
        *,
        topic: str | None = None,
        chapter: str | None = None,
        verses: str | None = None,
        notes: str | None = None,
    ) -> TimerSnapshot:
        """Update free-text metadata of the live episode. None leaves a field as is."""
        if self._session is None or self._state not in _LIVE_STATES:
            raise TimerError("No session in progress")

        update = {
            key: value
            for key, value in {"topic": topic, "chapter": chapter, "verses": verses, "notes": notes}.items()
            if value is not None
        }
        if update:
            self._session = self._session.model_copy(update=update)
        return self.snapshot()

    def close(self) -> None:
        """Tear down: stop ticking and drop listeners. The timer cannot be started again."""
        self._stop_ticking()
        self._listeners.clear()
        self._closed = True

    # --- internals ---

    def _validate_duration(self, duration_seconds: int, mode: TimerMode) -> None:
        if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int):
            raise InvalidDurationError("Duration must be a whole number of seconds")
        if duration_seconds < 0:
            raise InvalidDurationError("Duration cannot be negative")
        if mode is TimerMode.COUNTDOWN and duration_seconds == 0:
            raise InvalidDurationError("Countdown duration must be greater than zero")
        if self.max_duration_seconds is not None and duration_seconds > self.max_duration_seconds:
            raise InvalidDurationError(
                f"Duration cannot exceed {self.max_duration_seconds // 60} minutes"
            )

    def _target_reached(self) -> bool:
        session = self._session
        return (
            session is not None
            and session.planned_duration_seconds > 0
            and session.elapsed_seconds >= session.planned_duration_seconds
        )

    async def _finalize(self, completed: bool) -> Session:
        self._stop_ticking()
        finalized = self._session.model_copy(
            update={"ended_at": self._clock(), "completed": completed}
        )
        self._session = finalized
        self._state = TimerState.COMPLETED
        logger.info(
            "Timer finished: %s session %s, %ss elapsed, completed=%s",
            self.kind.value, finalized.id, finalized.elapsed_seconds, completed,
        )
        self._emit(TimerEvent.COMPLETED if completed else TimerEvent.STOPPED)

        self._saves_in_flight += 1
        try:
            record_id = await self._sink.save(finalized)
        except PersistenceError as exc:
            logger.warning("Saving session %s failed: %s", finalized.id, exc)
            if self._owns(finalized):
                self._persistence_error = str(exc)
                self._emit(TimerEvent.PERSISTENCE_FAILED)
            raise
        finally:
            self._saves_in_flight -= 1

        # A reset or new start during the save must not pick up this record
        if self._owns(finalized):
            self._record_id = record_id
        return finalized

    def _owns(self, session: Session) -> bool:
        return self._session is not None and self._session.id == session.id

    def _start_ticking(self) -> None:
        if self._tick_handle is None:
            self._tick_handle = self._ticks.schedule(self.tick)

    def _stop_ticking(self) -> None:
        if self._tick_handle is not None:
            handle, self._tick_handle = self._tick_handle, None
            self._ticks.cancel(handle)

    def _emit(self, event: TimerEvent) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(event, snapshot)
            except Exception:
                # One broken listener shouldn't stop the others
                logger.exception("Timer listener failed on %s", event.value)
