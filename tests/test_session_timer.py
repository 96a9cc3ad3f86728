import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from habits.timer.errors import InvalidDurationError, PersistenceError, TimerError
from habits.timer.models import SessionKind, TimerEvent, TimerMode, TimerState
from habits.timer.session_timer import SessionTimer
from habits.timer.sinks import PersistenceSink
from habits.timer.tick import AsyncioTickSource


# ── start / complete ──────────────────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize("duration", [1, 7, 60])
async def test_countdown_completes_after_duration_ticks(timer, sink, tick_source, duration):
    timer.start(duration)
    await tick_source.fire(duration)

    assert timer.state is TimerState.COMPLETED
    assert timer.session.elapsed_seconds == duration
    assert timer.session.completed is True
    assert timer.session.ended_at is not None
    assert len(sink.saved) == 1


@pytest.mark.asyncio
async def test_countdown_not_complete_one_tick_early(timer, sink, tick_source):
    timer.start(10)
    await tick_source.fire(9)

    assert timer.state is TimerState.RUNNING
    assert timer.snapshot().remaining_seconds == 1
    assert sink.saved == []


@pytest.mark.asyncio
async def test_five_minute_preset_with_pause(timer, sink, tick_source):
    timer.start(300)
    await tick_source.fire(120)
    timer.pause()
    timer.resume()
    await tick_source.fire(180)

    assert timer.state is TimerState.COMPLETED
    assert timer.session.elapsed_seconds == 300
    assert timer.session.completed is True
    assert len(sink.saved) == 1
    assert sink.saved[0].planned_duration_seconds == 300


@pytest.mark.asyncio
async def test_start_records_started_at_from_clock(sink, tick_source):
    fixed = datetime(2026, 3, 1, 6, 30, tzinfo=timezone.utc)
    timer = SessionTimer(sink, tick_source, clock=lambda: fixed)
    snapshot = timer.start(60, topic="Family", notes="Morning prayer")

    assert snapshot.started_at == fixed
    assert snapshot.topic == "Family"
    assert snapshot.notes == "Morning prayer"
    assert snapshot.display == "01:00"


@pytest.mark.asyncio
async def test_zero_countdown_rejected(timer, tick_source):
    with pytest.raises(InvalidDurationError):
        timer.start(0)

    assert timer.state is TimerState.IDLE
    assert timer.session is None
    assert tick_source.active == 0


@pytest.mark.asyncio
async def test_negative_duration_rejected(timer):
    with pytest.raises(InvalidDurationError):
        timer.start(-5)
    assert timer.state is TimerState.IDLE


@pytest.mark.asyncio
async def test_non_integer_duration_rejected(timer):
    with pytest.raises(InvalidDurationError):
        timer.start(1.5)
    assert timer.state is TimerState.IDLE


@pytest.mark.asyncio
async def test_duration_above_cap_rejected(sink, tick_source):
    timer = SessionTimer(sink, tick_source, max_duration_seconds=180 * 60)

    with pytest.raises(InvalidDurationError, match="180 minutes"):
        timer.start(180 * 60 + 1)
    assert timer.state is TimerState.IDLE

    timer.start(180 * 60)
    assert timer.state is TimerState.RUNNING


@pytest.mark.asyncio
async def test_invalid_duration_is_a_value_error(timer):
    with pytest.raises(ValueError):
        timer.start(0)


# ── guarded transitions ───────────────────────────────────────────────


@pytest.mark.asyncio
async def test_double_start_is_single_start(timer, tick_source):
    first = timer.start(300)
    second = timer.start(600)

    assert second.session_id == first.session_id
    assert second.planned_duration_seconds == 300
    assert tick_source.schedule_count == 1
    assert tick_source.active == 1


@pytest.mark.asyncio
async def test_start_while_paused_is_noop(timer, tick_source):
    timer.start(300)
    await tick_source.fire(5)
    timer.pause()

    snapshot = timer.start(60)

    assert snapshot.state is TimerState.PAUSED
    assert snapshot.elapsed_seconds == 5
    assert tick_source.active == 0


@pytest.mark.asyncio
async def test_pause_and_resume_noop_when_idle(timer, tick_source):
    assert timer.pause().state is TimerState.IDLE
    assert timer.resume().state is TimerState.IDLE
    assert tick_source.schedule_count == 0


@pytest.mark.asyncio
async def test_resume_while_running_does_not_add_tick_source(timer, tick_source):
    timer.start(60)
    timer.resume()
    assert tick_source.schedule_count == 1


@pytest.mark.asyncio
async def test_pauses_contribute_no_time(timer, sink, tick_source):
    timer.start(100)
    delivered_while_running = 0
    for burst in (10, 25, 30, 35):
        await tick_source.fire(burst)
        delivered_while_running += burst
        timer.pause()
        # Ticks while paused never reach the timer
        await tick_source.fire(50)
        timer.resume()

    assert timer.state is TimerState.COMPLETED
    assert timer.session.elapsed_seconds == delivered_while_running == 100


@pytest.mark.asyncio
async def test_direct_tick_ignored_when_not_running(timer):
    await timer.tick()
    assert timer.snapshot().elapsed_seconds == 0

    timer.start(30)
    timer.pause()
    await timer.tick()
    assert timer.snapshot().elapsed_seconds == 0


# ── reset ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize("setup", ["idle", "running", "paused", "completed"])
async def test_reset_from_any_state(sink, tick_source, setup):
    timer = SessionTimer(sink, tick_source)
    if setup != "idle":
        timer.start(20)
        await tick_source.fire(5)
    if setup == "paused":
        timer.pause()
    if setup == "completed":
        await tick_source.fire(15)
    saved_before = len(sink.saved)

    snapshot = timer.reset()

    assert snapshot.state is TimerState.IDLE
    assert snapshot.elapsed_seconds == 0
    assert snapshot.session_id is None
    assert timer.session is None
    assert tick_source.active == 0
    assert len(sink.saved) == saved_before


@pytest.mark.asyncio
async def test_reset_never_saves(timer, sink, tick_source):
    timer.start(600)
    await tick_source.fire(120)
    timer.reset()

    assert sink.saved == []


@pytest.mark.asyncio
async def test_restart_after_reset_gets_new_session(timer, tick_source):
    first = timer.start(60).session_id
    timer.reset()
    second = timer.start(60).session_id

    assert first != second
    assert tick_source.active == 1


# ── stop ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_stop_before_target(timer, sink, tick_source):
    timer.start(600)
    await tick_source.fire(50)

    session = await timer.stop()

    assert timer.state is TimerState.COMPLETED
    assert session.elapsed_seconds == 50
    assert session.completed is False
    assert session.ended_at is not None
    assert sink.saved == [session]
    assert tick_source.active == 0


@pytest.mark.asyncio
async def test_stop_from_paused(timer, sink, tick_source):
    timer.start(600)
    await tick_source.fire(30)
    timer.pause()

    session = await timer.stop()

    assert session.elapsed_seconds == 30
    assert len(sink.saved) == 1


@pytest.mark.asyncio
async def test_stop_after_complete_saves_once(timer, sink, tick_source):
    timer.start(3)
    await tick_source.fire(3)

    session = await timer.stop()

    assert session is timer.session
    assert session.completed is True
    assert len(sink.saved) == 1


@pytest.mark.asyncio
async def test_double_stop_saves_once(timer, sink, tick_source):
    timer.start(60)
    await tick_source.fire(10)

    first = await timer.stop()
    second = await timer.stop()

    assert first is second
    assert len(sink.saved) == 1


@pytest.mark.asyncio
async def test_stop_when_idle_returns_none(timer, sink):
    assert await timer.stop() is None
    assert sink.saved == []


@pytest.mark.asyncio
async def test_ticks_after_completion_are_ignored(timer, tick_source):
    timer.start(2)
    await tick_source.fire(2)
    await timer.tick()

    assert timer.session.elapsed_seconds == 2


@pytest.mark.asyncio
async def test_finalized_session_is_immutable(timer, sink, tick_source):
    timer.start(60, notes="Before")
    await tick_source.fire(5)
    session = await timer.stop()

    with pytest.raises(Exception):
        session.notes = "After"
    with pytest.raises(TimerError):
        timer.annotate(notes="After")
    assert sink.saved[0].notes == "Before"


# ── count-up mode ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_count_up_accepts_zero_target(sink, tick_source):
    timer = SessionTimer(sink, tick_source, kind=SessionKind.BIBLE_READING)
    snapshot = timer.start(0)

    assert snapshot.mode is TimerMode.COUNT_UP
    assert snapshot.state is TimerState.RUNNING

    await tick_source.fire(90)
    assert timer.snapshot().display == "01:30"
    assert timer.snapshot().progress_percent == 0.0

    session = await timer.stop()
    assert session.elapsed_seconds == 90
    assert session.completed is False


@pytest.mark.asyncio
async def test_count_up_runs_past_goal(sink, tick_source):
    timer = SessionTimer(sink, tick_source, kind=SessionKind.BIBLE_READING)
    timer.start(60, chapter="John 3", verses="1-21")
    await tick_source.fire(75)

    assert timer.state is TimerState.RUNNING
    assert timer.snapshot().progress_percent == 100.0

    session = await timer.stop()
    assert session.elapsed_seconds == 75
    assert session.completed is True
    assert session.chapter == "John 3"


@pytest.mark.asyncio
async def test_mode_override_on_start(sink, tick_source):
    timer = SessionTimer(sink, tick_source, kind=SessionKind.BIBLE_READING)
    timer.start(2, mode="countdown")
    await tick_source.fire(2)

    assert timer.state is TimerState.COMPLETED
    assert timer.session.mode is TimerMode.COUNTDOWN

    timer.reset()
    assert timer.mode is TimerMode.COUNT_UP


# ── annotate ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_annotate_live_session(timer, sink, tick_source):
    timer.start(10, topic="Healing")
    timer.annotate(notes="For grandma")
    await tick_source.fire(10)

    saved = sink.saved[0]
    assert saved.topic == "Healing"
    assert saved.notes == "For grandma"


@pytest.mark.asyncio
async def test_annotate_without_session(timer):
    with pytest.raises(TimerError):
        timer.annotate(notes="Nothing here")


# ── persistence failures ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_failed_save_on_stop_keeps_completed(tick_source):
    failing = MagicMock()
    failing.save = AsyncMock(side_effect=PersistenceError("database unavailable"))
    timer = SessionTimer(failing, tick_source)
    timer.start(600)
    await tick_source.fire(50)

    with pytest.raises(PersistenceError):
        await timer.stop()

    snapshot = timer.snapshot()
    assert snapshot.state is TimerState.COMPLETED
    assert snapshot.elapsed_seconds == 50
    assert snapshot.persistence_error == "database unavailable"
    assert snapshot.record_id is None
    failing.save.assert_awaited_once()

    # A second stop does not retry behind the caller's back
    assert (await timer.stop()).elapsed_seconds == 50
    failing.save.assert_awaited_once()


@pytest.mark.asyncio
async def test_failed_save_on_tick_completion(tick_source):
    failing = MagicMock()
    failing.save = AsyncMock(side_effect=PersistenceError("offline"))
    timer = SessionTimer(failing, tick_source)
    events = []
    timer.subscribe(lambda event, snapshot: events.append(event))

    timer.start(2)
    await tick_source.fire(2)

    assert timer.state is TimerState.COMPLETED
    assert timer.session.completed is True
    assert timer.snapshot().persistence_error == "offline"
    assert events[-2:] == [TimerEvent.COMPLETED, TimerEvent.PERSISTENCE_FAILED]


@pytest.mark.asyncio
async def test_record_id_exposed_after_save(tick_source):
    record_id = uuid.uuid4()
    sink = MagicMock()
    sink.save = AsyncMock(return_value=record_id)
    timer = SessionTimer(sink, tick_source)
    timer.start(1)
    await tick_source.fire(1)

    assert timer.snapshot().record_id == record_id


# ── observers and teardown ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_listener_receives_transitions(timer, tick_source):
    events = []
    timer.subscribe(lambda event, snapshot: events.append((event, snapshot.state)))

    timer.start(2)
    timer.pause()
    timer.resume()
    await tick_source.fire(2)

    assert events == [
        (TimerEvent.STARTED, TimerState.RUNNING),
        (TimerEvent.PAUSED, TimerState.PAUSED),
        (TimerEvent.RESUMED, TimerState.RUNNING),
        (TimerEvent.TICK, TimerState.RUNNING),
        (TimerEvent.COMPLETED, TimerState.COMPLETED),
    ]


@pytest.mark.asyncio
async def test_unsubscribe(timer):
    events = []
    unsubscribe = timer.subscribe(lambda event, snapshot: events.append(event))
    unsubscribe()
    timer.start(5)

    assert events == []


@pytest.mark.asyncio
async def test_broken_listener_does_not_break_timer(timer, tick_source):
    def broken(event, snapshot):
        raise RuntimeError("render failed")

    seen = []
    timer.subscribe(broken)
    timer.subscribe(lambda event, snapshot: seen.append(event))

    timer.start(1)
    await tick_source.fire(1)

    assert timer.state is TimerState.COMPLETED
    assert seen == [TimerEvent.STARTED, TimerEvent.COMPLETED]


@pytest.mark.asyncio
async def test_snapshot_has_no_side_effects(timer, tick_source):
    timer.start(120)
    await tick_source.fire(30)

    first = timer.snapshot()
    second = timer.snapshot()

    assert first == second
    assert first.elapsed_seconds == 30
    assert first.remaining_seconds == 90
    assert first.progress_percent == 25.0
    assert first.display == "01:30"


@pytest.mark.asyncio
async def test_close_tears_down_tick_source(timer, tick_source):
    timer.start(60)
    assert tick_source.active == 1

    timer.close()

    assert tick_source.active == 0
    with pytest.raises(TimerError):
        timer.start(60)


@pytest.mark.asyncio
async def test_ended_at_after_started_at(sink, tick_source):
    now = [datetime(2026, 1, 1, tzinfo=timezone.utc)]
    timer = SessionTimer(sink, tick_source, clock=lambda: now[0])
    timer.start(60)
    now[0] += timedelta(seconds=60)
    await tick_source.fire(60)

    assert timer.session.ended_at - timer.session.started_at == timedelta(seconds=60)


class _SlowSink(PersistenceSink):
    """Sink whose save blocks until released, to overlap calls with a save."""

    def __init__(self):
        self.release = asyncio.Event()
        self.calls = 0

    async def save(self, session) -> uuid.UUID:
        self.calls += 1
        await self.release.wait()
        return uuid.uuid4()


@pytest.mark.asyncio
async def test_stop_racing_tick_completion_saves_once(tick_source):
    sink = _SlowSink()
    timer = SessionTimer(sink, tick_source)
    timer.start(1)

    completing = asyncio.create_task(tick_source.fire(1))
    await asyncio.sleep(0)
    assert timer.state is TimerState.COMPLETED

    stopped = await timer.stop()
    sink.release.set()
    await completing

    assert stopped.completed is True
    assert sink.calls == 1
    assert timer.snapshot().record_id is not None


@pytest.mark.asyncio
async def test_reset_during_save_drops_record_id(tick_source):
    sink = _SlowSink()
    timer = SessionTimer(sink, tick_source)
    timer.start(600)

    stopping = asyncio.create_task(timer.stop())
    await asyncio.sleep(0)
    timer.reset()
    sink.release.set()
    await stopping

    assert timer.state is TimerState.IDLE
    assert timer.snapshot().record_id is None
    assert sink.calls == 1


class _BrokenSink(PersistenceSink):
    async def save(self, session) -> uuid.UUID:
        raise RuntimeError("sink bug")


@pytest.mark.asyncio
async def test_unexpected_sink_error_leaves_no_live_ticks():
    source = AsyncioTickSource(0.01)
    timer = SessionTimer(_BrokenSink(), source)
    timer.start(1)

    await asyncio.sleep(0.05)

    assert timer.state is TimerState.COMPLETED
    assert not timer.is_ticking
    timer.close()
