import logging

from fastapi import APIRouter, Depends, HTTPException, status

from habits.config import settings
from habits.dependencies import get_current_user, get_timer_registry
from habits.models.user import User
from habits.schemas.timer import TimerAnnotateRequest, TimerPresetsResponse, TimerStartRequest
from habits.timer.errors import PersistenceError
from habits.timer.models import DEFAULT_MODES, SessionKind, TimerSnapshot, TimerState
from habits.timer.registry import TimerRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/timers", tags=["timers"])


def _idle_snapshot(kind: SessionKind) -> TimerSnapshot:
    return TimerSnapshot(state=TimerState.IDLE, kind=kind, mode=DEFAULT_MODES[kind])


@router.get("/presets", response_model=TimerPresetsResponse)
async def get_presets():
    return TimerPresetsResponse(
        prayer_preset_minutes=settings.PRAYER_PRESET_MINUTES,
        prayer_max_minutes=settings.PRAYER_MAX_MINUTES,
        bible_reading_max_minutes=settings.BIBLE_READING_MAX_MINUTES,
        bible_reading_goal_minutes=settings.BIBLE_READING_GOAL_MINUTES,
    )


@router.get("/{kind}", response_model=TimerSnapshot)
async def get_timer(
    kind: SessionKind,
    user: User = Depends(get_current_user),
    timers: TimerRegistry = Depends(get_timer_registry),
):
    timer = timers.get(user.id, kind)
    if timer is None:
        return _idle_snapshot(kind)
    return timer.snapshot()


@router.post("/{kind}/start", response_model=TimerSnapshot)
async def start_timer(
    kind: SessionKind,
    data: TimerStartRequest,
    user: User = Depends(get_current_user),
    timers: TimerRegistry = Depends(get_timer_registry),
):
    """Start an episode. A second start while one is live returns it unchanged."""
    timer = timers.get_or_create(user.id, kind)
    return timer.start(
        data.total_seconds,
        mode=data.mode,
        topic=data.topic,
        chapter=data.chapter,
        verses=data.verses,
        notes=data.notes,
    )


@router.post("/{kind}/pause", response_model=TimerSnapshot)
async def pause_timer(
    kind: SessionKind,
    user: User = Depends(get_current_user),
    timers: TimerRegistry = Depends(get_timer_registry),
):
    timer = timers.get(user.id, kind)
    if timer is None:
        return _idle_snapshot(kind)
    return timer.pause()


@router.post("/{kind}/resume", response_model=TimerSnapshot)
async def resume_timer(
    kind: SessionKind,
    user: User = Depends(get_current_user),
    timers: TimerRegistry = Depends(get_timer_registry),
):
    timer = timers.get(user.id, kind)
    if timer is None:
        return _idle_snapshot(kind)
    return timer.resume()


@router.post("/{kind}/reset", response_model=TimerSnapshot)
async def reset_timer(
    kind: SessionKind,
    user: User = Depends(get_current_user),
    timers: TimerRegistry = Depends(get_timer_registry),
):
    """Discard the current episode without saving it."""
    timer = timers.get(user.id, kind)
    if timer is None:
        return _idle_snapshot(kind)
    return timer.reset()


@router.post("/{kind}/stop", response_model=TimerSnapshot)
async def stop_timer(
    kind: SessionKind,
    user: User = Depends(get_current_user),
    timers: TimerRegistry = Depends(get_timer_registry),
):
    """End the episode and save it.

    A failed save still answers 200: the session is completed either way and
    the snapshot's persistence_error tells the client to show a notice.
    """
    timer = timers.get(user.id, kind)
    if timer is None:
        return _idle_snapshot(kind)
    try:
        await timer.stop()
    except PersistenceError as e:
        logger.warning("Stop for user %s saved nothing: %s", user.id, e)
    return timer.snapshot()


@router.patch("/{kind}", response_model=TimerSnapshot)
async def annotate_timer(
    kind: SessionKind,
    data: TimerAnnotateRequest,
    user: User = Depends(get_current_user),
    timers: TimerRegistry = Depends(get_timer_registry),
):
    timer = timers.get(user.id, kind)
    if timer is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="No session in progress"
        )
    return timer.annotate(**data.model_dump(exclude_unset=True))
