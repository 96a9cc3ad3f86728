import logging
import uuid
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from habits.models.practice import Practice, PracticeLog
from habits.utils.streaks import count_streak

logger = logging.getLogger(__name__)


def _period_of(day: date, frequency: str) -> date:
    # Weekly practices count by ISO week, keyed on its Monday
    if frequency == "weekly":
        return day - timedelta(days=day.weekday())
    return day


def _step(frequency: str) -> timedelta:
    return timedelta(days=7) if frequency == "weekly" else timedelta(days=1)


def current_streak(practice: Practice, today: date | None = None) -> int:
    """The stored streak, or 0 once the previous period has passed without a check-in."""
    if practice.last_completed_on is None:
        return 0
    today = today or datetime.now(timezone.utc).date()
    current = _period_of(today, practice.frequency)
    last = _period_of(practice.last_completed_on, practice.frequency)
    if last < current - _step(practice.frequency):
        return 0
    return practice.streak


async def create_practice(db: AsyncSession, user_id: uuid.UUID, data: dict) -> Practice:
    practice = Practice(user_id=user_id, is_active=True, streak=0, **data)
    db.add(practice)
    await db.flush()
    await db.refresh(practice)
    return practice


async def get_practices(
    db: AsyncSession, user_id: uuid.UUID, active_only: bool = False
) -> list[Practice]:
    query = select(Practice).where(Practice.user_id == user_id)
    if active_only:
        query = query.where(Practice.is_active == True)  # noqa: E712
    query = query.order_by(Practice.created_at.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_practice(
    db: AsyncSession, user_id: uuid.UUID, practice_id: uuid.UUID
) -> Practice | None:
    result = await db.execute(
        select(Practice).where(Practice.id == practice_id, Practice.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def update_practice(
    db: AsyncSession, user_id: uuid.UUID, practice_id: uuid.UUID, data: dict
) -> Practice | None:
    practice = await get_practice(db, user_id, practice_id)
    if practice is None:
        return None
    for field, value in data.items():
        setattr(practice, field, value)
    practice.updated_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(practice)
    return practice


async def delete_practice(db: AsyncSession, user_id: uuid.UUID, practice_id: uuid.UUID) -> bool:
    practice = await get_practice(db, user_id, practice_id)
    if practice is None:
        return False
    await db.execute(delete(PracticeLog).where(PracticeLog.practice_id == practice.id))
    await db.delete(practice)
    await db.flush()
    return True


async def check_in(
    db: AsyncSession,
    practice: Practice,
    completed_on: date | None = None,
    notes: str | None = None,
) -> PracticeLog:
    """Log a completion for a day and refresh the practice's streak.

    Checking in twice for the same day returns the existing log.
    """
    today = datetime.now(timezone.utc).date()
    completed_on = completed_on or today
    if completed_on > today:
        raise ValueError("Cannot check in for a future day")

    result = await db.execute(
        select(PracticeLog).where(
            PracticeLog.practice_id == practice.id,
            PracticeLog.completed_on == completed_on,
        )
    )
    log = result.scalar_one_or_none()
    if log is None:
        log = PracticeLog(practice_id=practice.id, completed_on=completed_on, notes=notes)
        db.add(log)
        await db.flush()
        await db.refresh(log)
    else:
        logger.debug("Practice %s already checked in for %s", practice.id, completed_on)

    await _refresh_streak(db, practice)
    return log


async def _refresh_streak(db: AsyncSession, practice: Practice) -> None:
    result = await db.execute(
        select(PracticeLog.completed_on)
        .where(PracticeLog.practice_id == practice.id)
        .order_by(PracticeLog.completed_on.desc())
    )
    days = list(result.scalars().all())
    if not days:
        practice.streak = 0
        practice.last_completed_on = None
    else:
        periods = list(dict.fromkeys(_period_of(d, practice.frequency) for d in days))
        # Counted back from the latest check-in; current_streak() decides if it still holds
        practice.streak = count_streak(periods, periods[0], _step(practice.frequency))
        practice.last_completed_on = days[0]
    practice.updated_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(practice)


async def get_practice_logs(
    db: AsyncSession,
    user_id: uuid.UUID,
    practice_id: uuid.UUID | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[PracticeLog]:
    """Check-ins across the user's practices, most recent day first."""
    query = (
        select(PracticeLog)
        .join(Practice, PracticeLog.practice_id == Practice.id)
        .where(Practice.user_id == user_id)
    )
    if practice_id is not None:
        query = query.where(PracticeLog.practice_id == practice_id)
    query = query.order_by(PracticeLog.completed_on.desc()).limit(limit).offset(offset)
    result = await db.execute(query)
    return list(result.scalars().all())


async def delete_check_in(
    db: AsyncSession, practice: Practice, completed_on: date
) -> bool:
    result = await db.execute(
        select(PracticeLog).where(
            PracticeLog.practice_id == practice.id,
            PracticeLog.completed_on == completed_on,
        )
    )
    log = result.scalar_one_or_none()
    if log is None:
        return False
    await db.delete(log)
    await db.flush()
    await _refresh_streak(db, practice)
    return True
