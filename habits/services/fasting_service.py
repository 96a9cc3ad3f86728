import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from habits.models.fasting import FastingLog

logger = logging.getLogger(__name__)


class FastAlreadyActive(Exception):
    def __init__(self, fast: FastingLog):
        super().__init__(f"Fast {fast.id} is still active")
        self.fast = fast


def _minutes_between(started_at: datetime, ended_at: datetime) -> int:
    return int((ended_at - started_at).total_seconds() // 60)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def get_active_fast(db: AsyncSession, user_id: uuid.UUID) -> FastingLog | None:
    result = await db.execute(
        select(FastingLog)
        .where(FastingLog.user_id == user_id, FastingLog.ended_at.is_(None))
        .order_by(FastingLog.started_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def start_fast(db: AsyncSession, user_id: uuid.UUID, data: dict) -> FastingLog:
    """Open a fast, or record a finished one when ``ended_at`` is given.

    Only one fast may be open at a time.
    """
    now = datetime.now(timezone.utc)
    started_at = data.pop("started_at", None) or now
    ended_at = data.pop("ended_at", None)
    if _as_utc(started_at) > now:
        raise ValueError("A fast cannot start in the future")

    if ended_at is None:
        active = await get_active_fast(db, user_id)
        if active is not None:
            raise FastAlreadyActive(active)

    fast = FastingLog(user_id=user_id, started_at=started_at, ended_at=ended_at, **data)
    if ended_at is not None:
        fast.duration_minutes = _minutes_between(_as_utc(started_at), _as_utc(ended_at))
    db.add(fast)
    await db.flush()
    await db.refresh(fast)
    logger.info("User %s started a %s fast", user_id, fast.fast_type)
    return fast


async def get_fast(db: AsyncSession, user_id: uuid.UUID, fast_id: uuid.UUID) -> FastingLog | None:
    result = await db.execute(
        select(FastingLog).where(FastingLog.id == fast_id, FastingLog.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def end_fast(
    db: AsyncSession,
    fast: FastingLog,
    ended_at: datetime | None = None,
    notes: str | None = None,
) -> FastingLog:
    ended_at = ended_at or datetime.now(timezone.utc)
    started_at = _as_utc(fast.started_at)
    if _as_utc(ended_at) < started_at:
        raise ValueError("ended_at must not be before started_at")

    fast.ended_at = ended_at
    fast.duration_minutes = _minutes_between(started_at, _as_utc(ended_at))
    if notes:
        fast.notes = notes
    await db.flush()
    await db.refresh(fast)
    return fast


async def get_fasts(
    db: AsyncSession,
    user_id: uuid.UUID,
    status: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[FastingLog]:
    query = select(FastingLog).where(FastingLog.user_id == user_id)
    if status == "active":
        query = query.where(FastingLog.ended_at.is_(None))
    elif status == "past":
        query = query.where(FastingLog.ended_at.is_not(None))
    query = query.order_by(FastingLog.started_at.desc()).limit(limit).offset(offset)
    result = await db.execute(query)
    return list(result.scalars().all())


async def update_fast(
    db: AsyncSession, user_id: uuid.UUID, fast_id: uuid.UUID, data: dict
) -> FastingLog | None:
    fast = await get_fast(db, user_id, fast_id)
    if fast is None:
        return None
    for field, value in data.items():
        setattr(fast, field, value)
    await db.flush()
    await db.refresh(fast)
    return fast


async def delete_fast(db: AsyncSession, user_id: uuid.UUID, fast_id: uuid.UUID) -> bool:
    fast = await get_fast(db, user_id, fast_id)
    if fast is None:
        return False
    await db.delete(fast)
    await db.flush()
    return True
