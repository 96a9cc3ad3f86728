import json
import logging
import uuid
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from habits.config import settings
from habits.models.fasting import FastingLog
from habits.models.gratitude import GratitudeEntry
from habits.models.practice import Practice, PracticeLog
from habits.models.session import DevotionalSession
from habits.services.practice_service import current_streak
from habits.utils.streaks import count_streak

logger = logging.getLogger(__name__)

PERIODS = ("daily", "weekly", "monthly")
KINDS = ("prayer", "bible_reading")


def _period_start(period: str, now: datetime) -> datetime:
    if period == "daily":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "monthly":
        return now - timedelta(days=30)
    return now - timedelta(days=7)


def _cache_key(user_id: uuid.UUID, period: str) -> str:
    return f"stats:{user_id}:{period}"


async def get_stats(
    db: AsyncSession,
    user_id: uuid.UUID,
    period: str = "weekly",
    redis_client=None,
) -> dict:
    """Stats for a period, served from Redis when a fresh copy is cached."""
    key = _cache_key(user_id, period)
    if redis_client is not None:
        try:
            cached = await redis_client.get(key)
        except Exception:
            logger.warning("Stats cache read failed for %s", key, exc_info=True)
            cached = None
        if cached:
            return json.loads(cached)

    stats = await compute_stats(db, user_id, period=period)

    if redis_client is not None:
        try:
            await redis_client.set(key, json.dumps(stats), ex=settings.STATS_CACHE_TTL_SECONDS)
        except Exception:
            logger.warning("Stats cache write failed for %s", key, exc_info=True)
    return stats


async def invalidate_stats_cache(redis_client, user_id: uuid.UUID) -> None:
    """Drop cached stats after a session is written. Failures only cost freshness."""
    try:
        await redis_client.delete(*(_cache_key(user_id, period) for period in PERIODS))
    except Exception:
        logger.warning("Stats cache invalidation failed for user %s", user_id, exc_info=True)


async def commit_and_invalidate(db: AsyncSession, redis_client, user_id: uuid.UUID) -> None:
    """Commit a write that changes stats, then drop the cached copies.

    The order matters: a /stats request between clearing and committing would
    recompute without the write and cache that for the whole TTL.
    """
    await db.commit()
    if redis_client is not None:
        await invalidate_stats_cache(redis_client, user_id)


async def compute_stats(
    db: AsyncSession,
    user_id: uuid.UUID,
    period: str = "weekly",
) -> dict:
    now = datetime.now(timezone.utc)
    start = _period_start(period, now)

    # Per-kind aggregates
    result = await db.execute(
        select(
            DevotionalSession.kind,
            func.count(DevotionalSession.id).label("session_count"),
            func.coalesce(
                func.sum(case((DevotionalSession.completed == True, 1), else_=0)), 0  # noqa: E712
            ).label("completed_count"),
            func.coalesce(func.sum(DevotionalSession.elapsed_seconds), 0).label("total_seconds"),
        ).where(
            DevotionalSession.user_id == user_id,
            DevotionalSession.started_at >= start,
        ).group_by(
            DevotionalSession.kind
        )
    )
    rows = {row.kind: row for row in result.all()}

    kinds = {}
    for kind in KINDS:
        row = rows.get(kind)
        session_count = row.session_count if row else 0
        total_seconds = int(row.total_seconds) if row else 0
        kinds[kind] = {
            "session_count": session_count,
            "completed_count": int(row.completed_count) if row else 0,
            "total_seconds": total_seconds,
            "average_seconds": round(total_seconds / session_count) if session_count else 0,
            "current_streak": await calculate_streak(db, user_id, kind),
        }

    # Daily breakdown using date() function (works on both SQLite and Postgres)
    date_expr = func.date(DevotionalSession.started_at)
    daily_result = await db.execute(
        select(
            date_expr.label("day"),
            DevotionalSession.kind,
            func.sum(DevotionalSession.elapsed_seconds).label("seconds"),
            func.count(DevotionalSession.id).label("session_count"),
        ).where(
            DevotionalSession.user_id == user_id,
            DevotionalSession.started_at >= start,
        ).group_by(
            date_expr, DevotionalSession.kind
        ).order_by(
            date_expr
        )
    )
    days: dict[str, dict] = {}
    for d in daily_result.all():
        entry = days.setdefault(
            str(d.day),
            {"date": str(d.day), "prayer_seconds": 0, "reading_seconds": 0, "session_count": 0},
        )
        field = "prayer_seconds" if d.kind == "prayer" else "reading_seconds"
        entry[field] += d.seconds or 0
        entry["session_count"] += d.session_count

    today_reading = await get_today_reading_seconds(db, user_id, now)
    goal_seconds = settings.BIBLE_READING_GOAL_MINUTES * 60

    return {
        "period": period,
        "total_days_active": await count_active_days(db, user_id),
        "prayer": kinds["prayer"],
        "bible_reading": kinds["bible_reading"],
        "today_reading_seconds": today_reading,
        "reading_goal_seconds": goal_seconds,
        "reading_goal_percent": round(min(today_reading / goal_seconds * 100, 100.0), 1) if goal_seconds else 0.0,
        "daily_breakdown": list(days.values()),
        "practices": await practice_stats(db, user_id, start.date(), now.date()),
        "fasting": await fasting_stats(db, user_id, start),
        "gratitude": await gratitude_stats(db, user_id, start.date(), now.date()),
    }


async def get_today_reading_seconds(db: AsyncSession, user_id: uuid.UUID, now: datetime) -> int:
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    result = await db.execute(
        select(func.coalesce(func.sum(DevotionalSession.elapsed_seconds), 0)).where(
            DevotionalSession.user_id == user_id,
            DevotionalSession.kind == "bible_reading",
            DevotionalSession.started_at >= today_start,
        )
    )
    return int(result.scalar_one())


async def count_active_days(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Distinct days with any recorded session, all time."""
    date_expr = func.date(DevotionalSession.started_at)
    result = await db.execute(
        select(func.count(func.distinct(date_expr))).where(
            DevotionalSession.user_id == user_id,
        )
    )
    return int(result.scalar_one())


def _parse_dates(raw_dates: list) -> list[date]:
    # Parse string dates from SQLite or date objects from Postgres
    dates = []
    for d in raw_dates:
        if isinstance(d, str):
            dates.append(date.fromisoformat(d))
        elif isinstance(d, date):
            dates.append(d)
    return dates


async def calculate_streak(db: AsyncSession, user_id: uuid.UUID, kind: str) -> int:
    """Calculate consecutive days with sessions of a kind, ending today."""
    date_expr = func.date(DevotionalSession.started_at)
    result = await db.execute(
        select(
            date_expr.label("session_date"),
        ).where(
            DevotionalSession.user_id == user_id,
            DevotionalSession.kind == kind,
            DevotionalSession.elapsed_seconds > 0,
        ).group_by(
            date_expr
        ).order_by(
            date_expr.desc()
        )
    )
    dates = _parse_dates([row.session_date for row in result.all()])

    return count_streak(dates, datetime.now(timezone.utc).date())


async def practice_stats(db: AsyncSession, user_id: uuid.UUID, start: date, today: date) -> dict:
    result = await db.execute(
        select(Practice).where(Practice.user_id == user_id, Practice.is_active == True)  # noqa: E712
    )
    active = list(result.scalars().all())

    check_ins = await db.execute(
        select(func.count(PracticeLog.id))
        .join(Practice, PracticeLog.practice_id == Practice.id)
        .where(Practice.user_id == user_id, PracticeLog.completed_on >= start)
    )
    return {
        "active_count": len(active),
        "check_in_count": int(check_ins.scalar_one()),
        "best_streak": max((current_streak(p, today) for p in active), default=0),
    }


async def fasting_stats(db: AsyncSession, user_id: uuid.UUID, start: datetime) -> dict:
    """Fasts begun in the period. Minutes only count fasts that have ended."""
    result = await db.execute(
        select(
            func.count(FastingLog.id).label("fast_count"),
            func.count(FastingLog.ended_at).label("completed_count"),
            func.coalesce(func.sum(FastingLog.duration_minutes), 0).label("total_minutes"),
        ).where(
            FastingLog.user_id == user_id,
            FastingLog.started_at >= start,
        )
    )
    row = result.one()
    active = await db.execute(
        select(func.count(FastingLog.id)).where(
            FastingLog.user_id == user_id, FastingLog.ended_at.is_(None)
        )
    )
    return {
        "fast_count": int(row.fast_count),
        "completed_count": int(row.completed_count),
        "total_minutes": int(row.total_minutes),
        "is_fasting": active.scalar_one() > 0,
    }


async def gratitude_stats(db: AsyncSession, user_id: uuid.UUID, start: date, today: date) -> dict:
    result = await db.execute(
        select(GratitudeEntry.entry_date, GratitudeEntry.items, GratitudeEntry.prayer_of_thanksgiving)
        .where(GratitudeEntry.user_id == user_id)
        .order_by(GratitudeEntry.entry_date.desc())
    )
    rows = result.all()
    in_period = [r for r in rows if r.entry_date >= start]
    return {
        "entry_count": len(in_period),
        "item_count": sum(len(r.items or []) for r in in_period),
        "prayer_count": sum(1 for r in in_period if r.prayer_of_thanksgiving),
        "current_streak": count_streak([r.entry_date for r in rows], today),
    }
