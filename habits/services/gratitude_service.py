import uuid
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from habits.models.gratitude import GratitudeEntry


async def get_entry(db: AsyncSession, user_id: uuid.UUID, entry_date: date) -> GratitudeEntry | None:
    result = await db.execute(
        select(GratitudeEntry).where(
            GratitudeEntry.user_id == user_id, GratitudeEntry.entry_date == entry_date
        )
    )
    return result.scalar_one_or_none()


async def save_entry(
    db: AsyncSession,
    user_id: uuid.UUID,
    entry_date: date,
    items: list[str],
    prayer_of_thanksgiving: str | None = None,
) -> tuple[GratitudeEntry, bool]:
    """Write the journal page for a day, replacing any earlier save. Returns (entry, created)."""
    if entry_date > datetime.now(timezone.utc).date():
        raise ValueError("Cannot write a gratitude entry for a future day")

    entry = await get_entry(db, user_id, entry_date)
    created = entry is None
    if created:
        entry = GratitudeEntry(user_id=user_id, entry_date=entry_date)
        db.add(entry)
    else:
        entry.updated_at = datetime.now(timezone.utc)
    entry.items = list(items)
    entry.prayer_of_thanksgiving = prayer_of_thanksgiving
    await db.flush()
    await db.refresh(entry)
    return entry, created


async def get_entries(
    db: AsyncSession,
    user_id: uuid.UUID,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[GratitudeEntry]:
    query = select(GratitudeEntry).where(GratitudeEntry.user_id == user_id)
    if start_date:
        query = query.where(GratitudeEntry.entry_date >= start_date)
    if end_date:
        query = query.where(GratitudeEntry.entry_date <= end_date)
    query = query.order_by(GratitudeEntry.entry_date.desc()).limit(limit).offset(offset)
    result = await db.execute(query)
    return list(result.scalars().all())


async def delete_entry(db: AsyncSession, user_id: uuid.UUID, entry_date: date) -> bool:
    entry = await get_entry(db, user_id, entry_date)
    if entry is None:
        return False
    await db.delete(entry)
    await db.flush()
    return True
