import uuid
from datetime import datetime, timezone

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from habits.models.prayer_request import PrayerRequest


async def create_prayer_request(db: AsyncSession, user_id: uuid.UUID, data: dict) -> PrayerRequest:
    request = PrayerRequest(user_id=user_id, prayer_count=0, is_answered=False, **data)
    db.add(request)
    await db.flush()
    await db.refresh(request)
    return request


async def get_prayer_requests(
    db: AsyncSession,
    user_id: uuid.UUID,
    mine_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> list[PrayerRequest]:
    """The user's own requests plus everyone else's public ones, newest first."""
    query = select(PrayerRequest)
    if mine_only:
        query = query.where(PrayerRequest.user_id == user_id)
    else:
        query = query.where(
            or_(PrayerRequest.user_id == user_id, PrayerRequest.is_private == False)  # noqa: E712
        )
    query = query.order_by(PrayerRequest.created_at.desc()).limit(limit).offset(offset)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_visible_request(
    db: AsyncSession, user_id: uuid.UUID, request_id: uuid.UUID
) -> PrayerRequest | None:
    request = await db.get(PrayerRequest, request_id)
    if request is None:
        return None
    if request.is_private and request.user_id != user_id:
        return None
    return request


async def increment_prayer_count(
    db: AsyncSession, user_id: uuid.UUID, request_id: uuid.UUID
) -> PrayerRequest | None:
    request = await get_visible_request(db, user_id, request_id)
    if request is None:
        return None

    # Increment in SQL so concurrent "I prayed" taps don't lose updates
    await db.execute(
        update(PrayerRequest)
        .where(PrayerRequest.id == request_id)
        .values(prayer_count=PrayerRequest.prayer_count + 1)
    )
    await db.flush()
    await db.refresh(request)
    return request


async def mark_answered(
    db: AsyncSession,
    user_id: uuid.UUID,
    request_id: uuid.UUID,
    testimony: str | None = None,
) -> PrayerRequest | None:
    result = await db.execute(
        select(PrayerRequest).where(
            PrayerRequest.id == request_id, PrayerRequest.user_id == user_id
        )
    )
    request = result.scalar_one_or_none()
    if request is None:
        return None

    request.is_answered = True
    request.answered_at = datetime.now(timezone.utc)
    if testimony:
        request.testimony = testimony
    request.updated_at = datetime.now(timezone.utc)

    await db.flush()
    await db.refresh(request)
    return request


async def delete_prayer_request(
    db: AsyncSession, user_id: uuid.UUID, request_id: uuid.UUID
) -> bool:
    result = await db.execute(
        select(PrayerRequest).where(
            PrayerRequest.id == request_id, PrayerRequest.user_id == user_id
        )
    )
    request = result.scalar_one_or_none()
    if request is None:
        return False
    await db.delete(request)
    await db.flush()
    return True
