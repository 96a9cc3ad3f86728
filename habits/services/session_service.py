import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from habits.models.session import DevotionalSession


async def get_sessions(
    db: AsyncSession,
    user_id: uuid.UUID,
    kind: str | None = None,
    limit: int = 50,
    offset: int = 0,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> list[DevotionalSession]:
    query = select(DevotionalSession).where(DevotionalSession.user_id == user_id)
    if kind:
        query = query.where(DevotionalSession.kind == kind)
    if start_date:
        query = query.where(DevotionalSession.started_at >= start_date)
    if end_date:
        query = query.where(DevotionalSession.started_at <= end_date)
    query = query.order_by(DevotionalSession.started_at.desc()).limit(limit).offset(offset)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_session(
    db: AsyncSession, user_id: uuid.UUID, session_id: uuid.UUID
) -> DevotionalSession | None:
    result = await db.execute(
        select(DevotionalSession).where(
            DevotionalSession.id == session_id, DevotionalSession.user_id == user_id
        )
    )
    return result.scalar_one_or_none()


async def create_session(db: AsyncSession, user_id: uuid.UUID, data: dict) -> DevotionalSession:
    """Insert a finished session. Sessions are never updated after this."""
    session = DevotionalSession(user_id=user_id, **data)
    db.add(session)
    await db.flush()
    await db.refresh(session)
    return session


async def delete_session(db: AsyncSession, user_id: uuid.UUID, session_id: uuid.UUID) -> bool:
    session = await get_session(db, user_id, session_id)
    if session is None:
        return False
    await db.delete(session)
    await db.flush()
    return True
