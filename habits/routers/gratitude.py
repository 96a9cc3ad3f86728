from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from habits.database import get_db
from habits.dependencies import get_current_user, get_redis
from habits.models.user import User
from habits.schemas.gratitude import GratitudeEntryResponse, GratitudeEntryWrite
from habits.services import gratitude_service, stats_service

router = APIRouter(prefix="/gratitude", tags=["gratitude"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No gratitude entry for that day")


@router.get("", response_model=list[GratitudeEntryResponse])
async def list_entries(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await gratitude_service.get_entries(
        db, user.id, start_date=start_date, end_date=end_date, limit=limit, offset=offset
    )


@router.get("/{entry_date}", response_model=GratitudeEntryResponse)
async def get_entry(
    entry_date: date,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    entry = await gratitude_service.get_entry(db, user.id, entry_date)
    if entry is None:
        raise _not_found()
    return entry


@router.put("/{entry_date}", response_model=GratitudeEntryResponse)
async def save_entry(
    entry_date: date,
    data: GratitudeEntryWrite,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis_client=Depends(get_redis),
):
    """Create or replace the journal page for a day."""
    entry, created = await gratitude_service.save_entry(
        db, user.id, entry_date, data.items, data.prayer_of_thanksgiving
    )
    await stats_service.commit_and_invalidate(db, redis_client, user.id)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return entry


@router.delete("/{entry_date}", status_code=204)
async def delete_entry(
    entry_date: date,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis_client=Depends(get_redis),
):
    deleted = await gratitude_service.delete_entry(db, user.id, entry_date)
    if not deleted:
        raise _not_found()
    await stats_service.commit_and_invalidate(db, redis_client, user.id)
