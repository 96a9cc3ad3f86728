import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from habits.database import get_db
from habits.dependencies import get_current_user, get_redis
from habits.models.practice import Practice
from habits.models.user import User
from habits.schemas.practice import (
    PracticeCheckIn,
    PracticeCreate,
    PracticeLogResponse,
    PracticeResponse,
    PracticeUpdate,
)
from habits.services import practice_service, stats_service
from habits.utils.formatting import progress_percent

router = APIRouter(prefix="/practices", tags=["practices"])


def _to_response(practice: Practice) -> PracticeResponse:
    streak = practice_service.current_streak(practice)
    return PracticeResponse(
        id=practice.id,
        name=practice.name,
        category=practice.category,
        frequency=practice.frequency,
        goal=practice.goal,
        is_active=practice.is_active,
        streak=streak,
        progress_percent=progress_percent(streak, practice.goal),
        last_completed_on=practice.last_completed_on,
        created_at=practice.created_at,
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Practice not found")


async def _owned_practice(db: AsyncSession, user: User, practice_id: uuid.UUID) -> Practice:
    practice = await practice_service.get_practice(db, user.id, practice_id)
    if practice is None:
        raise _not_found()
    return practice


@router.get("", response_model=list[PracticeResponse])
async def list_practices(
    active: bool = Query(default=False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    practices = await practice_service.get_practices(db, user.id, active_only=active)
    return [_to_response(p) for p in practices]


@router.post("", response_model=PracticeResponse, status_code=201)
async def create_practice(
    data: PracticeCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis_client=Depends(get_redis),
):
    practice = await practice_service.create_practice(db, user.id, data.model_dump())
    await stats_service.commit_and_invalidate(db, redis_client, user.id)
    return _to_response(practice)


@router.get("/logs", response_model=list[PracticeLogResponse])
async def list_practice_logs(
    practice_id: uuid.UUID | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await practice_service.get_practice_logs(
        db, user.id, practice_id=practice_id, limit=limit, offset=offset
    )


@router.get("/{practice_id}", response_model=PracticeResponse)
async def get_practice(
    practice_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return _to_response(await _owned_practice(db, user, practice_id))


@router.patch("/{practice_id}", response_model=PracticeResponse)
async def update_practice(
    practice_id: uuid.UUID,
    data: PracticeUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis_client=Depends(get_redis),
):
    practice = await practice_service.update_practice(
        db, user.id, practice_id, data.model_dump(exclude_unset=True)
    )
    if practice is None:
        raise _not_found()
    await stats_service.commit_and_invalidate(db, redis_client, user.id)
    return _to_response(practice)


@router.delete("/{practice_id}", status_code=204)
async def delete_practice(
    practice_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis_client=Depends(get_redis),
):
    deleted = await practice_service.delete_practice(db, user.id, practice_id)
    if not deleted:
        raise _not_found()
    await stats_service.commit_and_invalidate(db, redis_client, user.id)


@router.post("/{practice_id}/check-in", response_model=PracticeLogResponse, status_code=201)
async def check_in(
    practice_id: uuid.UUID,
    data: PracticeCheckIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis_client=Depends(get_redis),
):
    """Mark the practice done for a day (today by default)."""
    practice = await _owned_practice(db, user, practice_id)
    log = await practice_service.check_in(
        db, practice, completed_on=data.completed_on, notes=data.notes
    )
    await stats_service.commit_and_invalidate(db, redis_client, user.id)
    return log


@router.delete("/{practice_id}/check-in/{completed_on}", status_code=204)
async def undo_check_in(
    practice_id: uuid.UUID,
    completed_on: date,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis_client=Depends(get_redis),
):
    practice = await _owned_practice(db, user, practice_id)
    deleted = await practice_service.delete_check_in(db, practice, completed_on)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Check-in not found")
    await stats_service.commit_and_invalidate(db, redis_client, user.id)
