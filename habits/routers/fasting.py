import uuid
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from habits.database import get_db
from habits.dependencies import get_current_user, get_redis
from habits.models.user import User
from habits.schemas.fasting import FastEnd, FastResponse, FastStart, FastUpdate
from habits.services import fasting_service, stats_service

router = APIRouter(prefix="/fasts", tags=["fasting"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fast not found")


@router.get("", response_model=list[FastResponse])
async def list_fasts(
    status_filter: Literal["active", "past"] | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await fasting_service.get_fasts(
        db, user.id, status=status_filter, limit=limit, offset=offset
    )


@router.get("/active", response_model=FastResponse | None)
async def get_active_fast(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await fasting_service.get_active_fast(db, user.id)


@router.post("", response_model=FastResponse, status_code=201)
async def start_fast(
    data: FastStart,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis_client=Depends(get_redis),
):
    try:
        fast = await fasting_service.start_fast(db, user.id, data.model_dump())
    except fasting_service.FastAlreadyActive as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"End the fast started at {exc.fast.started_at.isoformat()} first",
        )
    await stats_service.commit_and_invalidate(db, redis_client, user.id)
    return fast


@router.post("/{fast_id}/end", response_model=FastResponse)
async def end_fast(
    fast_id: uuid.UUID,
    data: FastEnd,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis_client=Depends(get_redis),
):
    fast = await fasting_service.get_fast(db, user.id, fast_id)
    if fast is None:
        raise _not_found()
    if not fast.is_active:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Fast already ended")
    fast = await fasting_service.end_fast(db, fast, ended_at=data.ended_at, notes=data.notes)
    await stats_service.commit_and_invalidate(db, redis_client, user.id)
    return fast


@router.get("/{fast_id}", response_model=FastResponse)
async def get_fast(
    fast_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    fast = await fasting_service.get_fast(db, user.id, fast_id)
    if fast is None:
        raise _not_found()
    return fast


@router.patch("/{fast_id}", response_model=FastResponse)
async def update_fast(
    fast_id: uuid.UUID,
    data: FastUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    fast = await fasting_service.update_fast(
        db, user.id, fast_id, data.model_dump(exclude_unset=True)
    )
    if fast is None:
        raise _not_found()
    return fast


@router.delete("/{fast_id}", status_code=204)
async def delete_fast(
    fast_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis_client=Depends(get_redis),
):
    deleted = await fasting_service.delete_fast(db, user.id, fast_id)
    if not deleted:
        raise _not_found()
    await stats_service.commit_and_invalidate(db, redis_client, user.id)
