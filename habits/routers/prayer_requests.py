import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from habits.database import get_db
from habits.dependencies import get_current_user
from habits.models.prayer_request import PrayerRequest
from habits.models.user import User
from habits.schemas.prayer_request import (
    PrayerAnsweredRequest,
    PrayerRequestCreate,
    PrayerRequestResponse,
)
from habits.services import prayer_request_service

router = APIRouter(prefix="/prayer-requests", tags=["prayer-requests"])


def _to_response(request: PrayerRequest, viewer_id: uuid.UUID) -> PrayerRequestResponse:
    response = PrayerRequestResponse.model_validate(request)
    if request.is_anonymous and request.user_id != viewer_id:
        response.user_id = None
    return response


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND, detail="Prayer request not found"
    )


@router.get("", response_model=list[PrayerRequestResponse])
async def list_prayer_requests(
    mine: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    requests = await prayer_request_service.get_prayer_requests(
        db, user.id, mine_only=mine, limit=limit, offset=offset
    )
    return [_to_response(r, user.id) for r in requests]


@router.post("", response_model=PrayerRequestResponse, status_code=201)
async def create_prayer_request(
    data: PrayerRequestCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    request = await prayer_request_service.create_prayer_request(db, user.id, data.model_dump())
    return _to_response(request, user.id)


@router.post("/{request_id}/pray", response_model=PrayerRequestResponse)
async def pray_for_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record that the user prayed for a request."""
    request = await prayer_request_service.increment_prayer_count(db, user.id, request_id)
    if request is None:
        raise _not_found()
    return _to_response(request, user.id)


@router.post("/{request_id}/answer", response_model=PrayerRequestResponse)
async def mark_answered(
    request_id: uuid.UUID,
    data: PrayerAnsweredRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    request = await prayer_request_service.mark_answered(
        db, user.id, request_id, testimony=data.testimony
    )
    if request is None:
        raise _not_found()
    return _to_response(request, user.id)


@router.delete("/{request_id}", status_code=204)
async def delete_prayer_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deleted = await prayer_request_service.delete_prayer_request(db, user.id, request_id)
    if not deleted:
        raise _not_found()
