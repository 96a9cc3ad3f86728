from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from habits.database import get_db
from habits.dependencies import get_current_user, get_redis
from habits.models.user import User
from habits.schemas.stats import StatsResponse
from habits.services import stats_service

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=StatsResponse)
async def get_stats(
    period: str = Query(default="weekly", pattern="^(daily|weekly|monthly)$"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis_client=Depends(get_redis),
):
    return await stats_service.get_stats(db, user.id, period=period, redis_client=redis_client)
