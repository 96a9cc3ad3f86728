from datetime import date

from pydantic import BaseModel


class KindStats(BaseModel):
    session_count: int
    completed_count: int
    total_seconds: int
    average_seconds: int
    current_streak: int


class DailyBreakdown(BaseModel):
    date: date
    prayer_seconds: int
    reading_seconds: int
    session_count: int


class PracticeStats(BaseModel):
    active_count: int
    check_in_count: int  # check-ins within the period
    best_streak: int


class FastingStats(BaseModel):
    fast_count: int
    completed_count: int
    total_minutes: int
    is_fasting: bool


class GratitudeStats(BaseModel):
    entry_count: int
    item_count: int
    prayer_count: int
    current_streak: int


class StatsResponse(BaseModel):
    period: str  # daily, weekly, monthly
    total_days_active: int
    prayer: KindStats
    bible_reading: KindStats
    today_reading_seconds: int
    reading_goal_seconds: int
    reading_goal_percent: float
    daily_breakdown: list[DailyBreakdown]
    practices: PracticeStats
    fasting: FastingStats
    gratitude: GratitudeStats
