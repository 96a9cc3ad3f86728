from habits.models.base import Base
from habits.models.fasting import FastingLog
from habits.models.gratitude import GratitudeEntry
from habits.models.practice import Practice, PracticeLog
from habits.models.prayer_request import PrayerRequest
from habits.models.session import DevotionalSession
from habits.models.user import User

__all__ = [
    "Base",
    "DevotionalSession",
    "FastingLog",
    "GratitudeEntry",
    "Practice",
    "PracticeLog",
    "PrayerRequest",
    "User",
]
