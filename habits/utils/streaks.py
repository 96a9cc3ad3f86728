from datetime import date, timedelta


def count_streak(dates: list[date], anchor: date, step: timedelta = timedelta(days=1)) -> int:
    """Count consecutive periods in ``dates`` (unique, newest first) ending at ``anchor``."""
    streak = 0
    expected = anchor
    for d in dates:
        if d == expected:
            streak += 1
            expected -= step
        elif d < expected:
            break
    return streak
