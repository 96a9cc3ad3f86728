def format_time(seconds: int) -> str:
    """Clock display for a timer: MM:SS, or HH:MM:SS from one hour up."""
    seconds = max(int(seconds), 0)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def progress_percent(elapsed_seconds: int, target_seconds: int) -> float:
    """Share of the target reached, capped at 100. No target means 0."""
    if target_seconds <= 0:
        return 0.0
    return round(min(elapsed_seconds / target_seconds * 100, 100.0), 1)
