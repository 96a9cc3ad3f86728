class TimerError(Exception):
    """Base class for session timer errors."""


class InvalidDurationError(TimerError, ValueError):
    """Raised when a start duration is outside what the timer accepts.

    Subclasses ValueError so the API layer answers it with a 400.
    """


class PersistenceError(TimerError):
    """Raised when a finalized session could not be saved.

    The timer has already moved to Completed when this is raised; the session
    that failed to save is attached so the caller can retry the write.
    """

    def __init__(self, message: str, session=None):
        super().__init__(message)
        self.session = session
