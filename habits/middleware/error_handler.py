import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from habits.timer.errors import InvalidDurationError, PersistenceError, TimerError


def register_error_handlers(app: FastAPI):
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        sentry_sdk.capture_exception(exc)
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "type": type(exc).__name__,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc)},
        )

    # Handlers resolve by MRO, so this must be explicit or TimerError wins
    @app.exception_handler(InvalidDurationError)
    async def invalid_duration_handler(request: Request, exc: InvalidDurationError):
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc)},
        )

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        sentry_sdk.capture_exception(exc)
        return JSONResponse(
            status_code=503,
            content={"detail": str(exc)},
        )

    @app.exception_handler(TimerError)
    async def timer_error_handler(request: Request, exc: TimerError):
        return JSONResponse(
            status_code=409,
            content={"detail": str(exc)},
        )
