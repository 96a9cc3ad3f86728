import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
import sentry_sdk
from fastapi import FastAPI
from sqlalchemy import text

from habits.config import settings
from habits.database import async_session_factory, engine
from habits.timer.registry import TimerRegistry

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize Sentry
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.2 if settings.ENVIRONMENT == "production" else 1.0,
        profiles_sample_rate=0.1,
        send_default_pii=False,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: verify DB connection and connect Redis
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))

    app.state.redis = redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    await app.state.redis.ping()

    # Timers live as long as the process; closing tears down their tick sources
    app.state.timers = TimerRegistry(async_session_factory, redis_client=app.state.redis)
    logger.info("Habits API started (%s)", settings.ENVIRONMENT)

    yield

    # Shutdown
    app.state.timers.close()
    await app.state.redis.close()
    await engine.dispose()


app = FastAPI(
    title="Habits API",
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from habits.middleware.rate_limit import RateLimitMiddleware  # noqa: E402

_cors_origins = [
    "http://localhost:8081",  # Expo dev server
    "http://localhost:19006",
    "https://habits.app",
    "https://www.habits.app",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)

from habits.middleware.error_handler import register_error_handlers  # noqa: E402

register_error_handlers(app)

# Routers
from habits.routers.fasting import router as fasting_router  # noqa: E402
from habits.routers.gratitude import router as gratitude_router  # noqa: E402
from habits.routers.practices import router as practices_router  # noqa: E402
from habits.routers.prayer_requests import router as prayer_requests_router  # noqa: E402
from habits.routers.sessions import router as sessions_router  # noqa: E402
from habits.routers.stats import router as stats_router  # noqa: E402
from habits.routers.timers import router as timers_router  # noqa: E402

app.include_router(timers_router)
app.include_router(sessions_router)
app.include_router(stats_router)
app.include_router(prayer_requests_router)
app.include_router(practices_router)
app.include_router(fasting_router)
app.include_router(gratitude_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
