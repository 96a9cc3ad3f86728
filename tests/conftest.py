import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from habits.database import get_db
from habits.dependencies import get_current_user
from habits.main import app
from habits.models import Base
from habits.models.user import User
from habits.timer.models import SessionKind
from habits.timer.registry import TimerRegistry
from habits.timer.session_timer import SessionTimer
from habits.timer.sinks import PersistenceSink
from habits.timer.tick import TickSource

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeRedis:
    """In-memory Redis mock for testing."""

    def __init__(self):
        self._store: dict[str, str] = {}
        self._ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self._store[key] = str(value)
        if ex:
            self._ttls[key] = ex

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._store.pop(key, None) is not None:
                removed += 1
            self._ttls.pop(key, None)
        return removed

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass


class FakeTickSource(TickSource):
    """Tick source driven by hand: fire() delivers ticks to live schedules."""

    def __init__(self):
        self._callbacks: dict[int, object] = {}
        self._next_handle = 0
        self.schedule_count = 0

    def schedule(self, callback) -> int:
        self._next_handle += 1
        self._callbacks[self._next_handle] = callback
        self.schedule_count += 1
        return self._next_handle

    def cancel(self, handle: int) -> None:
        self._callbacks.pop(handle, None)

    @property
    def active(self) -> int:
        return len(self._callbacks)

    async def fire(self, count: int = 1) -> None:
        for _ in range(count):
            for handle, callback in list(self._callbacks.items()):
                # A callback earlier in this round may have cancelled this one
                if handle in self._callbacks:
                    await callback()


class RecordingSink(PersistenceSink):
    """Persistence sink that keeps what it was given."""

    def __init__(self):
        self.saved = []

    async def save(self, session) -> uuid.UUID:
        self.saved.append(session)
        return uuid.uuid4()


@pytest.fixture
def tick_source() -> FakeTickSource:
    return FakeTickSource()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def timer(sink, tick_source) -> SessionTimer:
    timer = SessionTimer(sink, tick_source, kind=SessionKind.PRAYER)
    yield timer
    timer.close()


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


def _make_user(email: str, provider: str, provider_id: str, name: str) -> User:
    return User(
        id=uuid.uuid4(),
        email=email,
        display_name=name,
        auth_provider=provider,
        auth_provider_id=provider_id,
        settings_json={},
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    user = _make_user("test@example.com", "apple", "apple_test_123", "Test User")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def second_user(db_session: AsyncSession) -> User:
    user = _make_user("friend@example.com", "google", "google_test_456", "Friend User")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def client(session_factory, test_user: User, tick_source) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_current_user():
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.state.redis = FakeRedis()
    app.state.timers = TimerRegistry(
        session_factory, tick_source=tick_source, redis_client=app.state.redis
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.timers.close()
    app.dependency_overrides.clear()
