"""Persistence sinks for finalized timer sessions."""
import logging
import uuid
from abc import ABC, abstractmethod

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from habits.services import session_service, stats_service
from habits.timer.errors import PersistenceError
from habits.timer.models import Session

logger = logging.getLogger(__name__)


class PersistenceSink(ABC):
    @abstractmethod
    async def save(self, session: Session) -> uuid.UUID:
        """Store a finalized session and return its record id. Raises PersistenceError."""
        ...


class DatabaseSessionSink(PersistenceSink):
    """Writes sessions to ``devotional_sessions`` for one user.

    Uses its own database session: a countdown can finish on a tick, long
    after the request that started it has returned.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        user_id: uuid.UUID,
        redis_client=None,
    ):
        self._session_factory = session_factory
        self.user_id = user_id
        self._redis = redis_client

    async def save(self, session: Session) -> uuid.UUID:
        data = session.model_dump(exclude={"kind", "mode"})
        data["kind"] = session.kind.value
        data["mode"] = session.mode.value
        # asyncpg surfaces an unreachable server as a bare OSError, not wrapped by SQLAlchemy
        try:
            async with self._session_factory() as db:
                row = await session_service.create_session(db, self.user_id, data)
                await db.commit()
                record_id = row.id
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError(f"Could not save session {session.id}", session=session) from exc
        logger.debug("Saved %s session %s for user %s", session.kind.value, session.id, self.user_id)

        if self._redis is not None:
            await stats_service.invalidate_stats_cache(self._redis, self.user_id)
        return record_id
