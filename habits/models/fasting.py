import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from habits.models.base import Base


class FastingLog(Base):
    __tablename__ = "fasting_logs"

    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    fast_type: Mapped[str] = mapped_column(String(32), nullable=False)  # water, food, social_media, entertainment, custom
    description: Mapped[str | None] = mapped_column(String(255))
    purpose: Mapped[str | None] = mapped_column(Text)
    prayer_focus: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))  # null while the fast is active
    duration_minutes: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="fasting_logs")  # noqa: F821

    __table_args__ = (
        Index("ix_fasting_logs_user_started", "user_id", "started_at"),
    )

    @property
    def is_active(self) -> bool:
        return self.ended_at is None
