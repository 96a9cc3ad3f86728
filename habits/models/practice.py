import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from habits.models.base import Base


class Practice(Base):
    __tablename__ = "practices"

    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)  # fasting, meditation, worship, ...
    frequency: Mapped[str] = mapped_column(String(16), nullable=False, default="daily")  # or "weekly"
    goal: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_completed_on: Mapped[date | None] = mapped_column(Date)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="practices")  # noqa: F821
    logs: Mapped[list["PracticeLog"]] = relationship(
        back_populates="practice", cascade="all, delete-orphan", passive_deletes=True
    )


class PracticeLog(Base):
    __tablename__ = "practice_logs"

    practice_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("practices.id", ondelete="CASCADE"), index=True)
    completed_on: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    practice: Mapped["Practice"] = relationship(back_populates="logs")

    __table_args__ = (
        UniqueConstraint("practice_id", "completed_on", name="uq_practice_logs_practice_day"),
    )
