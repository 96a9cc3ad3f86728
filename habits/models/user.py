from datetime import datetime

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from habits.models.base import Base


class User(Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255))
    auth_provider: Mapped[str] = mapped_column(String(50), nullable=False)  # "apple", "google", or "email"
    auth_provider_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    settings_json: Mapped[dict | None] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    sessions: Mapped[list["DevotionalSession"]] = relationship(back_populates="user", cascade="all, delete-orphan")  # noqa: F821
    prayer_requests: Mapped[list["PrayerRequest"]] = relationship(back_populates="user", cascade="all, delete-orphan")  # noqa: F821
    practices: Mapped[list["Practice"]] = relationship(back_populates="user", cascade="all, delete-orphan")  # noqa: F821
    fasting_logs: Mapped[list["FastingLog"]] = relationship(back_populates="user", cascade="all, delete-orphan")  # noqa: F821
    gratitude_entries: Mapped[list["GratitudeEntry"]] = relationship(back_populates="user", cascade="all, delete-orphan")  # noqa: F821
