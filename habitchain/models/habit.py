"""
Habit — something a user wants to do on a cadence.

Streak fields (`current_streak`, `longest_streak`, `last_completed_at`)
are written only from the streak calculator's StreakUpdate
(see habitchain/services/streaks.py); `longest_streak` never decreases.
"""
from datetime import datetime, timezone
from sqlalchemy import Integer, String, Text, Boolean, DateTime, Enum, func
from sqlalchemy.orm import Mapped, mapped_column
import enum

from habitchain.db.base import Base


class HabitFrequency(str, enum.Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"
    custom = "custom"


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class Habit(Base):
    __tablename__ = "habits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    frequency: Mapped[str] = mapped_column(
        Enum(HabitFrequency, name="habit_frequency_enum"),
        nullable=False,
        default=HabitFrequency.daily,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __init__(self, **kwargs):
        # Column defaults only apply on flush; the engine also works on
        # transient instances.
        kwargs.setdefault("frequency", HabitFrequency.daily)
        kwargs.setdefault("is_active", True)
        kwargs.setdefault("current_streak", 0)
        kwargs.setdefault("longest_streak", 0)
        kwargs.setdefault("created_at", _utcnow())
        super().__init__(**kwargs)
