"""
BadgeAward — durable record that a user earned a badge.

Append-only. At most one row per (user_id, badge_id): the engine skips
badges the user already owns, and the unique constraint settles races
between two evaluations running at the same time for the same user.
"""
from datetime import datetime
from sqlalchemy import Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from habitchain.db.base import Base


class BadgeAward(Base):
    __tablename__ = "badge_awards"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_badge_award_user_badge"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    badge_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("badge_definitions.id"), nullable=False, index=True
    )
    habit_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("habits.id"), nullable=True,
        comment="Habit whose check-in triggered the award, if any",
    )
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
