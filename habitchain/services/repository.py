"""
Storage collaborator: loads the in-memory collections the engine works
on and persists what it returns.

The engine never touches the session; everything DB-shaped lives here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from habitchain.core.errors import BadgeNotFoundError, HabitNotFoundError
from habitchain.models.badge import BadgeDefinition
from habitchain.models.badge_award import BadgeAward
from habitchain.models.completion import CompletionEvent
from habitchain.models.habit import Habit

logger = logging.getLogger(__name__)


@dataclass
class UserSnapshot:
    """A user's full history, materialised once per evaluation trigger."""
    user_id: str
    habits: list[Habit] = field(default_factory=list)
    completions: list[CompletionEvent] = field(default_factory=list)
    badges: list[BadgeDefinition] = field(default_factory=list)
    owned_badge_ids: set[int] = field(default_factory=set)


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------

def get_habit_or_404(db: Session, habit_id: int) -> Habit:
    habit = db.get(Habit, habit_id)
    if habit is None:
        raise HabitNotFoundError(habit_id)
    return habit


def get_badge_or_404(db: Session, badge_id: int) -> BadgeDefinition:
    badge = db.get(BadgeDefinition, badge_id)
    if badge is None:
        raise BadgeNotFoundError(badge_id)
    return badge


def list_user_habits(db: Session, user_id: str) -> list[Habit]:
    return (
        db.query(Habit)
        .filter(Habit.user_id == user_id)
        .order_by(Habit.id)
        .all()
    )


def completions_for_habit(db: Session, habit_id: int) -> list[CompletionEvent]:
    return (
        db.query(CompletionEvent)
        .filter(CompletionEvent.habit_id == habit_id)
        .order_by(CompletionEvent.completed_at)
        .all()
    )


def completions_for_user(db: Session, user_id: str) -> list[CompletionEvent]:
    return (
        db.query(CompletionEvent)
        .filter(CompletionEvent.user_id == user_id)
        .order_by(CompletionEvent.completed_at)
        .all()
    )


def active_badges(db: Session) -> list[BadgeDefinition]:
    return (
        db.query(BadgeDefinition)
        .filter(BadgeDefinition.is_active == True)  # noqa: E712
        .order_by(BadgeDefinition.display_order, BadgeDefinition.name)
        .all()
    )


def owned_badge_ids(db: Session, user_id: str) -> set[int]:
    rows = db.query(BadgeAward.badge_id).filter(BadgeAward.user_id == user_id).all()
    return {row.badge_id for row in rows}


def user_awards(db: Session, user_id: str) -> list[BadgeAward]:
    return (
        db.query(BadgeAward)
        .filter(BadgeAward.user_id == user_id)
        .order_by(BadgeAward.earned_at.desc())
        .all()
    )


def load_user_snapshot(db: Session, user_id: str) -> UserSnapshot:
    return UserSnapshot(
        user_id=user_id,
        habits=list_user_habits(db, user_id),
        completions=completions_for_user(db, user_id),
        badges=active_badges(db),
        owned_badge_ids=owned_badge_ids(db, user_id),
    )


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------

def persist_awards(db: Session, awards: list[BadgeAward]) -> list[BadgeAward]:
    """
    Insert each award in its own commit. A duplicate (user, badge) pair
    means a concurrent evaluation got there first: that award is dropped,
    the rest still go in.
    """
    persisted: list[BadgeAward] = []
    for award in awards:
        db.add(award)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info(
                "Badge %s already awarded to user %s; skipping duplicate",
                award.badge_id, award.user_id,
            )
            continue
        db.refresh(award)
        persisted.append(award)
    return persisted
