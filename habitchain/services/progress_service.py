"""
Progress service: wires storage to the streak calculator and the badge
engine for each evaluation trigger.

Triggers
--------
  record_completion(db, habit_id, ...)  — new check-in: refresh streak,
                                          then evaluate badges scoped to it
  create_habit(db, user_id, ...)        — new habit: evaluate badges
  evaluate_user_badges(db, user_id)     — explicit re-evaluation

Queries
-------
  habit_completion_rates(db, habit_id)  -> HabitRates
  user_completion_summary(db, user_id)  -> UserRateSummary
  user_badge_progress(db, user_id)      -> list[BadgeProgress]

Streaks decay with time (yesterday's 5-day streak is 0 two days later),
so the rate queries refresh stored streaks before reporting them.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from habitchain.core.errors import HabitInactiveError
from habitchain.models.badge_award import BadgeAward
from habitchain.models.completion import CompletionEvent
from habitchain.models.habit import Habit, HabitFrequency
from habitchain.services.badge_engine import BadgeProgress, badge_progress_report, evaluate_badges
from habitchain.services.classification import as_utc, utcnow
from habitchain.services.repository import (
    completions_for_habit,
    completions_for_user,
    get_habit_or_404,
    list_user_habits,
    load_user_snapshot,
    persist_awards,
)
from habitchain.services.streaks import (
    HabitRates,
    StreakUpdate,
    UserRateSummary,
    apply_streak_update,
    calculate_completion_rates,
    calculate_streak_update,
    summarize_user_rates,
)

logger = logging.getLogger(__name__)


@dataclass
class CompletionOutcome:
    completion: CompletionEvent
    streak: StreakUpdate
    new_awards: list[BadgeAward]


@dataclass
class HabitCreationOutcome:
    habit: Habit
    new_awards: list[BadgeAward]


# ---------------------------------------------------------------------------
# Streak refresh
# ---------------------------------------------------------------------------

def refresh_habit_streak(db: Session, habit: Habit, commit: bool = True) -> StreakUpdate:
    history = [c.completed_at for c in completions_for_habit(db, habit.id)]
    update = calculate_streak_update(habit, history)
    apply_streak_update(habit, update)
    if commit:
        db.commit()
    return update


def _refresh_snapshot_streaks(
    habits: list[Habit],
    completions: list[CompletionEvent],
    now: Optional[datetime] = None,
) -> None:
    """Bring every habit's streak up to date from already-loaded completions."""
    today = as_utc(now or utcnow()).date()
    by_habit: dict[int, list[datetime]] = defaultdict(list)
    for c in completions:
        by_habit[c.habit_id].append(c.completed_at)
    for habit in habits:
        apply_streak_update(
            habit, calculate_streak_update(habit, by_habit.get(habit.id, []), today=today)
        )


# ---------------------------------------------------------------------------
# Badge evaluation trigger
# ---------------------------------------------------------------------------

def evaluate_user_badges(
    db: Session,
    user_id: str,
    habit_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[BadgeAward]:
    """Evaluate and persist new awards. Storage failures are logged, never raised."""
    try:
        snapshot = load_user_snapshot(db, user_id)
        _refresh_snapshot_streaks(snapshot.habits, snapshot.completions, now)
        db.commit()
    except SQLAlchemyError:
        logger.exception("Could not load badge state for user %s", user_id)
        db.rollback()
        return []

    awards = evaluate_badges(
        user_id=user_id,
        badges=snapshot.badges,
        owned_badge_ids=snapshot.owned_badge_ids,
        habits=snapshot.habits,
        completions=snapshot.completions,
        habit_id=habit_id,
        now=now,
    )
    if not awards:
        return []

    try:
        return persist_awards(db, awards)
    except SQLAlchemyError:
        logger.exception("Could not persist %d badge awards for user %s", len(awards), user_id)
        db.rollback()
        return []


# ---------------------------------------------------------------------------
# Public — triggers
# ---------------------------------------------------------------------------

def record_completion(
    db: Session,
    habit_id: int,
    completed_at: Optional[datetime] = None,
    note: Optional[str] = None,
) -> CompletionOutcome:
    """
    Record a check-in, refresh the habit's streak fields, then award any
    badges the user now qualifies for (streak badges scoped to this habit).
    """
    habit = get_habit_or_404(db, habit_id)
    if not habit.is_active:
        raise HabitInactiveError(habit_id)

    when = as_utc(completed_at) if completed_at else utcnow()
    history = [c.completed_at for c in completions_for_habit(db, habit.id)]
    update = calculate_streak_update(habit, history, pending=when)

    completion = CompletionEvent(
        habit_id=habit.id,
        user_id=habit.user_id,
        completed_at=when,
        note=note,
    )
    db.add(completion)
    apply_streak_update(habit, update)
    db.commit()
    db.refresh(completion)

    awards = evaluate_user_badges(db, habit.user_id, habit_id=habit.id)
    return CompletionOutcome(completion=completion, streak=update, new_awards=awards)


def create_habit(
    db: Session,
    user_id: str,
    name: str,
    description: Optional[str] = None,
    frequency: HabitFrequency = HabitFrequency.daily,
) -> HabitCreationOutcome:
    habit = Habit(
        user_id=user_id,
        name=name,
        description=description,
        frequency=frequency,
    )
    db.add(habit)
    db.commit()
    db.refresh(habit)

    awards = evaluate_user_badges(db, user_id, habit_id=habit.id)
    return HabitCreationOutcome(habit=habit, new_awards=awards)


# ---------------------------------------------------------------------------
# Public — queries
# ---------------------------------------------------------------------------

def habit_completion_rates(db: Session, habit_id: int) -> HabitRates:
    habit = get_habit_or_404(db, habit_id)
    refresh_habit_streak(db, habit)
    history = [c.completed_at for c in completions_for_habit(db, habit.id)]
    return calculate_completion_rates(habit, history)


def user_completion_summary(db: Session, user_id: str) -> UserRateSummary:
    habits = list_user_habits(db, user_id)
    for habit in habits:
        refresh_habit_streak(db, habit, commit=False)
    db.commit()
    return summarize_user_rates(user_id, habits, completions_for_user(db, user_id))


def user_badge_progress(db: Session, user_id: str) -> list[BadgeProgress]:
    """Measured on refreshed streaks, the same state evaluate_user_badges awards from."""
    snapshot = load_user_snapshot(db, user_id)
    _refresh_snapshot_streaks(snapshot.habits, snapshot.completions)
    db.commit()
    return badge_progress_report(
        badges=snapshot.badges,
        owned_badge_ids=snapshot.owned_badge_ids,
        habits=snapshot.habits,
        completions=snapshot.completions,
    )
