"""
Tests for the storage-backed check-in flow.

Covered scenarios:
  A) record_completion — stores the event, refreshes streak, awards badges
  B) archived / unknown habits are rejected
  C) evaluate_user_badges is idempotent; storage errors award nothing
  D) persist_awards     — a duplicate (user, badge) pair is a no-op
  E) rate queries refresh decayed streaks
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from habitchain.core.errors import HabitInactiveError, HabitNotFoundError
from habitchain.models.badge_award import BadgeAward
from habitchain.models.completion import CompletionEvent
from habitchain.models.habit import Habit
from habitchain.services import progress_service
from habitchain.services.progress_service import (
    create_habit,
    evaluate_user_badges,
    habit_completion_rates,
    record_completion,
    user_badge_progress,
    user_completion_summary,
)
from habitchain.services.repository import owned_badge_ids, persist_awards, user_awards


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _new_habit(db, user_id: str, name: str = "Morning run") -> Habit:
    return create_habit(db, user_id=user_id, name=name).habit


# ---------------------------------------------------------------------------
# A) record_completion
# ---------------------------------------------------------------------------

class TestRecordCompletion:
    def test_first_completion(self, db, user_id):
        habit = _new_habit(db, user_id)
        outcome = record_completion(db, habit.id, note="felt great")
        assert outcome.completion.id > 0
        assert outcome.completion.user_id == user_id
        assert outcome.completion.note == "felt great"
        assert outcome.streak.current_streak == 1
        assert outcome.streak.longest_streak == 1

        db.refresh(habit)
        assert habit.current_streak == 1
        assert habit.last_completed_at is not None

    def test_consecutive_days_build_streak(self, db, user_id):
        habit = _new_habit(db, user_id)
        base = _now() - timedelta(minutes=1)
        record_completion(db, habit.id, completed_at=base - timedelta(days=2))
        record_completion(db, habit.id, completed_at=base - timedelta(days=1))
        outcome = record_completion(db, habit.id, completed_at=base)
        assert outcome.streak.current_streak == 3
        assert outcome.streak.longest_streak == 3

    def test_awards_recorded_against_habit(self, db, user_id, badge_ids):
        habit = _new_habit(db, user_id)
        base = _now() - timedelta(minutes=1)
        outcome = None
        for i in range(6, -1, -1):
            outcome = record_completion(db, habit.id, completed_at=base - timedelta(days=i))
        earned = {a.badge_id: a for a in outcome.new_awards}
        assert badge_ids["7-Day Challenge"] in earned
        assert badge_ids["Week Warrior"] in earned
        assert earned[badge_ids["Week Warrior"]].habit_id == habit.id

    def test_first_habit_earns_first_steps(self, db, user_id, badge_ids):
        outcome = create_habit(db, user_id=user_id, name="Read")
        assert [a.badge_id for a in outcome.new_awards] == [badge_ids["First Steps"]]


# ---------------------------------------------------------------------------
# B) Rejections
# ---------------------------------------------------------------------------

class TestRejections:
    def test_unknown_habit(self, db):
        with pytest.raises(HabitNotFoundError):
            record_completion(db, 999_999)

    def test_archived_habit(self, db, user_id):
        habit = _new_habit(db, user_id)
        habit.is_active = False
        db.commit()
        with pytest.raises(HabitInactiveError):
            record_completion(db, habit.id)
        assert db.query(CompletionEvent).filter(CompletionEvent.habit_id == habit.id).count() == 0


# ---------------------------------------------------------------------------
# C) evaluate_user_badges
# ---------------------------------------------------------------------------

class TestEvaluateUserBadges:
    def test_idempotent(self, db, user_id):
        _new_habit(db, user_id)
        owned_before = owned_badge_ids(db, user_id)
        assert evaluate_user_badges(db, user_id) == []
        assert owned_badge_ids(db, user_id) == owned_before

    def test_awards_once_then_nothing(self, db, user_id, badge_ids):
        for name in ("Run", "Read", "Yoga"):
            db.add(Habit(user_id=user_id, name=name))
        db.commit()
        first = evaluate_user_badges(db, user_id)
        earned = {a.badge_id for a in first}
        assert {badge_ids["First Steps"], badge_ids["Habit Creator"], badge_ids["Habit Chain"]} <= earned
        assert evaluate_user_badges(db, user_id) == []
        assert len(user_awards(db, user_id)) == len(first)

    def test_storage_failure_awards_nothing(self, db, user_id, monkeypatch):
        _new_habit(db, user_id)

        def _broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("db down"))

        monkeypatch.setattr(progress_service, "load_user_snapshot", _broken)
        assert evaluate_user_badges(db, user_id) == []


# ---------------------------------------------------------------------------
# D) persist_awards
# ---------------------------------------------------------------------------

class TestPersistAwards:
    def test_duplicate_is_noop(self, db, user_id, badge_ids):
        badge_id = badge_ids["Dedication Master"]
        first = persist_awards(db, [BadgeAward(user_id=user_id, badge_id=badge_id, earned_at=_now())])
        assert len(first) == 1

        again = persist_awards(db, [BadgeAward(user_id=user_id, badge_id=badge_id, earned_at=_now())])
        assert again == []
        assert [a.badge_id for a in user_awards(db, user_id)] == [badge_id]

    def test_duplicate_does_not_block_the_rest(self, db, user_id, badge_ids):
        dup = badge_ids["Legend"]
        persist_awards(db, [BadgeAward(user_id=user_id, badge_id=dup, earned_at=_now())])
        persisted = persist_awards(db, [
            BadgeAward(user_id=user_id, badge_id=dup, earned_at=_now()),
            BadgeAward(user_id=user_id, badge_id=badge_ids["Centurion"], earned_at=_now()),
        ])
        assert [a.badge_id for a in persisted] == [badge_ids["Centurion"]]
        assert owned_badge_ids(db, user_id) == {dup, badge_ids["Centurion"]}


# ---------------------------------------------------------------------------
# E) Queries
# ---------------------------------------------------------------------------

class TestQueries:
    def test_stale_streak_reported_as_zero(self, db, user_id):
        habit = _new_habit(db, user_id)
        old = _now() - timedelta(days=5)
        record_completion(db, habit.id, completed_at=old - timedelta(days=1))
        record_completion(db, habit.id, completed_at=old)
        # simulate a streak stored back when it was alive
        habit.current_streak = 2
        habit.longest_streak = 2
        db.commit()

        rates = habit_completion_rates(db, habit.id)
        assert rates.current_streak == 0
        assert rates.longest_streak == 2

    def test_user_summary(self, db, user_id):
        first = _new_habit(db, user_id, "Run")
        _new_habit(db, user_id, "Read")
        record_completion(db, first.id)
        summary = user_completion_summary(db, user_id)
        assert summary.total_habits == 2
        assert summary.active_habits == 2
        assert summary.completed_today == 1

    def test_badge_progress_marks_earned(self, db, user_id, badge_ids):
        _new_habit(db, user_id)
        report = {p.badge.id: p for p in user_badge_progress(db, user_id)}
        assert report[badge_ids["First Steps"]].earned is True
        assert badge_ids["Perfect Week"] not in report

    def test_badge_progress_uses_refreshed_streaks(self, db, user_id, badge_ids):
        habit = _new_habit(db, user_id)
        for days_ago in range(20, 12, -1):
            db.add(CompletionEvent(
                habit_id=habit.id,
                user_id=user_id,
                completed_at=_now() - timedelta(days=days_ago),
            ))
        # streak persisted back when the run was still alive
        habit.current_streak = 8
        habit.longest_streak = 8
        db.commit()

        report = {p.badge.id: p for p in user_badge_progress(db, user_id)}
        week_warrior = report[badge_ids["Week Warrior"]]
        assert (week_warrior.current, week_warrior.target) == (0, 7)
        assert week_warrior.eligible is False

        awarded = {a.badge_id for a in evaluate_user_badges(db, user_id)}
        assert (badge_ids["Week Warrior"] in awarded) is week_warrior.eligible
        db.refresh(habit)
        assert (habit.current_streak, habit.longest_streak) == (0, 8)
