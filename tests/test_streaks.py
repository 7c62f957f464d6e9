"""
Tests for the streak & rate calculator.

Covered scenarios:
  A) streak continuity — consecutive dates extend the run, a gap ends it
  B) stale run         — newest completion older than yesterday → 0
  C) pending check-in  — counts as if already recorded
  D) longest streak    — running max, never lowered
  E) completion rates  — lifetime / 7-day / 30-day, uncapped, 2 dp
  F) cadence           — weekly / monthly / custom / unknown frequencies
  G) user summary      — means over active habits, completed today

All inputs are transient model instances; `NOW` is fixed.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from habitchain.models.completion import CompletionEvent
from habitchain.models.habit import Habit, HabitFrequency
from habitchain.services.streaks import (
    StreakUpdate,
    apply_streak_update,
    cadence_for,
    calculate_completion_rates,
    calculate_current_streak,
    calculate_streak_update,
    completion_rate,
    possible_completions,
    summarize_user_rates,
)

NOW = datetime(2026, 3, 11, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


def _days_ago(n: int, hour: int = 12) -> datetime:
    return (NOW - timedelta(days=n)).replace(hour=hour)


def _habit(**kwargs) -> Habit:
    kwargs.setdefault("id", 1)
    kwargs.setdefault("user_id", "u1")
    kwargs.setdefault("name", "Morning run")
    kwargs.setdefault("created_at", NOW - timedelta(days=10))
    return Habit(**kwargs)


# ---------------------------------------------------------------------------
# A–C) Current streak
# ---------------------------------------------------------------------------

class TestCurrentStreak:
    def test_no_completions(self):
        assert calculate_current_streak([], today=TODAY) == 0

    def test_three_consecutive_days(self):
        stamps = [_days_ago(0), _days_ago(1), _days_ago(2)]
        assert calculate_current_streak(stamps, today=TODAY) == 3

    def test_gap_breaks_the_run(self):
        # today, today-2, today-3: the run ending today is 1 long
        stamps = [_days_ago(3), _days_ago(2), _days_ago(0)]
        assert calculate_current_streak(stamps, today=TODAY) == 1

    def test_order_of_input_does_not_matter(self):
        stamps = [_days_ago(1), _days_ago(0), _days_ago(2)]
        assert calculate_current_streak(stamps, today=TODAY) == 3

    def test_same_day_counts_once(self):
        stamps = [_days_ago(0, hour=6), _days_ago(0, hour=20), _days_ago(1)]
        assert calculate_current_streak(stamps, today=TODAY) == 2

    def test_run_ending_yesterday_is_still_alive(self):
        stamps = [_days_ago(1), _days_ago(2)]
        assert calculate_current_streak(stamps, today=TODAY) == 2

    def test_run_ending_two_days_ago_is_broken(self):
        stamps = [_days_ago(2), _days_ago(3), _days_ago(4)]
        assert calculate_current_streak(stamps, today=TODAY) == 0

    def test_pending_completion_extends_run(self):
        stamps = [_days_ago(1), _days_ago(2)]
        assert calculate_current_streak(stamps, today=TODAY, pending=NOW) == 3

    def test_pending_alone(self):
        assert calculate_current_streak([], today=TODAY, pending=NOW) == 1

    def test_dates_are_taken_in_utc(self):
        # 23:30 at UTC-05:00 is already the next day in UTC
        late_local = datetime(2026, 3, 10, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert calculate_current_streak([late_local], today=date(2026, 3, 11)) == 1
        assert calculate_current_streak([late_local], today=date(2026, 3, 13)) == 0


# ---------------------------------------------------------------------------
# D) Streak update / longest streak
# ---------------------------------------------------------------------------

class TestStreakUpdate:
    def test_longest_is_running_max(self):
        habit = _habit(longest_streak=10)
        update = calculate_streak_update(habit, [_days_ago(0), _days_ago(1)], today=TODAY)
        assert update.current_streak == 2
        assert update.longest_streak == 10

    def test_longest_grows_with_current(self):
        habit = _habit(longest_streak=1)
        stamps = [_days_ago(i) for i in range(4)]
        update = calculate_streak_update(habit, stamps, today=TODAY)
        assert update.current_streak == 4
        assert update.longest_streak == 4

    def test_last_completed_includes_pending(self):
        habit = _habit()
        update = calculate_streak_update(habit, [_days_ago(3)], today=TODAY, pending=NOW)
        assert update.last_completed_at == NOW

    def test_no_history_keeps_previous_last_completed(self):
        previous = _days_ago(5)
        habit = _habit(last_completed_at=previous)
        update = calculate_streak_update(habit, [], today=TODAY)
        assert update.current_streak == 0
        assert update.last_completed_at == previous

    def test_apply_never_lowers_longest(self):
        habit = _habit(current_streak=5, longest_streak=12)
        apply_streak_update(habit, StreakUpdate(current_streak=1, longest_streak=3, last_completed_at=NOW))
        assert habit.current_streak == 1
        assert habit.longest_streak == 12
        assert habit.last_completed_at == NOW

    def test_longest_at_least_current_after_apply(self):
        habit = _habit()
        stamps = [_days_ago(i) for i in range(6)]
        apply_streak_update(habit, calculate_streak_update(habit, stamps, today=TODAY))
        assert habit.longest_streak >= habit.current_streak == 6


# ---------------------------------------------------------------------------
# E) Completion rates
# ---------------------------------------------------------------------------

class TestCompletionRates:
    def test_daily_habit_rates(self):
        habit = _habit(created_at=NOW - timedelta(days=10))
        stamps = [_days_ago(i) for i in range(5)]
        rates = calculate_completion_rates(habit, stamps, now=NOW)
        assert rates.total_possible == 10
        assert rates.total_actual == 5
        assert rates.overall_rate == Decimal("50.00")
        assert rates.weekly_rate == Decimal("71.43")
        assert rates.monthly_rate == Decimal("16.67")

    def test_rate_may_exceed_100(self):
        habit = _habit(created_at=NOW - timedelta(days=2))
        stamps = [_days_ago(0, hour=h) for h in (6, 8, 10)] + [_days_ago(1), _days_ago(1, hour=9)]
        rates = calculate_completion_rates(habit, stamps, now=NOW)
        assert rates.total_possible == 2
        assert rates.overall_rate == Decimal("250.00")

    def test_nothing_expected_yet(self):
        habit = _habit(created_at=NOW - timedelta(hours=3))
        rates = calculate_completion_rates(habit, [NOW - timedelta(hours=1)], now=NOW)
        assert rates.total_possible == 0
        assert rates.overall_rate == Decimal("0.00")

    def test_completions_outside_window_ignored(self):
        start = NOW - timedelta(days=3)
        stamps = [start - timedelta(seconds=1), start, NOW, NOW + timedelta(seconds=1)]
        # 2 of 3 expected
        assert completion_rate(stamps, HabitFrequency.daily, start, NOW) == Decimal("66.67")

    def test_rounding_half_up(self):
        start = NOW - timedelta(days=8)
        # 1 / 8 = 12.5%
        assert completion_rate([NOW], "daily", start, NOW) == Decimal("12.50")
        start = NOW - timedelta(days=3)
        assert completion_rate([NOW], "daily", start, NOW) == Decimal("33.33")

    def test_streak_fields_reported_as_stored(self):
        habit = _habit(current_streak=4, longest_streak=9, last_completed_at=NOW)
        rates = calculate_completion_rates(habit, [], now=NOW)
        assert (rates.current_streak, rates.longest_streak) == (4, 9)
        assert rates.last_completed_at == NOW


# ---------------------------------------------------------------------------
# F) Cadence
# ---------------------------------------------------------------------------

class TestCadence:
    @pytest.mark.parametrize(
        "frequency, expected",
        [
            (HabitFrequency.daily, 1),
            (HabitFrequency.weekly, 7),
            (HabitFrequency.monthly, 30),
            (HabitFrequency.custom, 1),
            ("weekly", 7),
            ("yearly", 1),
        ],
    )
    def test_cadence_for(self, frequency, expected):
        assert cadence_for(frequency) == expected

    def test_weekly_habit(self):
        habit = _habit(frequency=HabitFrequency.weekly, created_at=NOW - timedelta(days=20))
        rates = calculate_completion_rates(habit, [_days_ago(1), _days_ago(9)], now=NOW)
        # 20 // 7 == 2 expected
        assert rates.total_possible == 2
        assert rates.overall_rate == Decimal("100.00")
        assert rates.weekly_rate == Decimal("100.00")

    def test_monthly_habit_under_a_month(self):
        habit = _habit(frequency=HabitFrequency.monthly, created_at=NOW - timedelta(days=29))
        assert possible_completions(habit, NOW) == 0
        rates = calculate_completion_rates(habit, [_days_ago(1)], now=NOW)
        assert rates.overall_rate == Decimal("0.00")
        assert rates.weekly_rate == Decimal("0.00")
        assert rates.monthly_rate == Decimal("100.00")

    def test_possible_completions_never_negative(self):
        habit = _habit(created_at=NOW + timedelta(days=2))
        assert possible_completions(habit, NOW) == 0


# ---------------------------------------------------------------------------
# G) User summary
# ---------------------------------------------------------------------------

class TestUserSummary:
    def _fixture(self):
        run = _habit(id=1, created_at=NOW - timedelta(days=10))
        read = _habit(id=2, name="Read", created_at=NOW - timedelta(days=4))
        archived = _habit(id=3, name="Old", is_active=False, created_at=NOW - timedelta(days=40))
        completions = (
            [CompletionEvent(habit_id=1, user_id="u1", completed_at=_days_ago(i)) for i in range(5)]
            + [CompletionEvent(habit_id=2, user_id="u1", completed_at=_days_ago(i)) for i in range(4)]
            + [CompletionEvent(habit_id=3, user_id="u1", completed_at=_days_ago(0))]
        )
        return [run, read, archived], completions

    def test_counts(self):
        habits, completions = self._fixture()
        summary = summarize_user_rates("u1", habits, completions, now=NOW)
        assert summary.total_habits == 3
        assert summary.active_habits == 2
        # archived habit's completion today does not count
        assert summary.completed_today == 2
        assert len(summary.habits) == 3

    def test_means_over_active_habits(self):
        habits, completions = self._fixture()
        summary = summarize_user_rates("u1", habits, completions, now=NOW)
        # (50.00 + 100.00) / 2
        assert summary.overall_rate == Decimal("75.00")
        # (71.43 + 57.14) / 2 = 64.285
        assert summary.weekly_rate == Decimal("64.29")

    def test_no_active_habits(self):
        summary = summarize_user_rates("u1", [], [], now=NOW)
        assert summary.active_habits == 0
        assert summary.overall_rate == Decimal("0.00")
        assert summary.weekly_rate == Decimal("0.00")
        assert summary.monthly_rate == Decimal("0.00")
