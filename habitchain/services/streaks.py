"""
Streak & Rate Calculator.

Streak
------
Completion timestamps are reduced to distinct UTC calendar dates and
walked newest → oldest. The run must start today or yesterday; after
that every date must be exactly one day before the previous one. The
first gap of 2+ days ends the run.

  dates: today, today-2, today-3   →  current streak = 1

`longest_streak` is never recomputed from history: it is the running
max(previous longest, current) carried forward by the caller.

Completion rate
---------------
For a window [start, end]:

  expected = floor(days_in_window / cadence)     cadence: daily 1, weekly 7,
                                                 monthly 30, custom 1
  actual   = completions with start <= ts <= end
  rate     = actual / expected * 100             (0 when expected == 0)

Rates are rounded to 2 dp, half away from zero, and are NOT capped at 100:
two completions of a daily habit on the same day count twice.

Windows: lifetime (created_at → now), last 7 days, last 30 days.

Public API
----------
calculate_current_streak(timestamps, today, pending)  -> int
calculate_streak_update(habit, timestamps, ...)       -> StreakUpdate
apply_streak_update(habit, update)                    -> None  (mutates habit)
completion_rate(timestamps, frequency, start, end)    -> Decimal
calculate_completion_rates(habit, timestamps, now)    -> HabitRates
summarize_user_rates(user_id, habits, completions)    -> UserRateSummary

Pure: no DB access. The only mutation is apply_streak_update, which the
caller invokes explicitly before persisting the habit.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence

from habitchain.models.completion import CompletionEvent
from habitchain.models.habit import Habit, HabitFrequency
from habitchain.services.classification import as_utc, utc_date, utcnow


CADENCE_DAYS: dict[HabitFrequency, int] = {
    HabitFrequency.daily: 1,
    HabitFrequency.weekly: 7,
    HabitFrequency.monthly: 30,
    # Custom schedules are rated as daily.
    HabitFrequency.custom: 1,
}

WEEK_WINDOW = timedelta(days=7)
MONTH_WINDOW = timedelta(days=30)

_ZERO_RATE = Decimal("0.00")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class StreakUpdate:
    """New streak fields for a habit; the caller persists them."""
    current_streak: int
    longest_streak: int
    last_completed_at: Optional[datetime]


@dataclass
class HabitRates:
    habit_id: Optional[int]
    habit_name: str
    is_active: bool
    overall_rate: Decimal       # lifetime, percent, 2 dp
    weekly_rate: Decimal        # last 7 days
    monthly_rate: Decimal       # last 30 days
    total_possible: int         # lifetime expected completions
    total_actual: int           # lifetime actual completions
    current_streak: int
    longest_streak: int
    last_completed_at: Optional[datetime]


@dataclass
class UserRateSummary:
    user_id: str
    total_habits: int
    active_habits: int
    completed_today: int        # active habits with ≥1 completion today
    overall_rate: Decimal       # mean over active habits
    weekly_rate: Decimal
    monthly_rate: Decimal
    habits: list[HabitRates] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def cadence_for(frequency) -> int:
    """Days per expected completion. Unknown values fall back to daily."""
    try:
        return CADENCE_DAYS[HabitFrequency(frequency)]
    except ValueError:
        return 1


def round_rate(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def possible_completions(habit: Habit, now: Optional[datetime] = None) -> int:
    """
    Expected completions since the habit was created: whole days // cadence.
    Floor division under-counts partial weeks/months; badge thresholds were
    tuned against exactly this number, keep it.
    """
    end = as_utc(now or utcnow())
    days = (end - as_utc(habit.created_at)).days
    return max(days, 0) // cadence_for(habit.frequency)


def _distinct_dates(timestamps: Iterable[datetime]) -> list[date]:
    """Distinct UTC dates, newest first."""
    return sorted({utc_date(ts) for ts in timestamps}, reverse=True)


def _window_counts(
    timestamps: Sequence[datetime],
    cadence: int,
    start: datetime,
    end: datetime,
) -> tuple[int, int]:
    start, end = as_utc(start), as_utc(end)
    expected = max((end - start).days, 0) // cadence
    actual = sum(1 for ts in timestamps if start <= as_utc(ts) <= end)
    return expected, actual


def _rate(expected: int, actual: int) -> Decimal:
    if expected <= 0:
        return _ZERO_RATE
    return round_rate(Decimal(actual) * 100 / Decimal(expected))


# ---------------------------------------------------------------------------
# Public — streaks
# ---------------------------------------------------------------------------

def calculate_current_streak(
    timestamps: Iterable[datetime],
    today: Optional[date] = None,
    pending: Optional[datetime] = None,
) -> int:
    """
    Length of the consecutive-day run ending at the most recent completion.

    `pending` is a completion the caller is about to record; it counts as
    if it were already in `timestamps`. A run whose newest date is older
    than yesterday is already broken and yields 0.
    """
    stamps = list(timestamps)
    if pending is not None:
        stamps.append(pending)
    dates = _distinct_dates(stamps)
    if not dates:
        return 0

    today = today or utcnow().date()
    if (today - dates[0]).days > 1:
        return 0

    streak = 1
    for newer, older in zip(dates, dates[1:]):
        if (newer - older).days != 1:
            break
        streak += 1
    return streak


def calculate_streak_update(
    habit: Habit,
    timestamps: Iterable[datetime],
    today: Optional[date] = None,
    pending: Optional[datetime] = None,
) -> StreakUpdate:
    stamps = list(timestamps)
    current = calculate_current_streak(stamps, today=today, pending=pending)
    longest = max(habit.longest_streak or 0, current)

    candidates = stamps + ([pending] if pending is not None else [])
    if candidates:
        last = max(as_utc(ts) for ts in candidates)
    else:
        last = habit.last_completed_at

    return StreakUpdate(
        current_streak=current,
        longest_streak=longest,
        last_completed_at=last,
    )


def apply_streak_update(habit: Habit, update: StreakUpdate) -> None:
    habit.current_streak = update.current_streak
    # Never let a stale update lower the longest streak.
    habit.longest_streak = max(habit.longest_streak or 0, update.longest_streak)
    habit.last_completed_at = update.last_completed_at


# ---------------------------------------------------------------------------
# Public — completion rates
# ---------------------------------------------------------------------------

def completion_rate(
    timestamps: Sequence[datetime],
    frequency,
    start: datetime,
    end: datetime,
) -> Decimal:
    """Completion percentage for [start, end]; 0.00 when nothing is expected yet."""
    expected, actual = _window_counts(timestamps, cadence_for(frequency), start, end)
    return _rate(expected, actual)


def calculate_completion_rates(
    habit: Habit,
    timestamps: Sequence[datetime],
    now: Optional[datetime] = None,
) -> HabitRates:
    now = as_utc(now or utcnow())
    cadence = cadence_for(habit.frequency)

    life_expected, life_actual = _window_counts(timestamps, cadence, habit.created_at, now)
    week_expected, week_actual = _window_counts(timestamps, cadence, now - WEEK_WINDOW, now)
    month_expected, month_actual = _window_counts(timestamps, cadence, now - MONTH_WINDOW, now)

    return HabitRates(
        habit_id=habit.id,
        habit_name=habit.name,
        is_active=bool(habit.is_active),
        overall_rate=_rate(life_expected, life_actual),
        weekly_rate=_rate(week_expected, week_actual),
        monthly_rate=_rate(month_expected, month_actual),
        total_possible=life_expected,
        total_actual=life_actual,
        current_streak=habit.current_streak or 0,
        longest_streak=habit.longest_streak or 0,
        last_completed_at=habit.last_completed_at,
    )


def summarize_user_rates(
    user_id: str,
    habits: Sequence[Habit],
    completions: Sequence[CompletionEvent],
    now: Optional[datetime] = None,
) -> UserRateSummary:
    """Per-habit rates plus their mean across the user's active habits."""
    now = as_utc(now or utcnow())
    today = now.date()

    by_habit: dict[int, list[datetime]] = defaultdict(list)
    for c in completions:
        by_habit[c.habit_id].append(c.completed_at)

    per_habit = [calculate_completion_rates(h, by_habit.get(h.id, []), now) for h in habits]
    active = [r for r in per_habit if r.is_active]

    def _mean(values: list[Decimal]) -> Decimal:
        if not values:
            return _ZERO_RATE
        return round_rate(sum(values, Decimal(0)) / Decimal(len(values)))

    completed_today = sum(
        1
        for h in habits
        if h.is_active and any(utc_date(ts) == today for ts in by_habit.get(h.id, []))
    )

    return UserRateSummary(
        user_id=user_id,
        total_habits=len(habits),
        active_habits=len(active),
        completed_today=completed_today,
        overall_rate=_mean([r.overall_rate for r in active]),
        weekly_rate=_mean([r.weekly_rate for r in active]),
        monthly_rate=_mean([r.monthly_rate for r in active]),
        habits=per_habit,
    )
