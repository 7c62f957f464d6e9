"""
Badge rule table — one measurement per badge category.

Every badge is evaluated by measuring a single number and comparing it
to a target. Both public questions are answered from that one
Measurement, so they cannot drift apart:

  is_eligible(badge, ctx)     -> measurement.reached  (current >= target)
  badge_progress(badge, ctx)  -> (current, target)    for "X / Y" display

Rule table
----------
| Category     | current                                            | target          |
|--------------|----------------------------------------------------|-----------------|
| streak       | max current_streak over habit(s) in scope          | required_value  |
| total        | all completions                                    | required_value  |
| consistency  | actual * 100 // Σ possible(active habit)           | required_value  |
| special      | early_bird / night_owl / weekend_warrior counts    | required_value  |
| milestone    | habits (1/5/10) or completions (100/500/1000)      | required_value  |
| social       | 0 (not implemented)                                | required_value  |
| creation     | habits                                             | required_value  |
| time_based   | daily_check_in streak (7d) / weekly_check_in count | required_value  |
| challenge    | completions in last 7 / 30 days                    | 7 / 30 (fixed)  |
| seasonal     | completions in spring/summer/fall/winter months    | required_value  |
| rarity       | perfect_week days / streak_master habits           | 7 / 3 (fixed)   |
| chain        | active habits / distinct inferred categories       | required_value  |

Categories with sub-rules dispatch on `badge.rule`; a missing rule or a
rule from another category measures (0, required_value).

Streak scope: when the evaluation was triggered by a specific habit
(`ctx.habit_id`), only that habit's streak counts.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Sequence

from habitchain.core.config import settings
from habitchain.models.badge import BadgeCategory, BadgeDefinition, BadgeRule
from habitchain.models.completion import CompletionEvent
from habitchain.models.habit import Habit
from habitchain.services.classification import (
    as_utc,
    infer_habit_category,
    is_early,
    is_late,
    is_weekend,
    season_of,
    utc_date,
    utcnow,
)
from habitchain.services.streaks import possible_completions

logger = logging.getLogger(__name__)


# Milestone badges read a different metric depending on the threshold.
# Any other threshold in this category can never be earned.
MILESTONE_HABIT_THRESHOLDS = frozenset({1, 5, 10})
MILESTONE_COMPLETION_THRESHOLDS = frozenset({100, 500, 1000})

SEVEN_DAY_CHALLENGE_TARGET = 7
THIRTY_DAY_CHALLENGE_TARGET = 30
PERFECT_WEEK_TARGET = 7

TRAILING_WEEK = timedelta(days=7)
TRAILING_MONTH = timedelta(days=30)


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Measurement:
    current: int
    target: int

    @property
    def reached(self) -> bool:
        return self.current >= self.target


@dataclass
class EvaluationContext:
    """Everything a rule may read. Built once per evaluation pass."""
    habits: Sequence[Habit]
    completions: Sequence[CompletionEvent]
    now: datetime = field(default_factory=utcnow)
    habit_id: Optional[int] = None
    streak_master_min_streak: int = field(
        default_factory=lambda: settings.STREAK_MASTER_MIN_STREAK
    )
    streak_master_habits: int = field(
        default_factory=lambda: settings.STREAK_MASTER_HABITS
    )

    def __post_init__(self) -> None:
        self.now = as_utc(self.now)

    @property
    def today(self) -> date:
        return self.now.date()

    @property
    def active_habits(self) -> list[Habit]:
        return [h for h in self.habits if h.is_active]

    @property
    def scoped_habits(self) -> list[Habit]:
        if self.habit_id is None:
            return list(self.habits)
        return [h for h in self.habits if h.id == self.habit_id]

    def completions_since(self, delta: timedelta) -> list[CompletionEvent]:
        cutoff = self.now - delta
        return [c for c in self.completions if as_utc(c.completed_at) >= cutoff]


Measure = Callable[[BadgeDefinition, EvaluationContext], Measurement]


def _unmeasured(badge: BadgeDefinition) -> Measurement:
    return Measurement(0, badge.required_value)


def _count(badge: BadgeDefinition, value: int) -> Measurement:
    return Measurement(value, badge.required_value)


# ---------------------------------------------------------------------------
# Category measurements
# ---------------------------------------------------------------------------

def _measure_streak(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    best = max((h.current_streak or 0 for h in ctx.scoped_habits), default=0)
    return _count(badge, best)


def _measure_total(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    return _count(badge, len(ctx.completions))


def _measure_consistency(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    active = ctx.active_habits
    if not active:
        return _unmeasured(badge)
    possible = sum(possible_completions(h, ctx.now) for h in active)
    if possible <= 0:
        return _unmeasured(badge)
    # Integer percent: floor(rate) >= n  <=>  rate >= n for integer n.
    return _count(badge, len(ctx.completions) * 100 // possible)


def _measure_milestone(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    if badge.required_value in MILESTONE_HABIT_THRESHOLDS:
        return _count(badge, len(ctx.habits))
    if badge.required_value in MILESTONE_COMPLETION_THRESHOLDS:
        return _count(badge, len(ctx.completions))
    return _unmeasured(badge)


def _measure_social(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    return _unmeasured(badge)


def _measure_creation(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    return _count(badge, len(ctx.habits))


# ---------------------------------------------------------------------------
# Sub-rule measurements
# ---------------------------------------------------------------------------

def _early_bird(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    return _count(badge, sum(1 for c in ctx.completions if is_early(c.completed_at)))


def _night_owl(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    return _count(badge, sum(1 for c in ctx.completions if is_late(c.completed_at)))


def _weekend_warrior(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    return _count(badge, sum(1 for c in ctx.completions if is_weekend(c.completed_at)))


def _daily_check_in(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    """Consecutive days ending today, looking back at most 7 days."""
    days = {utc_date(c.completed_at) for c in ctx.completions_since(TRAILING_WEEK)}
    streak = 0
    for offset in range(7):
        if ctx.today - timedelta(days=offset) not in days:
            break
        streak += 1
    return _count(badge, streak)


def _weekly_check_in(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    return _count(badge, len(ctx.completions_since(TRAILING_WEEK)))


def _seven_day_challenge(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    return Measurement(len(ctx.completions_since(TRAILING_WEEK)), SEVEN_DAY_CHALLENGE_TARGET)


def _thirty_day_challenge(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    return Measurement(len(ctx.completions_since(TRAILING_MONTH)), THIRTY_DAY_CHALLENGE_TARGET)


def _seasonal(season: str) -> Measure:
    def measure(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
        return _count(badge, sum(1 for c in ctx.completions if season_of(c.completed_at) == season))
    return measure


def _perfect_week(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    """Days among the last 7 (today included) with completions >= active habits."""
    active = len(ctx.active_habits)
    if active == 0:
        return Measurement(0, PERFECT_WEEK_TARGET)

    per_day: dict[date, int] = {}
    for c in ctx.completions_since(TRAILING_WEEK):
        d = utc_date(c.completed_at)
        per_day[d] = per_day.get(d, 0) + 1

    perfect = sum(
        1
        for offset in range(7)
        if per_day.get(ctx.today - timedelta(days=offset), 0) >= active
    )
    return Measurement(perfect, PERFECT_WEEK_TARGET)


def _streak_master(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    long_streaks = sum(
        1 for h in ctx.habits if (h.current_streak or 0) >= ctx.streak_master_min_streak
    )
    return Measurement(long_streaks, ctx.streak_master_habits)


def _habit_chain(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    return _count(badge, len(ctx.active_habits))


def _category_master(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    categories = {infer_habit_category(h.name, h.description) for h in ctx.active_habits}
    return _count(badge, len(categories))


RULE_MEASURES: dict[BadgeRule, Measure] = {
    BadgeRule.early_bird: _early_bird,
    BadgeRule.night_owl: _night_owl,
    BadgeRule.weekend_warrior: _weekend_warrior,
    BadgeRule.daily_check_in: _daily_check_in,
    BadgeRule.weekly_check_in: _weekly_check_in,
    BadgeRule.seven_day_challenge: _seven_day_challenge,
    BadgeRule.thirty_day_challenge: _thirty_day_challenge,
    BadgeRule.spring: _seasonal("spring"),
    BadgeRule.summer: _seasonal("summer"),
    BadgeRule.fall: _seasonal("fall"),
    BadgeRule.winter: _seasonal("winter"),
    BadgeRule.perfect_week: _perfect_week,
    BadgeRule.streak_master: _streak_master,
    BadgeRule.habit_chain: _habit_chain,
    BadgeRule.category_master: _category_master,
}


def _measure_by_rule(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    if badge.rule is None:
        return _unmeasured(badge)
    try:
        rule = BadgeRule(badge.rule)
    except ValueError:
        logger.warning("Badge %s has unknown rule %r", badge.id, badge.rule)
        return _unmeasured(badge)
    if rule.category != badge.category:
        return _unmeasured(badge)
    return RULE_MEASURES[rule](badge, ctx)


CATEGORY_MEASURES: dict[BadgeCategory, Measure] = {
    BadgeCategory.streak: _measure_streak,
    BadgeCategory.total: _measure_total,
    BadgeCategory.consistency: _measure_consistency,
    BadgeCategory.special: _measure_by_rule,
    BadgeCategory.milestone: _measure_milestone,
    BadgeCategory.social: _measure_social,
    BadgeCategory.creation: _measure_creation,
    BadgeCategory.time_based: _measure_by_rule,
    BadgeCategory.challenge: _measure_by_rule,
    BadgeCategory.seasonal: _measure_by_rule,
    BadgeCategory.rarity: _measure_by_rule,
    BadgeCategory.chain: _measure_by_rule,
}


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def measure_badge(badge: BadgeDefinition, ctx: EvaluationContext) -> Measurement:
    try:
        category = BadgeCategory(badge.category)
    except ValueError:
        logger.warning("Badge %s has unknown category %r", badge.id, badge.category)
        return _unmeasured(badge)
    return CATEGORY_MEASURES[category](badge, ctx)


def is_eligible(badge: BadgeDefinition, ctx: EvaluationContext) -> bool:
    return measure_badge(badge, ctx).reached


def badge_progress(badge: BadgeDefinition, ctx: EvaluationContext) -> tuple[int, int]:
    m = measure_badge(badge, ctx)
    return m.current, m.target
