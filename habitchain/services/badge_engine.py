"""
Badge Evaluation Engine — decides which badges a user newly earns.

Flow (evaluate_badges)
----------------------
  1. Drop inactive badges and badges the user already owns.
  2. Drop secret badges unless the user has revealed them
     (total completions >= SECRET_BADGE_REVEAL_COMPLETIONS, global gate).
  3. Measure each remaining badge via the rule table (badge_rules.py);
     every badge that reaches its target yields a new BadgeAward.
  4. Return the new awards. Persisting them is the caller's job
     (see repository.persist_awards).

Failure isolation
-----------------
- An error while evaluating one badge is logged and that badge skipped.
- An error outside the per-badge loop is logged and the awards collected
  so far are returned.
Nothing is raised to the caller: a failed pass simply awards nothing and
the next trigger re-evaluates every non-owned badge.

Idempotency
-----------
Awards are only built for badges missing from `owned_badge_ids`; running
the engine again with the first run's awards added to that set yields
nothing new. Concurrent runs are settled by the unique
(user_id, badge_id) constraint in storage.

Progress (badge_progress_report) reuses the same measurements to report
"current / target" for every badge the user can see.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence

from habitchain.core.config import settings
from habitchain.models.badge import BadgeDefinition
from habitchain.models.badge_award import BadgeAward
from habitchain.models.completion import CompletionEvent
from habitchain.models.habit import Habit
from habitchain.services.badge_rules import EvaluationContext, measure_badge
from habitchain.services.classification import as_utc, utcnow

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class BadgeProgress:
    badge: BadgeDefinition
    earned: bool
    current: Optional[int]      # None once earned
    target: Optional[int]
    eligible: bool              # not yet awarded but already qualifies

    @property
    def percent(self) -> int:
        if self.earned:
            return 100
        if not self.target:
            return 0
        return min(100, (self.current or 0) * 100 // self.target)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def is_secret_revealed(
    completions: Sequence[CompletionEvent],
    reveal_threshold: Optional[int] = None,
) -> bool:
    if reveal_threshold is None:
        reveal_threshold = settings.SECRET_BADGE_REVEAL_COMPLETIONS
    return len(completions) >= reveal_threshold


def _visible(badge: BadgeDefinition, secrets_revealed: bool) -> bool:
    return bool(badge.is_active) and (not badge.is_secret or secrets_revealed)


def _build_award(
    user_id: str,
    badge: BadgeDefinition,
    habit_id: Optional[int],
    earned_at: datetime,
) -> BadgeAward:
    if badge.id is None:
        raise ValueError(f"badge {badge.name!r} has no id; it cannot be awarded")
    return BadgeAward(
        user_id=user_id,
        badge_id=badge.id,
        habit_id=habit_id,
        earned_at=earned_at,
    )


# ---------------------------------------------------------------------------
# Public — eligibility
# ---------------------------------------------------------------------------

def evaluate_badges(
    user_id: str,
    badges: Iterable[BadgeDefinition],
    owned_badge_ids: Iterable[int],
    habits: Sequence[Habit],
    completions: Sequence[CompletionEvent],
    habit_id: Optional[int] = None,
    now: Optional[datetime] = None,
    reveal_threshold: Optional[int] = None,
) -> list[BadgeAward]:
    """
    Return a BadgeAward for every visible, not-yet-owned badge the user
    qualifies for. `habit_id` (the habit whose event triggered this pass)
    scopes streak badges to that habit and is recorded on each award.
    """
    awards: list[BadgeAward] = []
    try:
        owned = set(owned_badge_ids)
        ctx = EvaluationContext(
            habits=habits,
            completions=completions,
            now=as_utc(now or utcnow()),
            habit_id=habit_id,
        )
        revealed = is_secret_revealed(completions, reveal_threshold)

        for badge in badges:
            if badge.id in owned or not _visible(badge, revealed):
                continue
            try:
                if not measure_badge(badge, ctx).reached:
                    continue
                awards.append(_build_award(user_id, badge, habit_id, ctx.now))
            except Exception:
                logger.exception(
                    "Skipping badge %s (%s) for user %s: evaluation failed",
                    badge.id, badge.name, user_id,
                )
                continue
            owned.add(badge.id)
            logger.info("User %s earned badge: %s", user_id, badge.name)
    except Exception:
        logger.exception("Badge evaluation aborted for user %s", user_id)

    return awards


# ---------------------------------------------------------------------------
# Public — progress listing
# ---------------------------------------------------------------------------

def badge_progress_report(
    badges: Iterable[BadgeDefinition],
    owned_badge_ids: Iterable[int],
    habits: Sequence[Habit],
    completions: Sequence[CompletionEvent],
    now: Optional[datetime] = None,
    reveal_threshold: Optional[int] = None,
) -> list[BadgeProgress]:
    """
    Every badge the user can see, ordered by display_order then name.

    Unrevealed secret badges are left out even if already earned.
    Progress is measured across all habits (no trigger scope).
    """
    owned = set(owned_badge_ids)
    ctx = EvaluationContext(habits=habits, completions=completions, now=as_utc(now or utcnow()))
    revealed = is_secret_revealed(completions, reveal_threshold)

    report: list[BadgeProgress] = []
    for badge in sorted(badges, key=lambda b: (b.display_order or 0, b.name)):
        if not _visible(badge, revealed):
            continue
        if badge.id in owned:
            report.append(BadgeProgress(badge, earned=True, current=None, target=None, eligible=False))
            continue
        try:
            m = measure_badge(badge, ctx)
        except Exception:
            logger.exception("Progress unavailable for badge %s (%s)", badge.id, badge.name)
            report.append(BadgeProgress(
                badge, earned=False, current=0, target=badge.required_value, eligible=False,
            ))
            continue
        report.append(BadgeProgress(
            badge, earned=False, current=m.current, target=m.target, eligible=m.reached,
        ))
    return report
