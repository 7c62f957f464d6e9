"""
User router — per-user habits, rates and badges.

POST /users/{user_id}/habits             — create a habit (+ badges)
GET  /users/{user_id}/completion-rates   — rates across all habits
GET  /users/{user_id}/awards             — badges already earned, newest first
GET  /users/{user_id}/badges             — badge listing with progress
POST /users/{user_id}/badges/evaluate    — re-run badge evaluation
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from starlette import status

from habitchain.db.base import get_db
from habitchain.routers.habits import rates_to_response
from habitchain.schemas.badge import (
    AwardListResponse,
    AwardOut,
    BadgeProgressListResponse,
    BadgeProgressOut,
)
from habitchain.schemas.habit import HabitCreate, HabitCreatedResponse, HabitOut, UserRatesResponse
from habitchain.services.badge_engine import BadgeProgress
from habitchain.services.repository import user_awards
from habitchain.services.progress_service import (
    create_habit,
    evaluate_user_badges,
    user_badge_progress,
    user_completion_summary,
)

router = APIRouter(prefix="/users", tags=["users"])


def _ev(v) -> str:
    return v.value if hasattr(v, "value") else str(v)


def _progress_to_response(p: BadgeProgress) -> BadgeProgressOut:
    b = p.badge
    return BadgeProgressOut(
        badge_id=b.id,
        name=b.name,
        description=b.description,
        emoji=b.emoji,
        category=_ev(b.category),
        rarity=_ev(b.rarity),
        display_order=b.display_order,
        is_secret=b.is_secret,
        is_earned=p.earned,
        progress=p.current,
        target=p.target,
        percent=p.percent,
        eligible=p.eligible,
    )


# ---------------------------------------------------------------------------
# POST /users/{user_id}/habits
# ---------------------------------------------------------------------------

@router.post(
    "/{user_id}/habits",
    response_model=HabitCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a habit",
)
def post_habit(user_id: str, payload: HabitCreate, db: Session = Depends(get_db)):
    outcome = create_habit(
        db,
        user_id=user_id,
        name=payload.name,
        description=payload.description,
        frequency=payload.frequency,
    )
    return HabitCreatedResponse(
        habit=HabitOut.model_validate(outcome.habit),
        new_badges=[AwardOut.model_validate(a) for a in outcome.new_awards],
    )


# ---------------------------------------------------------------------------
# GET /users/{user_id}/completion-rates
# ---------------------------------------------------------------------------

@router.get(
    "/{user_id}/completion-rates",
    response_model=UserRatesResponse,
    summary="Completion rates across all of a user's habits",
)
def get_user_rates(user_id: str, db: Session = Depends(get_db)):
    summary = user_completion_summary(db, user_id)
    return UserRatesResponse(
        user_id=summary.user_id,
        overall_completion_rate=float(summary.overall_rate),
        weekly_completion_rate=float(summary.weekly_rate),
        monthly_completion_rate=float(summary.monthly_rate),
        total_habits=summary.total_habits,
        active_habits=summary.active_habits,
        completed_habits_today=summary.completed_today,
        habit_completion_rates=[rates_to_response(r) for r in summary.habits],
    )


# ---------------------------------------------------------------------------
# GET /users/{user_id}/awards
# ---------------------------------------------------------------------------

@router.get(
    "/{user_id}/awards",
    response_model=AwardListResponse,
    summary="Badges the user has earned",
)
def get_user_awards(user_id: str, db: Session = Depends(get_db)):
    awards = user_awards(db, user_id)
    return AwardListResponse(
        total=len(awards),
        items=[AwardOut.model_validate(a) for a in awards],
    )


# ---------------------------------------------------------------------------
# GET /users/{user_id}/badges
# ---------------------------------------------------------------------------

@router.get(
    "/{user_id}/badges",
    response_model=BadgeProgressListResponse,
    summary="Badges with earned flag and progress",
)
def get_user_badges(user_id: str, db: Session = Depends(get_db)):
    """
    Every active badge the user can see, ordered by display order.
    Secret badges stay hidden until the user has 50 completions.
    """
    items = [_progress_to_response(p) for p in user_badge_progress(db, user_id)]
    return BadgeProgressListResponse(
        user_id=user_id,
        earned=sum(1 for i in items if i.is_earned),
        total=len(items),
        items=items,
    )


# ---------------------------------------------------------------------------
# POST /users/{user_id}/badges/evaluate
# ---------------------------------------------------------------------------

@router.post(
    "/{user_id}/badges/evaluate",
    response_model=AwardListResponse,
    summary="Evaluate and award newly earned badges",
)
def post_evaluate_badges(user_id: str, db: Session = Depends(get_db)):
    """Idempotent: badges already owned are never awarded twice."""
    awards = evaluate_user_badges(db, user_id)
    return AwardListResponse(
        total=len(awards),
        items=[AwardOut.model_validate(a) for a in awards],
    )
