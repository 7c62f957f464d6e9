"""
Habit router.

POST /habits/{habit_id}/completions       — record a check-in (+ streak, + badges)
GET  /habits/{habit_id}/completion-rates  — lifetime / 7-day / 30-day rates
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from starlette import status

from habitchain.db.base import get_db
from habitchain.schemas.badge import AwardOut
from habitchain.schemas.common import ErrorResponse
from habitchain.schemas.habit import (
    CompletionCreate,
    CompletionOut,
    CompletionResponse,
    HabitRatesResponse,
    StreakOut,
)
from habitchain.services.progress_service import habit_completion_rates, record_completion
from habitchain.services.streaks import HabitRates

router = APIRouter(prefix="/habits", tags=["habits"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def rates_to_response(r: HabitRates) -> HabitRatesResponse:
    return HabitRatesResponse(
        habit_id=r.habit_id,
        habit_name=r.habit_name,
        is_active=r.is_active,
        overall_completion_rate=float(r.overall_rate),
        weekly_completion_rate=float(r.weekly_rate),
        monthly_completion_rate=float(r.monthly_rate),
        total_possible_completions=r.total_possible,
        total_actual_completions=r.total_actual,
        current_streak=r.current_streak,
        longest_streak=r.longest_streak,
        last_completed_at=r.last_completed_at,
    )


# ---------------------------------------------------------------------------
# POST /habits/{habit_id}/completions
# ---------------------------------------------------------------------------

@router.post(
    "/{habit_id}/completions",
    response_model=CompletionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a habit completion",
    responses={
        404: {"model": ErrorResponse, "description": "Habit not found."},
        409: {"model": ErrorResponse, "description": "Habit is archived."},
    },
)
def create_completion(
    habit_id: int,
    payload: CompletionCreate,
    db: Session = Depends(get_db),
):
    """
    Record a check-in for the habit, refresh its streak and award any
    badges the user now qualifies for.

    Badge evaluation never fails the request: if it errors, the check-in
    is still recorded and `new_badges` is empty.
    """
    outcome = record_completion(
        db,
        habit_id=habit_id,
        completed_at=payload.completed_at,
        note=payload.note,
    )
    return CompletionResponse(
        completion=CompletionOut.model_validate(outcome.completion),
        streak=StreakOut(
            current_streak=outcome.streak.current_streak,
            longest_streak=outcome.streak.longest_streak,
            last_completed_at=outcome.streak.last_completed_at,
        ),
        new_badges=[AwardOut.model_validate(a) for a in outcome.new_awards],
    )


# ---------------------------------------------------------------------------
# GET /habits/{habit_id}/completion-rates
# ---------------------------------------------------------------------------

@router.get(
    "/{habit_id}/completion-rates",
    response_model=HabitRatesResponse,
    summary="Completion rates and streaks for one habit",
    responses={404: {"model": ErrorResponse, "description": "Habit not found."}},
)
def get_habit_rates(habit_id: int, db: Session = Depends(get_db)):
    """
    ### Rate formula
    `actual / floor(days_in_window / cadence) * 100`, cadence 1 / 7 / 30 for
    daily / weekly / monthly (custom counts as daily). 0 when nothing is
    expected yet. Values above 100 are possible and intentional.
    """
    return rates_to_response(habit_completion_rates(db, habit_id))
