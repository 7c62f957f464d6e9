"""
Habit, check-in and completion-rate schemas.

POST /users/{user_id}/habits            → HabitCreate      → HabitCreatedResponse
POST /habits/{habit_id}/completions     → CompletionCreate → CompletionResponse
GET  /habits/{habit_id}/completion-rates → HabitRatesResponse
GET  /users/{user_id}/completion-rates  → UserRatesResponse
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from habitchain.models.habit import HabitFrequency
from habitchain.schemas.badge import AwardOut
from habitchain.services.classification import as_utc, utcnow


class HabitCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128, examples=["Morning run"])
    description: Optional[str] = Field(default=None, max_length=2000)
    frequency: HabitFrequency = Field(
        default=HabitFrequency.daily,
        description='"daily" | "weekly" | "monthly" | "custom"',
    )

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()


class HabitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    name: str
    description: Optional[str] = None
    frequency: HabitFrequency
    is_active: bool
    current_streak: int
    longest_streak: int
    last_completed_at: Optional[datetime] = None
    created_at: datetime


class HabitCreatedResponse(BaseModel):
    habit: HabitOut
    new_badges: list[AwardOut] = Field(description="Badges earned by creating this habit.")


class CompletionCreate(BaseModel):
    completed_at: Optional[datetime] = Field(
        default=None,
        description="When the habit was completed. Defaults to now (UTC).",
        examples=["2026-02-21T07:30:00Z"],
    )
    note: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("completed_at")
    @classmethod
    def not_in_future(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and as_utc(v) > utcnow():
            raise ValueError("completed_at must not be in the future")
        return v


class CompletionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    habit_id: int
    user_id: str
    completed_at: datetime
    note: Optional[str] = None


class StreakOut(BaseModel):
    current_streak: int
    longest_streak: int
    last_completed_at: Optional[datetime] = None


class CompletionResponse(BaseModel):
    completion: CompletionOut
    streak: StreakOut
    new_badges: list[AwardOut] = Field(description="Badges earned by this check-in.")


class HabitRatesResponse(BaseModel):
    habit_id: int
    habit_name: str
    is_active: bool
    overall_completion_rate: float = Field(
        description="Lifetime completion percentage. May exceed 100.",
        examples=[87.5],
    )
    weekly_completion_rate: float = Field(description="Last 7 days, percent.")
    monthly_completion_rate: float = Field(description="Last 30 days, percent.")
    total_possible_completions: int
    total_actual_completions: int
    current_streak: int
    longest_streak: int
    last_completed_at: Optional[datetime] = None


class UserRatesResponse(BaseModel):
    user_id: str
    overall_completion_rate: float = Field(description="Mean over active habits.")
    weekly_completion_rate: float
    monthly_completion_rate: float
    total_habits: int
    active_habits: int
    completed_habits_today: int
    habit_completion_rates: list[HabitRatesResponse]
