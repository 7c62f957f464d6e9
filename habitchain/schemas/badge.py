"""
Badge schemas.

GET  /badges                           → BadgeListResponse
GET  /badges/{badge_id}                → BadgeOut
GET  /users/{user_id}/awards           → AwardListResponse
GET  /users/{user_id}/badges           → BadgeProgressListResponse
POST /users/{user_id}/badges/evaluate  → AwardListResponse
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from habitchain.models.badge import BadgeCategory, BadgeRarity, BadgeRule


class AwardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    badge_id: int
    habit_id: Optional[int] = None
    earned_at: datetime


class AwardListResponse(BaseModel):
    total: int
    items: list[AwardOut]


class BadgeProgressOut(BaseModel):
    badge_id: int
    name: str
    description: str
    emoji: str
    category: str
    rarity: str
    display_order: int
    is_secret: bool
    is_earned: bool
    progress: Optional[int] = Field(
        default=None, description="Current measured value; null once earned."
    )
    target: Optional[int] = Field(
        default=None, description="Value needed to earn the badge; null once earned."
    )
    percent: int = Field(description="0–100, capped.")
    eligible: bool = Field(
        description="Already qualifies; awarded on the next evaluation trigger."
    )


class BadgeProgressListResponse(BaseModel):
    user_id: str
    earned: int
    total: int
    items: list[BadgeProgressOut]


class BadgeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    emoji: str
    category: BadgeCategory
    rule: Optional[BadgeRule] = None
    required_value: int
    rarity: BadgeRarity
    is_secret: bool
    display_order: int


class BadgeListResponse(BaseModel):
    total: int
    items: list[BadgeOut]
