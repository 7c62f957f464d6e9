"""
BadgeDefinition — an achievement users can earn.

category: which measurement family the badge belongs to (12 values).
rule:     which sub-rule inside the family, for the categories that have
          several (Special, TimeBased, Challenge, Seasonal, Rarity, Chain).
          Explicit column: the display name is free text and is never
          parsed to decide how a badge is evaluated.

A rule paired with the wrong category measures 0 and is never earned.
"""
from datetime import datetime
from sqlalchemy import Integer, String, Text, Boolean, DateTime, Enum, func, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
import enum

from habitchain.db.base import Base


class BadgeCategory(str, enum.Enum):
    streak = "streak"
    total = "total"
    consistency = "consistency"
    special = "special"
    milestone = "milestone"
    social = "social"
    creation = "creation"
    time_based = "time_based"
    challenge = "challenge"
    seasonal = "seasonal"
    rarity = "rarity"
    chain = "chain"


class BadgeRule(str, enum.Enum):
    # special
    early_bird = "early_bird"
    night_owl = "night_owl"
    weekend_warrior = "weekend_warrior"
    # time_based
    daily_check_in = "daily_check_in"
    weekly_check_in = "weekly_check_in"
    # challenge
    seven_day_challenge = "seven_day_challenge"
    thirty_day_challenge = "thirty_day_challenge"
    # seasonal
    spring = "spring"
    summer = "summer"
    fall = "fall"
    winter = "winter"
    # rarity
    perfect_week = "perfect_week"
    streak_master = "streak_master"
    # chain
    habit_chain = "habit_chain"
    category_master = "category_master"

    @property
    def category(self) -> BadgeCategory:
        return _RULE_CATEGORY[self]


_RULE_CATEGORY: dict[BadgeRule, BadgeCategory] = {
    BadgeRule.early_bird: BadgeCategory.special,
    BadgeRule.night_owl: BadgeCategory.special,
    BadgeRule.weekend_warrior: BadgeCategory.special,
    BadgeRule.daily_check_in: BadgeCategory.time_based,
    BadgeRule.weekly_check_in: BadgeCategory.time_based,
    BadgeRule.seven_day_challenge: BadgeCategory.challenge,
    BadgeRule.thirty_day_challenge: BadgeCategory.challenge,
    BadgeRule.spring: BadgeCategory.seasonal,
    BadgeRule.summer: BadgeCategory.seasonal,
    BadgeRule.fall: BadgeCategory.seasonal,
    BadgeRule.winter: BadgeCategory.seasonal,
    BadgeRule.perfect_week: BadgeCategory.rarity,
    BadgeRule.streak_master: BadgeCategory.rarity,
    BadgeRule.habit_chain: BadgeCategory.chain,
    BadgeRule.category_master: BadgeCategory.chain,
}


class BadgeRarity(str, enum.Enum):
    common = "common"
    rare = "rare"
    epic = "epic"
    legendary = "legendary"


class BadgeDefinition(Base):
    __tablename__ = "badge_definitions"
    __table_args__ = (
        CheckConstraint("required_value >= 1", name="ck_badge_required_value_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    emoji: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    category: Mapped[str] = mapped_column(
        Enum(BadgeCategory, name="badge_category_enum"), nullable=False, index=True
    )
    rule: Mapped[str | None] = mapped_column(
        Enum(BadgeRule, name="badge_rule_enum"), nullable=True
    )
    required_value: Mapped[int] = mapped_column(Integer, nullable=False)
    rarity: Mapped[str] = mapped_column(
        Enum(BadgeRarity, name="badge_rarity_enum"),
        nullable=False,
        default=BadgeRarity.common,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_secret: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __init__(self, **kwargs):
        kwargs.setdefault("description", "")
        kwargs.setdefault("emoji", "")
        kwargs.setdefault("rarity", BadgeRarity.common)
        kwargs.setdefault("is_active", True)
        kwargs.setdefault("is_secret", False)
        kwargs.setdefault("display_order", 0)
        super().__init__(**kwargs)
