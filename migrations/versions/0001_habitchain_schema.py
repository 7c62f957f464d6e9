"""habits, completion events, badge definitions and awards

Revision ID: 0001
Revises:
Create Date: 2026-10-17 00:00:00.000000

Unique constraint (user_id, badge_id) on badge_awards is the storage-level
guard against awarding the same badge twice under concurrent check-ins.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


HABIT_FREQUENCIES = ("daily", "weekly", "monthly", "custom")
BADGE_CATEGORIES = (
    "streak", "total", "consistency", "special", "milestone", "social",
    "creation", "time_based", "challenge", "seasonal", "rarity", "chain",
)
BADGE_RULES = (
    "early_bird", "night_owl", "weekend_warrior",
    "daily_check_in", "weekly_check_in",
    "seven_day_challenge", "thirty_day_challenge",
    "spring", "summer", "fall", "winter",
    "perfect_week", "streak_master",
    "habit_chain", "category_master",
)
BADGE_RARITIES = ("common", "rare", "epic", "legendary")


def upgrade() -> None:
    # --- habits ---
    op.create_table(
        "habits",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("frequency", sa.Enum(*HABIT_FREQUENCIES, name="habit_frequency_enum"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_habits_id", "habits", ["id"])
    op.create_index("ix_habits_user_id", "habits", ["user_id"])

    # --- completion_events ---
    op.create_table(
        "completion_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("habit_id", sa.Integer(), sa.ForeignKey("habits.id"), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_completion_events_id", "completion_events", ["id"])
    op.create_index("ix_completion_events_habit_id", "completion_events", ["habit_id"])
    op.create_index("ix_completion_events_user_id", "completion_events", ["user_id"])
    op.create_index("ix_completion_events_completed_at", "completion_events", ["completed_at"])

    # --- badge_definitions ---
    op.create_table(
        "badge_definitions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("emoji", sa.String(16), nullable=False, server_default=""),
        sa.Column("category", sa.Enum(*BADGE_CATEGORIES, name="badge_category_enum"), nullable=False),
        sa.Column("rule", sa.Enum(*BADGE_RULES, name="badge_rule_enum"), nullable=True),
        sa.Column("required_value", sa.Integer(), nullable=False),
        sa.Column("rarity", sa.Enum(*BADGE_RARITIES, name="badge_rarity_enum"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_secret", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sa.CheckConstraint("required_value >= 1", name="ck_badge_required_value_positive"),
    )
    op.create_index("ix_badge_definitions_id", "badge_definitions", ["id"])
    op.create_index("ix_badge_definitions_category", "badge_definitions", ["category"])

    # --- badge_awards ---
    op.create_table(
        "badge_awards",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("badge_id", sa.Integer(), sa.ForeignKey("badge_definitions.id"), nullable=False),
        sa.Column("habit_id", sa.Integer(), sa.ForeignKey("habits.id"), nullable=True),
        sa.Column("earned_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "badge_id", name="uq_badge_award_user_badge"),
    )
    op.create_index("ix_badge_awards_id", "badge_awards", ["id"])
    op.create_index("ix_badge_awards_user_id", "badge_awards", ["user_id"])
    op.create_index("ix_badge_awards_badge_id", "badge_awards", ["badge_id"])


def downgrade() -> None:
    op.drop_table("badge_awards")
    op.drop_table("badge_definitions")
    op.drop_table("completion_events")
    op.drop_table("habits")
    for enum_name in (
        "badge_rarity_enum",
        "badge_rule_enum",
        "badge_category_enum",
        "habit_frequency_enum",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
