"""
Default badge catalog and idempotent seeding.

Each entry names its rule explicitly; renaming a badge never changes how
it is evaluated. `seed_default_badges` inserts only the names that are
missing, so it is safe to run on every deploy.
"""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from habitchain.models.badge import BadgeCategory, BadgeDefinition, BadgeRarity, BadgeRule

logger = logging.getLogger(__name__)

C = BadgeCategory
R = BadgeRule
X = BadgeRarity

# (name, emoji, description, category, rule, required_value, rarity, is_secret)
DEFAULT_BADGES: list[tuple] = [
    ("First Steps",       "🎯", "Create your very first habit",            C.milestone,   None,                    1,    X.common,    False),
    ("Habit Collector",   "📚", "Create 5 different habits",               C.milestone,   None,                    5,    X.rare,      False),
    ("Habit Master",      "👑", "Create 10 different habits",              C.milestone,   None,                    10,   X.epic,      False),
    ("Week Warrior",      "🔥", "Maintain a 7-day streak",                 C.streak,      None,                    7,    X.common,    False),
    ("Month Master",      "🏆", "Maintain a 30-day streak",                C.streak,      None,                    30,   X.rare,      False),
    ("Century Club",      "💎", "Maintain a 100-day streak",               C.streak,      None,                    100,  X.legendary, False),
    ("Getting Started",   "📊", "Complete 10 total check-ins",             C.total,       None,                    10,   X.common,    False),
    ("Habit Builder",     "🏗️", "Complete 50 total check-ins",             C.total,       None,                    50,   X.rare,      False),
    ("Centurion",         "💯", "Reach 100 check-ins",                     C.milestone,   None,                    100,  X.rare,      False),
    ("Dedication Master", "🎖️", "Reach 500 check-ins",                     C.milestone,   None,                    500,  X.epic,      False),
    ("Legend",            "🌟", "Reach 1000 check-ins",                    C.milestone,   None,                    1000, X.legendary, False),
    ("Early Bird",        "🌅", "Complete 10 check-ins before 8 AM",       C.special,     R.early_bird,            10,   X.rare,      False),
    ("Night Owl",         "🦉", "Complete 10 check-ins after 10 PM",       C.special,     R.night_owl,             10,   X.rare,      False),
    ("Weekend Warrior",   "🛡️", "Complete 10 check-ins on weekends",       C.special,     R.weekend_warrior,       10,   X.common,    False),
    ("Consistency King",  "📈", "Keep an 80% completion rate",             C.consistency, None,                    80,   X.epic,      False),
    ("Habit Creator",     "🧪", "Create 3 habits",                         C.creation,    None,                    3,    X.common,    False),
    ("Daily Devotee",     "📅", "Check in every day for a week",           C.time_based,  R.daily_check_in,        7,    X.rare,      False),
    ("Weekly Regular",    "🗓️", "Complete 5 check-ins in a week",          C.time_based,  R.weekly_check_in,       5,    X.common,    False),
    ("7-Day Challenge",   "⚡", "Complete 7 check-ins in 7 days",          C.challenge,   R.seven_day_challenge,   7,    X.common,    False),
    ("30-Day Challenge",  "🏅", "Complete 30 check-ins in 30 days",        C.challenge,   R.thirty_day_challenge,  30,   X.rare,      False),
    ("Spring Bloom",      "🌸", "Complete 20 check-ins in spring",         C.seasonal,    R.spring,                20,   X.common,    False),
    ("Summer Sun",        "☀️", "Complete 20 check-ins in summer",         C.seasonal,    R.summer,                20,   X.common,    False),
    ("Fall Harvest",      "🍂", "Complete 20 check-ins in fall",           C.seasonal,    R.fall,                  20,   X.common,    False),
    ("Winter Resolve",    "❄️", "Complete 20 check-ins in winter",         C.seasonal,    R.winter,                20,   X.common,    False),
    ("Perfect Week",      "✨", "Complete every habit, every day, for a week", C.rarity,  R.perfect_week,          7,    X.epic,      True),
    ("Streak Master",     "🔱", "Hold a 10-day streak on 3 habits",        C.rarity,      R.streak_master,         3,    X.legendary, True),
    ("Habit Chain",       "🔗", "Keep 3 habits active at once",            C.chain,       R.habit_chain,           3,    X.common,    False),
    ("Category Master",   "🧭", "Build habits in 4 different areas",       C.chain,       R.category_master,       4,    X.epic,      False),
    ("Social Butterfly",  "🦋", "Encourage 5 friends",                     C.social,      None,                    5,    X.rare,      False),
]


def default_badge_definitions() -> list[BadgeDefinition]:
    return [
        BadgeDefinition(
            name=name,
            emoji=emoji,
            description=description,
            category=category,
            rule=rule,
            required_value=required_value,
            rarity=rarity,
            is_secret=is_secret,
            display_order=order,
        )
        for order, (name, emoji, description, category, rule, required_value, rarity, is_secret)
        in enumerate(DEFAULT_BADGES, start=1)
    ]


def seed_default_badges(db: Session) -> int:
    """Insert catalog badges whose name is not in the table yet. Returns the count added."""
    existing = {row.name for row in db.query(BadgeDefinition.name).all()}
    added = 0
    for badge in default_badge_definitions():
        if badge.name in existing:
            continue
        db.add(badge)
        added += 1
    if added:
        db.commit()
        logger.info("Seeded %d default badges", added)
    return added
