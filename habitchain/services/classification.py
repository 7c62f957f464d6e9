"""
Shared classification helpers for the streak calculator and badge rules.

- Time normalisation: every timestamp is compared in UTC. Naive values
  (SQLite drops tzinfo) are taken to already be UTC.
- Time buckets: early (hour < 8), late (hour >= 22), weekend (Sat/Sun),
  season (meteorological, northern hemisphere).
- Habit category inference from free text (keyword lookup).
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

EARLY_BIRD_BEFORE_HOUR = 8
NIGHT_OWL_FROM_HOUR = 22

DEFAULT_CATEGORY = "Other"

# Ordered: first matching category wins.
CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("Fitness",      ("exercise", "workout", "fitness", "gym", "run")),
    ("Learning",     ("read", "study", "learn", "book")),
    ("Wellness",     ("meditation", "mindfulness", "yoga")),
    ("Health",       ("water", "drink", "hydration")),
    ("Creativity",   ("write", "journal", "blog")),
    ("Productivity", ("clean", "organize", "declutter")),
]

SEASON_MONTHS: dict[str, frozenset[int]] = {
    "spring": frozenset({3, 4, 5}),
    "summer": frozenset({6, 7, 8}),
    "fall":   frozenset({9, 10, 11}),
    "winter": frozenset({12, 1, 2}),
}


# ---------------------------------------------------------------------------
# Time normalisation
# ---------------------------------------------------------------------------

def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_date(value: datetime) -> date:
    return as_utc(value).date()


# ---------------------------------------------------------------------------
# Time buckets
# ---------------------------------------------------------------------------

def is_early(value: datetime) -> bool:
    return as_utc(value).hour < EARLY_BIRD_BEFORE_HOUR


def is_late(value: datetime) -> bool:
    return as_utc(value).hour >= NIGHT_OWL_FROM_HOUR


def is_weekend(value: datetime) -> bool:
    # Monday == 0 … Saturday == 5, Sunday == 6
    return as_utc(value).weekday() >= 5


def season_of(value: datetime) -> str:
    month = as_utc(value).month
    for season, months in SEASON_MONTHS.items():
        if month in months:
            return season
    raise ValueError(f"month out of range: {month}")


# ---------------------------------------------------------------------------
# Habit category inference
# ---------------------------------------------------------------------------

def infer_habit_category(name: str, description: Optional[str] = None) -> str:
    """
    Classify a habit by keywords in its name + description.
    Case-insensitive substring match; falls back to DEFAULT_CATEGORY.
    """
    text = f"{name} {description or ''}".lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(k in text for k in keywords):
            return category
    return DEFAULT_CATEGORY
