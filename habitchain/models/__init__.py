from .habit import Habit, HabitFrequency
from .completion import CompletionEvent
from .badge import BadgeDefinition, BadgeCategory, BadgeRule, BadgeRarity
from .badge_award import BadgeAward

__all__ = [
    "Habit",
    "HabitFrequency",
    "CompletionEvent",
    "BadgeDefinition",
    "BadgeCategory",
    "BadgeRule",
    "BadgeRarity",
    "BadgeAward",
]
