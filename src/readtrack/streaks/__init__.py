"""Reading streaks module."""

from .calculator import LONG_STREAK_DAYS, StreakCalculator
from .manager import StreakService
from .schemas import ReadingStreak, StreakCategory

__all__ = [
    "LONG_STREAK_DAYS",
    "StreakCalculator",
    "StreakService",
    "ReadingStreak",
    "StreakCategory",
]
