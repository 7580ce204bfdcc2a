"""Pydantic schemas for reading streaks."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class StreakCategory(str, Enum):
    """Display category of a streak."""

    NO_ACTIVITY = "no-activity"
    AT_RISK = "at-risk"  # Read yesterday, not yet today
    BUILDING = "building"
    LONG_RUNNING = "long-running"


class ReadingStreak(BaseModel):
    """Derived streak statistics; recomputed on every read, never stored."""

    current_streak: int
    longest_streak: int
    total_days_read: int
    is_active_today: bool
    last_activity_date: Optional[date]
    is_at_risk: bool
    category: StreakCategory
    message: str
