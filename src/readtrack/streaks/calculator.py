"""Streak calculation over a day-granularity activity log.

All results are relative to a reference ``today`` supplied by the caller,
which keeps the calculation independent of wall-clock time and timezone.
"""

from datetime import date, timedelta
from typing import Iterable, Optional

from ..db.schemas import ReadingActivity
from .schemas import ReadingStreak, StreakCategory

ONE_DAY = timedelta(days=1)

# Streak length from which a streak counts as long-running
LONG_STREAK_DAYS = 7


class StreakCalculator:
    """Derives streak statistics from reading activities."""

    def __init__(self, activities: Iterable[ReadingActivity], today: Optional[date] = None):
        """Initialize calculator.

        Args:
            activities: Activities of a single user, in any order
            today: Reference day (default: today's local date)
        """
        self.today = today or date.today()
        self.yesterday = self.today - ONE_DAY
        self._days = {activity.activity_date for activity in activities}
        # Most recent first
        self.days: list[date] = sorted(self._days, reverse=True)

    @property
    def total_days_read(self) -> int:
        return len(self.days)

    @property
    def is_active_today(self) -> bool:
        return self.today in self._days

    @property
    def last_activity_date(self) -> Optional[date]:
        return self.days[0] if self.days else None

    @property
    def current_streak(self) -> int:
        """Consecutive days ending today, or yesterday if nothing is logged today."""
        if self.today in self._days:
            day = self.today
        elif self.yesterday in self._days:
            day = self.yesterday
        else:
            return 0

        streak = 0
        while day in self._days:
            streak += 1
            day -= ONE_DAY
        return streak

    @property
    def longest_streak(self) -> int:
        if not self.days:
            return 0

        longest = 1
        running = 1
        for previous, day in zip(self.days, self.days[1:]):
            if previous - day == ONE_DAY:
                running += 1
                longest = max(longest, running)
            else:
                running = 1
        return longest

    @property
    def is_at_risk(self) -> bool:
        """An active streak that breaks unless something is logged today."""
        return (
            not self.is_active_today
            and self.yesterday in self._days
            and self.current_streak > 0
        )

    @property
    def category(self) -> StreakCategory:
        current = self.current_streak
        if current == 0:
            return StreakCategory.NO_ACTIVITY
        if self.is_at_risk:
            return StreakCategory.AT_RISK
        if current >= LONG_STREAK_DAYS:
            return StreakCategory.LONG_RUNNING
        return StreakCategory.BUILDING

    @property
    def message(self) -> str:
        """Motivational copy for the current category."""
        current = self.current_streak
        category = self.category

        if category == StreakCategory.NO_ACTIVITY:
            return "Start your reading streak today!"
        if category == StreakCategory.AT_RISK:
            return f"Don't break your {current}-day streak! Read today to keep it going."
        if current >= 30:
            return f"Amazing! {current} days and counting. You're a reading champion!"
        if category == StreakCategory.LONG_RUNNING:
            return f"Great job! {current}-day streak. Keep the momentum going!"
        if current >= 3:
            return f"Nice! {current} days in a row. You're building a habit!"
        return f"{current}-day streak. Every day counts!"

    def to_streak(self) -> ReadingStreak:
        return ReadingStreak(
            current_streak=self.current_streak,
            longest_streak=self.longest_streak,
            total_days_read=self.total_days_read,
            is_active_today=self.is_active_today,
            last_activity_date=self.last_activity_date,
            is_at_risk=self.is_at_risk,
            category=self.category,
            message=self.message,
        )
