"""Goal progress derivation.

Pure and stateless: everything is computed from the goal snapshot and a
reference time. None of these calculations raise.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from ..db.schemas import Goal, as_utc, utcnow
from .schemas import GoalProgress, GoalStatus

ONE_DAY = timedelta(days=1)


class GoalProgressCalculator:
    """Derives percentage, completion and overdue state for a goal."""

    def __init__(self, goal: Goal, now: Optional[datetime] = None):
        """Initialize calculator.

        Args:
            goal: Goal snapshot
            now: Reference time (default: current UTC time)
        """
        self.goal = goal
        self.now = as_utc(now) if now else utcnow()

    @property
    def percentage(self) -> int:
        """Progress percentage, capped at 100."""
        if self.goal.target_books == 0:
            return 0
        return round(min(100.0, self.goal.current_books / self.goal.target_books * 100))

    @property
    def is_completed(self) -> bool:
        return self.goal.current_books >= self.goal.target_books

    @property
    def is_overdue(self) -> bool:
        """Past the end date and not marked completed."""
        return self.now > self.goal.end_date and not self.goal.completed

    @property
    def days_remaining(self) -> int:
        """Whole days left, rounded up; never negative."""
        days = math.ceil((self.goal.end_date - self.now) / ONE_DAY)
        return max(0, days)

    @property
    def books_remaining(self) -> int:
        return max(0, self.goal.target_books - self.goal.current_books)

    @property
    def status(self) -> GoalStatus:
        if self.goal.completed:
            return GoalStatus.COMPLETED
        if self.is_overdue:
            return GoalStatus.OVERDUE
        if self.goal.current_books == 0:
            return GoalStatus.NOT_STARTED
        return GoalStatus.IN_PROGRESS

    @property
    def should_auto_complete(self) -> bool:
        """Target reached on a goal not yet marked complete.

        Completion is a latch: this never suggests reverting a completed goal.
        """
        return not self.goal.completed and self.is_completed

    def to_progress(self) -> GoalProgress:
        return GoalProgress(
            percentage=self.percentage,
            is_completed=self.is_completed,
            is_overdue=self.is_overdue,
            days_remaining=self.days_remaining,
            books_remaining=self.books_remaining,
            status=self.status,
            should_auto_complete=self.should_auto_complete,
        )


def calculate_progress(goal: Goal, now: Optional[datetime] = None) -> GoalProgress:
    """Shortcut for ``GoalProgressCalculator(goal, now).to_progress()``."""
    return GoalProgressCalculator(goal, now).to_progress()
