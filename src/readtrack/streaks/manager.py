"""Streak manager: records reading activity and reports streaks."""

import logging
from datetime import date
from typing import Optional

from ..config import get_config
from ..db.schemas import ReadingActivity
from ..errors import ValidationError
from ..repositories.base import ReadingActivityRepository
from .calculator import StreakCalculator
from .schemas import ReadingStreak

logger = logging.getLogger(__name__)


class StreakService:
    """Appends to the activity log and derives streaks from it on demand."""

    def __init__(self, activity_repository: ReadingActivityRepository):
        self.activity_repository = activity_repository

    def record_activity(
        self,
        user_id: str,
        minutes_read: int = 0,
        pages_read: int = 0,
        book_id: Optional[str] = None,
        activity_date: Optional[date] = None,
    ) -> ReadingActivity:
        """Log reading activity for a day.

        Args:
            user_id: Reading user
            minutes_read: Minutes read
            pages_read: Pages read
            book_id: Book the activity belongs to, if any
            activity_date: Day of the activity (default: today)

        Returns:
            The stored ReadingActivity

        Raises:
            ValidationError: On a missing user, negative amounts, or nothing read
        """
        if not user_id:
            raise ValidationError("User ID is required", field="user_id")

        if minutes_read < 0 or pages_read < 0:
            raise ValidationError("Pages read and minutes read must be non-negative")

        if minutes_read == 0 and pages_read == 0:
            raise ValidationError("At least pages read or minutes read must be provided")

        activity = ReadingActivity(
            user_id=user_id,
            activity_date=activity_date or get_config().today(),
            minutes_read=minutes_read,
            pages_read=pages_read,
            book_id=book_id,
        )
        logger.debug("Recording %s for %s", activity.activity_date, user_id)
        return self.activity_repository.add(activity)

    def get_user_streak(self, user_id: str, today: Optional[date] = None) -> ReadingStreak:
        """Compute a user's streak from their full activity log."""
        if not user_id:
            raise ValidationError("User ID is required", field="user_id")

        activities = self.activity_repository.find_by_user(user_id)
        return StreakCalculator(activities, today or get_config().today()).to_streak()

    def get_activity_history(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ReadingActivity]:
        """Activities for a user, most recent first."""
        return self.activity_repository.find_by_user(user_id, start_date, end_date)
