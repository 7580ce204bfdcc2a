"""Reading session management.

Handles starting, ending and listing timed reading sessions. A user has at
most one open session; ending it records the minutes (and pages, if given)
as a ReadingActivity for the day it ended, which feeds the streak.
"""

import logging
import math
from datetime import date, datetime, timedelta
from typing import Optional

from ..config import get_config
from ..db.schemas import (
    ReadingActivity,
    ReadingSession,
    ReadingSessionUpdate,
    as_utc,
    utcnow,
)
from ..errors import NotFoundError, UnauthorizedError, ValidationError
from ..repositories.base import ReadingActivityRepository, ReadingSessionRepository
from .schemas import SessionStatistics

logger = logging.getLogger(__name__)

WEEK = timedelta(days=7)


def duration_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two moments, halves rounded up."""
    return max(0, math.floor((end - start).total_seconds() / 60 + 0.5))


class SessionService:
    """Manages timed reading sessions."""

    def __init__(
        self,
        session_repository: ReadingSessionRepository,
        activity_repository: ReadingActivityRepository,
    ):
        """Initialize session service.

        Args:
            session_repository: Where sessions are stored
            activity_repository: Activity log that ended sessions are added to
        """
        self.session_repository = session_repository
        self.activity_repository = activity_repository

    def start_session(
        self,
        user_id: str,
        book_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ReadingSession:
        """Start a new reading session.

        Args:
            user_id: Reading user
            book_id: Book being read, if any
            now: Start time (default: current UTC time)

        Returns:
            New ReadingSession

        Raises:
            ValidationError: If the user id is empty or a session is already open
        """
        if not user_id:
            raise ValidationError("User ID is required", field="user_id")

        if self.session_repository.find_active(user_id) is not None:
            raise ValidationError(
                "You already have an active reading session. "
                "End it before starting a new one."
            )

        session = ReadingSession(user_id=user_id, book_id=book_id, start_time=now or utcnow())
        logger.debug("Starting session %s for %s", session.id, user_id)
        return self.session_repository.add(session)

    def end_session(
        self,
        session_id: str,
        user_id: str,
        pages_read: Optional[int] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ReadingSession:
        """End an open session and log it as reading activity.

        Args:
            session_id: Session to end
            user_id: Acting user, must own the session
            pages_read: Pages read during the session
            notes: Free-form notes
            now: End time (default: current UTC time)

        Returns:
            The ended session

        Raises:
            NotFoundError: If the session does not exist
            UnauthorizedError: If the session belongs to another user
            ValidationError: If the session already ended or pages are negative
        """
        session = self.session_repository.get(session_id)
        if session is None:
            raise NotFoundError("ReadingSession", session_id)

        if session.user_id != user_id:
            raise UnauthorizedError("You do not have permission to end this session")

        if not session.is_active:
            raise ValidationError("This session has already ended")

        if pages_read is not None and pages_read < 0:
            raise ValidationError("Pages read must be non-negative", field="pages_read")

        end_time = as_utc(now) if now else utcnow()
        if end_time < session.start_time:
            raise ValidationError("Session cannot end before it started", field="end_time")

        minutes = duration_minutes(session.start_time, end_time)
        updated = self.session_repository.update(
            session_id,
            ReadingSessionUpdate(
                end_time=end_time,
                duration_minutes=minutes,
                pages_read=pages_read,
                notes=notes,
            ),
        )
        if updated is None:
            raise NotFoundError("ReadingSession", session_id)

        self.activity_repository.add(
            ReadingActivity(
                user_id=user_id,
                activity_date=get_config().local_date(end_time),
                minutes_read=minutes,
                pages_read=pages_read or 0,
                book_id=session.book_id,
            )
        )
        logger.info("Session %s ended after %d minutes", session_id, minutes)
        return updated

    def get_active_session(self, user_id: str) -> Optional[ReadingSession]:
        return self.session_repository.find_active(user_id)

    def get_user_sessions(
        self,
        user_id: str,
        book_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[ReadingSession]:
        """Sessions for a user, most recent first."""
        return self.session_repository.find_by_user(
            user_id, book_id=book_id, start_date=start_date, end_date=end_date, limit=limit
        )

    def get_session_statistics(
        self, user_id: str, now: Optional[datetime] = None
    ) -> SessionStatistics:
        """Totals over a user's ended sessions, plus the trailing seven days."""
        now = as_utc(now) if now else utcnow()
        ended = [s for s in self.session_repository.find_by_user(user_id) if not s.is_active]

        stats = SessionStatistics(total_sessions=len(ended))
        if not ended:
            return stats

        minutes = [s.duration_minutes or 0 for s in ended]
        stats.total_minutes = sum(minutes)
        stats.total_pages = sum(s.pages_read or 0 for s in ended)
        stats.average_session_length = round(stats.total_minutes / len(ended))
        stats.longest_session = max(minutes)

        this_week = [s for s in ended if s.start_time > now - WEEK]
        stats.sessions_this_week = len(this_week)
        stats.minutes_this_week = sum(s.duration_minutes or 0 for s in this_week)

        return stats
