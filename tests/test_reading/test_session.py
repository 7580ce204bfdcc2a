"""Tests for SessionService."""

from datetime import date, datetime, timedelta, timezone

import pytest

from readtrack.config import reset_config
from readtrack.errors import NotFoundError, UnauthorizedError, ValidationError
from readtrack.reading.session import duration_minutes

from conftest import NOW, OTHER_USER_ID, TODAY, USER_ID


class TestStartSession:
    """Tests for starting sessions."""

    def test_start(self, session_service, session_repo):
        session = session_service.start_session(USER_ID, book_id="book-1", now=NOW)

        assert session.is_active
        assert session.start_time == NOW
        assert session.book_id == "book-1"
        assert session_repo.find_active(USER_ID) == session

    def test_one_active_session_per_user(self, session_service):
        session_service.start_session(USER_ID, now=NOW)

        with pytest.raises(ValidationError, match="already have an active"):
            session_service.start_session(USER_ID, now=NOW)

    def test_other_users_session_does_not_block(self, session_service):
        session_service.start_session(OTHER_USER_ID, now=NOW)

        assert session_service.start_session(USER_ID, now=NOW).user_id == USER_ID

    def test_requires_user(self, session_service):
        with pytest.raises(ValidationError, match="User ID is required"):
            session_service.start_session("")


class TestEndSession:
    """Tests for ending sessions."""

    def test_end_records_activity(self, session_service, activity_repo):
        started = session_service.start_session(USER_ID, book_id="book-1", now=NOW)

        ended = session_service.end_session(
            started.id,
            USER_ID,
            pages_read=18,
            notes="Great chapter",
            now=NOW + timedelta(minutes=42),
        )

        assert ended.is_active is False
        assert ended.duration_minutes == 42
        assert ended.pages_read == 18
        assert ended.notes == "Great chapter"

        (activity,) = activity_repo.find_by_user(USER_ID)
        assert activity.activity_date == TODAY
        assert activity.minutes_read == 42
        assert activity.pages_read == 18
        assert activity.book_id == "book-1"

    def test_duration_rounds_to_nearest_minute(self, session_service):
        started = session_service.start_session(USER_ID, now=NOW)

        ended = session_service.end_session(
            started.id, USER_ID, now=NOW + timedelta(minutes=10, seconds=31)
        )

        assert ended.duration_minutes == 11

    def test_activity_day_uses_configured_timezone(
        self, session_service, activity_repo, monkeypatch
    ):
        late = datetime(2025, 3, 15, 23, 30, tzinfo=timezone.utc)
        started = session_service.start_session(USER_ID, now=late)

        monkeypatch.setenv("READTRACK_TIMEZONE", "Asia/Tokyo")
        reset_config()
        session_service.end_session(started.id, USER_ID, now=late + timedelta(minutes=20))

        # 23:50 UTC is the next morning in Tokyo
        assert activity_repo.find_by_user(USER_ID)[0].activity_date == date(2025, 3, 16)

    def test_already_ended(self, session_service):
        started = session_service.start_session(USER_ID, now=NOW)
        session_service.end_session(started.id, USER_ID, now=NOW + timedelta(minutes=5))

        with pytest.raises(ValidationError, match="already ended"):
            session_service.end_session(started.id, USER_ID, now=NOW + timedelta(minutes=9))

    def test_missing(self, session_service):
        with pytest.raises(NotFoundError, match="ReadingSession with id missing not found"):
            session_service.end_session("missing", USER_ID)

    def test_other_users_session(self, session_service, activity_repo):
        started = session_service.start_session(OTHER_USER_ID, now=NOW)

        with pytest.raises(UnauthorizedError):
            session_service.end_session(started.id, USER_ID, now=NOW + timedelta(minutes=5))

        assert activity_repo.find_by_user(USER_ID) == []

    def test_negative_pages(self, session_service, session_repo):
        started = session_service.start_session(USER_ID, now=NOW)

        with pytest.raises(ValidationError):
            session_service.end_session(
                started.id, USER_ID, pages_read=-1, now=NOW + timedelta(minutes=5)
            )

        assert session_repo.get(started.id).is_active

    def test_end_before_start(self, session_service):
        started = session_service.start_session(USER_ID, now=NOW)

        with pytest.raises(ValidationError):
            session_service.end_session(started.id, USER_ID, now=NOW - timedelta(minutes=1))

    def test_new_session_after_ending(self, session_service):
        first = session_service.start_session(USER_ID, now=NOW)
        session_service.end_session(first.id, USER_ID, now=NOW + timedelta(minutes=5))

        second = session_service.start_session(USER_ID, now=NOW + timedelta(minutes=10))

        assert session_service.get_active_session(USER_ID) == second


class TestSessionQueries:
    """Tests for listing sessions and statistics."""

    def _read(self, service, start, minutes, pages=None, book_id=None):
        session = service.start_session(USER_ID, book_id=book_id, now=start)
        return service.end_session(
            session.id, USER_ID, pages_read=pages, now=start + timedelta(minutes=minutes)
        )

    def test_user_sessions(self, session_service):
        self._read(session_service, NOW - timedelta(days=2), 30, book_id="book-1")
        self._read(session_service, NOW - timedelta(days=1), 20, book_id="book-2")
        self._read(session_service, NOW, 10, book_id="book-1")

        assert len(session_service.get_user_sessions(USER_ID)) == 3
        assert len(session_service.get_user_sessions(USER_ID, book_id="book-1")) == 2
        (latest,) = session_service.get_user_sessions(USER_ID, limit=1)
        assert latest.duration_minutes == 10

    def test_statistics(self, session_service):
        self._read(session_service, NOW - timedelta(days=10), 60, pages=40)
        self._read(session_service, NOW - timedelta(days=2), 30, pages=20)
        self._read(session_service, NOW - timedelta(hours=3), 15)
        session_service.start_session(USER_ID, now=NOW - timedelta(minutes=5))

        stats = session_service.get_session_statistics(USER_ID, now=NOW)

        assert stats.total_sessions == 3
        assert stats.total_minutes == 105
        assert stats.total_pages == 60
        assert stats.average_session_length == 35
        assert stats.longest_session == 60
        assert stats.sessions_this_week == 2
        assert stats.minutes_this_week == 45

    def test_statistics_empty(self, session_service):
        stats = session_service.get_session_statistics(USER_ID, now=NOW)

        assert stats.total_sessions == 0
        assert stats.average_session_length == 0


class TestDurationMinutes:
    @pytest.mark.parametrize(
        "elapsed, expected",
        [
            (timedelta(seconds=29), 0),
            (timedelta(seconds=90), 2),
            (timedelta(seconds=150), 3),
            (timedelta(hours=1, seconds=10), 60),
        ],
    )
    def test_rounding(self, elapsed, expected):
        assert duration_minutes(NOW, NOW + elapsed) == expected
