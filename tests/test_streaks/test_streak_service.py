"""Tests for StreakService."""

import os
from datetime import date, timedelta

import pytest

from readtrack.config import reset_config
from readtrack.errors import ValidationError
from readtrack.streaks import StreakCategory

from conftest import OTHER_USER_ID, TODAY, USER_ID


class TestRecordActivity:
    """Tests for logging reading activity."""

    def test_records(self, streak_service, activity_repo):
        activity = streak_service.record_activity(
            USER_ID, minutes_read=30, pages_read=12, book_id="book-1", activity_date=TODAY
        )

        assert activity.activity_date == TODAY
        assert activity.minutes_read == 30
        assert activity.pages_read == 12
        assert activity_repo.find_by_user(USER_ID) == [activity]

    def test_same_day_appends(self, streak_service, activity_repo):
        streak_service.record_activity(USER_ID, minutes_read=10, activity_date=TODAY)
        streak_service.record_activity(USER_ID, pages_read=5, activity_date=TODAY)

        assert len(activity_repo.find_by_user(USER_ID)) == 2

    def test_defaults_to_configured_today(self, streak_service):
        os.environ["READTRACK_TIMEZONE"] = "UTC"
        reset_config()
        try:
            activity = streak_service.record_activity(USER_ID, minutes_read=5)
        finally:
            del os.environ["READTRACK_TIMEZONE"]

        assert abs((activity.activity_date - date.today()).days) <= 1

    def test_requires_user(self, streak_service):
        with pytest.raises(ValidationError, match="User ID is required"):
            streak_service.record_activity("", minutes_read=5)

    def test_negative_amounts(self, streak_service):
        with pytest.raises(ValidationError, match="non-negative"):
            streak_service.record_activity(USER_ID, minutes_read=-5, pages_read=10)

    def test_nothing_read(self, streak_service, activity_repo):
        with pytest.raises(ValidationError, match="At least"):
            streak_service.record_activity(USER_ID)

        assert activity_repo.find_by_user(USER_ID) == []


class TestGetUserStreak:
    """Tests for streak retrieval."""

    def test_streak_from_log(self, streak_service):
        for days_ago in (0, 1, 2):
            streak_service.record_activity(
                USER_ID, minutes_read=20, activity_date=TODAY - timedelta(days=days_ago)
            )
        streak_service.record_activity(OTHER_USER_ID, minutes_read=20, activity_date=TODAY)

        result = streak_service.get_user_streak(USER_ID, today=TODAY)

        assert result.current_streak == 3
        assert result.total_days_read == 3
        assert result.is_active_today is True
        assert result.category == StreakCategory.BUILDING

    def test_no_activity(self, streak_service):
        result = streak_service.get_user_streak(USER_ID, today=TODAY)

        assert result.current_streak == 0
        assert result.category == StreakCategory.NO_ACTIVITY

    def test_requires_user(self, streak_service):
        with pytest.raises(ValidationError):
            streak_service.get_user_streak("")


class TestActivityHistory:
    def test_date_range(self, streak_service):
        for days_ago in range(10):
            streak_service.record_activity(
                USER_ID, minutes_read=15, activity_date=TODAY - timedelta(days=days_ago)
            )

        history = streak_service.get_activity_history(
            USER_ID, start_date=TODAY - timedelta(days=6), end_date=TODAY
        )

        assert len(history) == 7
        assert history[0].activity_date == TODAY
