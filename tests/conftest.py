"""Pytest configuration and shared fixtures.

This module provides fixtures for testing readtrack, including in-memory
repositories, an in-memory SQLite database and entity factories.
"""

import os
import tempfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Callable, Generator

import pytest

from readtrack.config import reset_config
from readtrack.db.schemas import Book, BookStatus, Goal, ReadingActivity
from readtrack.db.sqlite import Database, reset_db
from readtrack.goals import GoalSyncService
from readtrack.reading import BookService, SessionService
from readtrack.repositories import (
    InMemoryBookRepository,
    InMemoryGoalRepository,
    InMemoryReadingActivityRepository,
    InMemoryReadingSessionRepository,
)
from readtrack.streaks import StreakService

USER_ID = "user-123"
OTHER_USER_ID = "user-456"

# Fixed reference points so results never depend on the wall clock
TODAY = date(2025, 3, 15)
NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)
    yield db_path
    # Cleanup
    if db_path.exists():
        db_path.unlink()


@pytest.fixture
def db() -> Database:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    return database


@pytest.fixture(autouse=True)
def clean_globals() -> Generator[None, None, None]:
    """Reset global config and database between tests."""
    reset_db()
    reset_config()
    yield
    reset_db()
    reset_config()


# ============================================================================
# Repository & Service Fixtures
# ============================================================================


@pytest.fixture
def book_repo() -> InMemoryBookRepository:
    return InMemoryBookRepository()


@pytest.fixture
def goal_repo() -> InMemoryGoalRepository:
    return InMemoryGoalRepository()


@pytest.fixture
def activity_repo() -> InMemoryReadingActivityRepository:
    return InMemoryReadingActivityRepository()


@pytest.fixture
def goal_sync(goal_repo, book_repo) -> GoalSyncService:
    return GoalSyncService(goal_repo, book_repo)


@pytest.fixture
def book_service(book_repo, goal_sync) -> BookService:
    return BookService(book_repo, goal_sync=goal_sync)


@pytest.fixture
def streak_service(activity_repo) -> StreakService:
    return StreakService(activity_repo)


@pytest.fixture
def session_repo() -> InMemoryReadingSessionRepository:
    return InMemoryReadingSessionRepository()


@pytest.fixture
def session_service(session_repo, activity_repo) -> SessionService:
    return SessionService(session_repo, activity_repo)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def make_book() -> Callable[..., Book]:
    """Factory for books; finished books get a finish date unless given one."""

    def _make(**overrides) -> Book:
        data = {
            "user_id": USER_ID,
            "title": "The Left Hand of Darkness",
            "authors": ["Ursula K. Le Guin"],
            "status": BookStatus.WANT_TO_READ,
            "page_count": 300,
        }
        data.update(overrides)
        if data["status"] == BookStatus.READ:
            data.setdefault("finished_at", NOW)
        return Book(**data)

    return _make


@pytest.fixture
def make_goal() -> Callable[..., Goal]:
    """Factory for a January 2025 goal."""

    def _make(**overrides) -> Goal:
        data = {
            "user_id": USER_ID,
            "title": "January books",
            "target_books": 5,
            "start_date": date(2025, 1, 1),
            "end_date": date(2025, 1, 31),
        }
        data.update(overrides)
        return Goal(**data)

    return _make


@pytest.fixture
def make_activity() -> Callable[..., ReadingActivity]:
    """Factory for an activity ``days_ago`` days before TODAY."""

    def _make(days_ago: int = 0, **overrides) -> ReadingActivity:
        data = {
            "user_id": USER_ID,
            "activity_date": date.fromordinal(TODAY.toordinal() - days_ago),
            "minutes_read": 30,
            "pages_read": 20,
        }
        data.update(overrides)
        return ReadingActivity(**data)

    return _make


# ============================================================================
# CLI Testing Fixtures
# ============================================================================


@pytest.fixture
def cli_env(temp_db_path: Path) -> Generator[Path, None, None]:
    """Point the CLI at a temporary database and a fixed user."""
    os.environ["READTRACK_DB_PATH"] = str(temp_db_path)
    os.environ["READTRACK_USER_ID"] = USER_ID
    yield temp_db_path
    reset_db()
    for key in ("READTRACK_DB_PATH", "READTRACK_USER_ID"):
        os.environ.pop(key, None)
