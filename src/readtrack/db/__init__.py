"""Entities, ORM models and the SQLite session manager."""

from .schemas import (
    Book,
    BookStatus,
    BookUpdate,
    Goal,
    GoalUpdate,
    ReadingActivity,
    ReadingSession,
    ReadingSessionUpdate,
)
from .sqlite import Database, get_db, reset_db

__all__ = [
    "Book",
    "BookStatus",
    "BookUpdate",
    "Goal",
    "GoalUpdate",
    "ReadingActivity",
    "ReadingSession",
    "ReadingSessionUpdate",
    "Database",
    "get_db",
    "reset_db",
]
